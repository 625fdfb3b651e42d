"""System information API endpoints"""

import logging
import platform
import time

from fastapi import APIRouter, Depends

from api.dependencies import get_current_settings
from core.config import Settings
from core.utils.file_utils import MIME_TYPE_MAPPING, SUPPORTED_MESH_FORMATS
from viewer.formats import MeshFormat

logger = logging.getLogger(__name__)

router = APIRouter()

START_TIME = time.time()


@router.get("/formats", summary="Get supported formats")
async def get_supported_formats(settings: Settings = Depends(get_current_settings)):
    """
    List the formats the catalog accepts for upload and the subset the
    viewer can preview in 3D. Other uploadable formats get a static preview.
    """
    upload_formats = sorted(ext.lstrip(".") for ext in SUPPORTED_MESH_FORMATS)
    preview_formats = [fmt.value for fmt in MeshFormat]

    return {
        "upload_formats": upload_formats,
        "preview_formats": preview_formats,
        "download_only_formats": [f for f in upload_formats if f not in preview_formats],
        "content_types": {
            ext.lstrip("."): MIME_TYPE_MAPPING.get(ext, "application/octet-stream")
            for ext in sorted(SUPPORTED_MESH_FORMATS)
        },
        "max_upload_size_mb": settings.storage.max_upload_size_mb,
    }


@router.get("/info", summary="Get system information")
async def get_system_info(settings: Settings = Depends(get_current_settings)):
    """Runtime and configuration summary"""
    return {
        "environment": settings.environment,
        "debug": settings.debug,
        "python_version": platform.python_version(),
        "platform": platform.platform(),
        "uptime_seconds": round(time.time() - START_TIME, 3),
        "viewer": {
            "reference_size": settings.viewer.reference_size,
            "fov": settings.viewer.fov,
            "frame_rate": settings.viewer.frame_rate,
            "allow_fullscreen": settings.viewer.allow_fullscreen,
        },
    }
