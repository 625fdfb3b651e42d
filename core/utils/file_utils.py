"""File handling utilities"""

import logging
import os
import re
import uuid
from pathlib import Path
from typing import Dict, List, Union

import aiofiles
from fastapi import UploadFile

from .exceptions import FileUploadError

logger = logging.getLogger(__name__)

# Supported file formats
SUPPORTED_MESH_FORMATS = [".glb", ".gltf", ".obj", ".fbx", ".stl", ".ply"]

# MIME type mappings
MIME_TYPE_MAPPING = {
    ".glb": "model/gltf-binary",
    ".gltf": "model/gltf+json",
    ".obj": "model/obj",
    ".fbx": "application/octet-stream",
    ".stl": "model/stl",
    ".ply": "application/octet-stream",
}

CHUNK_SIZE = 1024 * 1024


def generate_filename(original_filename: str, prefix: str = "") -> str:
    """Generate a unique filename with UUID, keeping the lowercased extension"""
    file_ext = Path(original_filename).suffix.lower()
    unique_id = str(uuid.uuid4())
    if prefix:
        return f"{prefix}_{unique_id}{file_ext}"
    return f"{unique_id}{file_ext}"


def get_file_size_mb(file_path: str) -> float:
    """Get file size in MB"""
    return os.path.getsize(file_path) / (1024 * 1024)


def validate_file_extension(filename: str, allowed_extensions: List[str]) -> bool:
    """Validate file extension against allowed list"""
    file_ext = Path(filename).suffix.lower()
    return file_ext in [ext.lower() for ext in allowed_extensions]


def get_media_type(filename: str) -> str:
    """Media type to serve a stored mesh file with"""
    return MIME_TYPE_MAPPING.get(Path(filename).suffix.lower(), "application/octet-stream")


def get_safe_filename(filename: str) -> str:
    """Get safe filename by removing/replacing problematic characters"""
    safe_name = re.sub(r'[<>:"/\\|?*]', "_", filename)

    if len(safe_name) > 255:
        name, ext = os.path.splitext(safe_name)
        safe_name = name[: 255 - len(ext)] + ext

    return safe_name


async def save_upload_file(
    upload_file: UploadFile,
    destination_dir: str,
    max_size_mb: int = 200,
) -> Dict[str, Union[str, float]]:
    """Stream an uploaded mesh file to disk under a generated unique name"""
    filename = upload_file.filename or ""
    try:
        Path(destination_dir).mkdir(parents=True, exist_ok=True)

        if not validate_file_extension(filename, SUPPORTED_MESH_FORMATS):
            raise FileUploadError(
                filename or "unknown",
                f"File type '{Path(filename).suffix.lower()}' is not supported. "
                f"Allowed types: {', '.join(SUPPORTED_MESH_FORMATS)}",
            )

        saved_filename = generate_filename(filename)
        file_path = Path(destination_dir) / saved_filename

        size = 0
        async with aiofiles.open(file_path, "wb") as f:
            while chunk := await upload_file.read(CHUNK_SIZE):
                size += len(chunk)
                await f.write(chunk)

        if size == 0:
            os.remove(file_path)
            raise FileUploadError(filename, "3D model file is required")

        file_size_mb = get_file_size_mb(str(file_path))
        if file_size_mb > max_size_mb:
            os.remove(file_path)
            raise FileUploadError(
                filename,
                f"File size ({file_size_mb:.1f}MB) exceeds limit ({max_size_mb}MB)",
            )

        logger.info(f"Saved uploaded file: {file_path} ({file_size_mb:.1f}MB)")

        return {
            "file_path": str(file_path),
            "original_filename": filename,
            "saved_filename": saved_filename,
            "file_size_mb": file_size_mb,
        }

    except Exception as e:
        if isinstance(e, FileUploadError):
            raise
        raise FileUploadError(filename or "unknown", str(e))
