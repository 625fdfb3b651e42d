"""Serves stored mesh files at their public locators"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from api.dependencies import get_file_store
from core.file_store import FileStore
from core.utils.file_utils import get_media_type

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/uploads/{filename}", summary="Download a stored mesh file")
async def get_upload(filename: str, file_store: FileStore = Depends(get_file_store)):
    file_path = file_store.resolve_path(file_store.locator_for(filename))
    if file_path is None or not file_path.is_file():
        raise HTTPException(status_code=404, detail="File not found")

    return FileResponse(
        path=str(file_path),
        media_type=get_media_type(file_path.name),
        filename=file_path.name,
    )
