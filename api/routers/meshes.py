"""
Mesh catalog API endpoints.

Upload mesh files with a title and comma-separated tags, search the catalog
by tag substring, and update or delete entries.
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, Field

from api.dependencies import get_catalog, get_file_store
from core.catalog import MeshCatalog
from core.catalog.models import TITLE_MAX_LENGTH
from core.file_store import FileStore
from core.utils.exceptions import FileUploadError, MeshNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meshes", tags=["meshes"])


class MeshResponse(BaseModel):
    """A catalog entry"""

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: int = Field(..., description="Unique mesh identifier")
    title: str = Field(..., description="Display title")
    model_file_url: str = Field(..., description="Public locator of the mesh file")
    tags: str = Field("", description="Comma-separated tags")
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: datetime = Field(..., description="Last update timestamp (UTC)")


class MeshUpdateRequest(BaseModel):
    """Partial update; omitted fields are left unchanged"""

    title: Optional[str] = Field(None, description="New title, ignored when blank")
    tags: Optional[str] = Field(None, description="New comma-separated tags")


@router.get("", response_model=List[MeshResponse])
def list_meshes(
    tags: Optional[str] = Query(None, description="Comma-separated tags to search for"),
    catalog: MeshCatalog = Depends(get_catalog),
):
    """
    Get all meshes or search by tags.

    A mesh matches when any of the given tags is a case-insensitive
    substring of its tag string. Newest first.
    """
    return catalog.list_meshes(tags)


@router.get("/{mesh_id}", response_model=MeshResponse)
def get_mesh(mesh_id: int, catalog: MeshCatalog = Depends(get_catalog)):
    """Get a specific mesh by ID"""
    mesh = catalog.get_mesh(mesh_id)
    if mesh is None:
        raise MeshNotFoundError(mesh_id)
    return mesh


@router.post("", response_model=MeshResponse, status_code=201)
async def create_mesh(
    title: Optional[str] = Form(None, description="Mesh title"),
    tags: Optional[str] = Form(None, description="Comma-separated tags"),
    file: Optional[UploadFile] = File(None, description="3D model file to upload"),
    catalog: MeshCatalog = Depends(get_catalog),
    file_store: FileStore = Depends(get_file_store),
):
    """
    Create a new mesh with file upload.

    Supported formats: GLB, GLTF, OBJ, FBX, STL, PLY
    """
    if not title or not title.strip():
        raise HTTPException(status_code=400, detail="Title is required")
    if len(title.strip()) > TITLE_MAX_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Title must be at most {TITLE_MAX_LENGTH} characters",
        )
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="3D model file is required")

    try:
        file_info = await file_store.save(file)
    except FileUploadError as e:
        logger.error(f"Failed to upload mesh file {file.filename}: {e.reason}")
        raise HTTPException(status_code=400, detail=e.reason)

    try:
        mesh = await run_in_threadpool(
            catalog.create_mesh, title=title, model_file_url=file_info["locator"], tags=tags
        )
    except Exception as e:
        logger.error(f"Error creating mesh: {str(e)}")
        file_store.delete(file_info["locator"])
        raise HTTPException(
            status_code=500, detail="An error occurred while uploading the file"
        )

    return mesh


@router.put("/{mesh_id}", response_model=MeshResponse)
def update_mesh(
    mesh_id: int,
    update: MeshUpdateRequest,
    catalog: MeshCatalog = Depends(get_catalog),
):
    """Update the title and/or tags of an existing mesh"""
    try:
        mesh = catalog.update_mesh(mesh_id, title=update.title, tags=update.tags)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if mesh is None:
        raise MeshNotFoundError(mesh_id)
    return mesh


@router.delete("/{mesh_id}")
def delete_mesh(
    mesh_id: int,
    catalog: MeshCatalog = Depends(get_catalog),
    file_store: FileStore = Depends(get_file_store),
):
    """
    Delete a mesh and its associated file.

    The file is removed on a best-effort basis; a failure there is logged and
    does not fail the request.
    """
    mesh = catalog.get_mesh(mesh_id)
    if mesh is None:
        raise MeshNotFoundError(mesh_id)

    file_store.delete(mesh.model_file_url)
    catalog.delete_mesh(mesh_id)

    return {"id": mesh_id, "message": "Mesh deleted successfully"}
