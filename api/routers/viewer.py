"""
3D viewer API endpoints.

Drives the application's viewer: load a catalog mesh into it, trigger the
interactive operations, and read back the current view state. All handlers
are coroutines so they run on the event loop alongside the render loop.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from api.dependencies import get_catalog, get_viewer
from core.catalog import MeshCatalog
from core.utils.exceptions import MeshNotFoundError
from viewer import Viewer
from viewer.formats import extension_of

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/viewer", tags=["viewer"])


class ResizeRequest(BaseModel):
    width: int = Field(..., description="Viewport width in pixels", gt=0, le=16384)
    height: int = Field(..., description="Viewport height in pixels", gt=0, le=16384)


class OrbitRequest(BaseModel):
    delta_theta: float = Field(0.0, description="Azimuth change in radians", allow_inf_nan=False)
    delta_phi: float = Field(0.0, description="Polar change in radians", allow_inf_nan=False)


class PanRequest(BaseModel):
    delta_x: float = Field(0.0, description="Pan along the view right axis", allow_inf_nan=False)
    delta_y: float = Field(0.0, description="Pan along the view up axis", allow_inf_nan=False)


class ZoomRequest(BaseModel):
    factor: float = Field(
        ..., description="Orbit radius multiplier; above 1 moves away", gt=0, allow_inf_nan=False
    )


@router.post("/load/{mesh_id}")
async def load_mesh(
    mesh_id: int,
    catalog: MeshCatalog = Depends(get_catalog),
    viewer: Viewer = Depends(get_viewer),
):
    """
    Load a catalog mesh into the viewer.

    The loader is chosen from the file extension. Formats without a preview
    loader, and files that fail to load, return a fallback preview instead
    of an error.
    """
    mesh = await run_in_threadpool(catalog.get_mesh, mesh_id)
    if mesh is None:
        raise MeshNotFoundError(mesh_id)

    outcome = await viewer.load_by_format(
        extension_of(mesh.model_file_url), mesh.model_file_url, title=mesh.title
    )
    logger.info(f"Viewer load of mesh {mesh_id}: {outcome.status}")

    return {
        "mesh_id": mesh_id,
        "title": mesh.title,
        **outcome.to_dict(),
        "state": viewer.view_state(),
    }


@router.post("/fit")
async def fit_to_frame(viewer: Viewer = Depends(get_viewer)):
    """Frame the current model"""
    return {"notification": viewer.fit_to_frame().to_dict()}


@router.post("/reset")
async def reset_view(viewer: Viewer = Depends(get_viewer)):
    """Reset the camera to the default framing"""
    return {"notification": viewer.reset_view().to_dict()}


@router.post("/orbit")
async def orbit(request: OrbitRequest, viewer: Viewer = Depends(get_viewer)):
    """Rotate the camera about the pivot; the motion eases in over the next frames"""
    viewer.orbit(request.delta_theta, request.delta_phi)
    return viewer.view_state()


@router.post("/pan")
async def pan(request: PanRequest, viewer: Viewer = Depends(get_viewer)):
    """Move the pivot and camera across the view plane"""
    viewer.pan(request.delta_x, request.delta_y)
    return viewer.view_state()


@router.post("/zoom")
async def zoom(request: ZoomRequest, viewer: Viewer = Depends(get_viewer)):
    """Scale the distance between camera and pivot"""
    viewer.zoom(request.factor)
    return viewer.view_state()


@router.post("/wireframe")
async def toggle_wireframe(viewer: Viewer = Depends(get_viewer)):
    """Toggle between wireframe and solid shading"""
    notification = viewer.toggle_wireframe()
    return {
        "wireframe": viewer.normalizer.wireframe_mode,
        "notification": notification.to_dict(),
    }


@router.post("/fullscreen")
async def toggle_fullscreen(viewer: Viewer = Depends(get_viewer)):
    """Enter or leave fullscreen"""
    notification = viewer.toggle_fullscreen()
    return {
        "fullscreen": viewer.host.is_fullscreen,
        "notification": notification.to_dict(),
    }


@router.post("/resize")
async def resize(request: ResizeRequest, viewer: Viewer = Depends(get_viewer)):
    """Report a new viewport size"""
    viewer.resize(request.width, request.height)
    return viewer.view_state()


@router.get("/state")
async def get_state(viewer: Viewer = Depends(get_viewer)):
    """Current camera, model and shading state"""
    return viewer.view_state()
