"""FastAPI dependencies for dependency injection"""

import logging
from typing import Iterator

from fastapi import Depends, HTTPException, Request

from core.catalog import MeshCatalog
from core.config import Settings, get_settings
from core.database import Database
from core.file_store import FileStore
from viewer import Viewer

logger = logging.getLogger(__name__)


async def get_current_settings() -> Settings:
    """Get current application settings"""
    return get_settings()


def get_database(request: Request) -> Database:
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise HTTPException(
            status_code=503,
            detail="Database is not available. Please check the service configuration.",
        )
    return database


def get_catalog(database: Database = Depends(get_database)) -> Iterator[MeshCatalog]:
    """Mesh catalog bound to a request-scoped session"""
    with database.session() as session:
        yield MeshCatalog(session)


def get_file_store(request: Request) -> FileStore:
    file_store = getattr(request.app.state, "file_store", None)
    if file_store is None:
        raise HTTPException(
            status_code=503,
            detail="File storage is not available. Please check the service configuration.",
        )
    return file_store


def get_viewer(request: Request) -> Viewer:
    """The application's viewer instance, created in the lifespan handler"""
    viewer = getattr(request.app.state, "viewer", None)
    if viewer is None:
        raise HTTPException(
            status_code=503,
            detail="3D viewer not initialized. Please refresh the page.",
        )
    return viewer
