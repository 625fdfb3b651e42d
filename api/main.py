"""FastAPI application main entry point

Serves the mesh catalog API, the stored mesh files and the 3D viewer.
The viewer, database and file store are created in the lifespan handler
and shared through app.state.

Deployment:
    uvicorn api.main:app --workers 1
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from core.config import get_settings, setup_logging
from core.database import Database
from core.file_store import FileStore
from core.utils.exceptions import BaseAPIException, MeshNotFoundError
from viewer import Viewer, ViewerNotInitializedError

from .routers import meshes, system, uploads, viewer

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


# Configure CORS
def configure_cors(app: FastAPI, settings):
    """Configure CORS middleware"""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )


# Configure security middleware
def configure_security(app: FastAPI, settings):
    """Configure security middleware"""
    if settings.environment == "production":
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=["*"])


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Mesh Catalog Viewer...")

    database = None
    mesh_viewer = None

    try:
        # Load configuration
        settings = get_settings()

        # Setup logging
        setup_logging(settings.logging)
        logger.info(f"Environment: {settings.environment}")

        database = Database(settings.storage.database_url, echo=settings.debug)
        database.create_tables()
        app.state.database = database

        file_store = FileStore(
            settings.storage.upload_dir,
            public_prefix=settings.storage.public_prefix,
            max_upload_size_mb=settings.storage.max_upload_size_mb,
        )
        app.state.file_store = file_store
        logger.info(f"Storing uploads in {file_store.upload_dir.resolve()}")

        mesh_viewer = Viewer(fetch=file_store.fetch, config=settings.viewer)
        mesh_viewer.start()
        app.state.viewer = mesh_viewer

        logger.info("Application startup completed successfully")

        yield

    except Exception as e:
        logger.error(f"Failed to start application: {str(e)}")
        raise

    finally:
        logger.info("Shutting down Mesh Catalog Viewer...")

        if mesh_viewer is not None:
            mesh_viewer.dispose()
        if database is not None:
            database.dispose()

        logger.info("Application shutdown completed")


# Create FastAPI application
app = FastAPI(
    title="Mesh Catalog Viewer API",
    description="3D mesh catalog with tag search and an interactive model viewer",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS and security middleware
settings = get_settings()
configure_cors(app, settings)
configure_security(app, settings)


# Add middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time header to responses"""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests"""
    start_time = time.time()

    logger.info(f"Request: {request.method} {request.url}")

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(
        f"Response: {response.status_code} - "
        f"{request.method} {request.url} - "
        f"Time: {process_time:.3f}s"
    )

    return response


# Exception handlers
@app.exception_handler(BaseAPIException)
async def base_api_exception_handler(request: Request, exc: BaseAPIException):
    """Handle custom API exceptions"""
    return JSONResponse(
        status_code=400,
        content={
            "error": exc.error_code or "API_ERROR",
            "message": exc.message,
            "detail": str(exc),
        },
    )


@app.exception_handler(MeshNotFoundError)
async def mesh_not_found_handler(request: Request, exc: MeshNotFoundError):
    """Handle lookups of unknown mesh ids"""
    return JSONResponse(
        status_code=404,
        content={
            "error": exc.error_code,
            "message": "Mesh not found",
            "detail": exc.message,
        },
    )


@app.exception_handler(ViewerNotInitializedError)
async def viewer_not_initialized_handler(
    request: Request, exc: ViewerNotInitializedError
):
    """The viewer has no render surface"""
    logger.error(f"Viewer operation without a render surface: {exc}")
    return JSONResponse(
        status_code=503,
        content={
            "error": "VIEWER_NOT_INITIALIZED",
            "message": str(exc),
            "detail": "Please refresh the page.",
        },
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle value errors"""
    return JSONResponse(
        status_code=400,
        content={
            "error": "INVALID_VALUE",
            "message": "Invalid input value",
            "detail": str(exc),
        },
    )


@app.exception_handler(404)
async def not_found_handler(request: Request, exc: HTTPException):
    """Handle 404 errors"""
    return JSONResponse(
        status_code=404,
        content={
            "error": "NOT_FOUND",
            "message": str(exc.detail)
            if hasattr(exc, "detail")
            else "Resource not found",
            "detail": str(exc.detail)
            if hasattr(exc, "detail")
            else "The requested resource was not found",
        },
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception):
    """Handle internal server errors"""
    logger.error(f"Internal server error: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An internal server error occurred",
            "detail": "Please try again later or contact support",
        },
    )


# Include routers
app.include_router(system.router, prefix="/api/system", tags=["System"])

app.include_router(meshes.router, prefix="/api", tags=["Meshes"])

app.include_router(viewer.router, prefix="/api", tags=["Viewer"])

app.include_router(uploads.router, tags=["Uploads"])


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint"""
    mesh_viewer = getattr(request.app.state, "viewer", None)
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": VERSION,
        "viewer": {
            "initialized": mesh_viewer is not None and mesh_viewer.initialized,
            "rendering": mesh_viewer is not None and mesh_viewer.render_loop.running,
        },
    }


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    return {
        "name": "Mesh Catalog Viewer API",
        "version": VERSION,
        "description": "3D mesh catalog and interactive viewer",
        "docs_url": "/docs",
        "health_url": "/health",
        "formats_url": "/api/system/formats",
    }
