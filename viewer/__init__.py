"""
Interactive 3D mesh viewer.

Loads GLB, GLTF, OBJ and STL files into a single-object scene, normalises
their materials and scale, and frames them with a damped orbit camera.
"""

from .errors import (
    FullscreenDeniedError,
    LoadError,
    ParseError,
    UnsupportedFormatError,
    ViewerError,
    ViewerNotInitializedError,
)
from .formats import MeshFormat, UnsupportedFormat, resolve_format
from .loaders import LoadResult
from .viewer import FallbackPreview, LoadOutcome, Notification, Viewer

__all__ = [
    "FallbackPreview",
    "FullscreenDeniedError",
    "LoadError",
    "LoadOutcome",
    "LoadResult",
    "MeshFormat",
    "Notification",
    "ParseError",
    "UnsupportedFormat",
    "UnsupportedFormatError",
    "Viewer",
    "ViewerError",
    "ViewerNotInitializedError",
    "resolve_format",
]
