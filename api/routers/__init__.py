"""Router module initialization"""

from . import meshes, system, uploads, viewer

__all__ = [
    "meshes",
    "system",
    "uploads",
    "viewer",
]
