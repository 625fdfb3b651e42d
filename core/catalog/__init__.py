"""Mesh catalog persistence"""

from .models import Base, MeshModel
from .repository import MeshCatalog

__all__ = ["Base", "MeshCatalog", "MeshModel"]
