"""Mesh format identification for the viewer"""

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Union
from urllib.parse import urlparse


class MeshFormat(Enum):
    """Formats the viewer can preview"""

    GLB = "glb"
    GLTF = "gltf"
    OBJ = "obj"
    STL = "stl"

    @property
    def label(self) -> str:
        return self.name


@dataclass(frozen=True)
class UnsupportedFormat:
    """A format the catalog accepts but the viewer cannot preview"""

    name: str

    @property
    def label(self) -> str:
        return self.name.upper()


ViewerFormat = Union[MeshFormat, UnsupportedFormat]


def resolve_format(value: Union[str, MeshFormat]) -> ViewerFormat:
    """Map a file extension (case-insensitive, with or without dot) to a format"""
    if isinstance(value, MeshFormat):
        return value

    name = value.strip().lstrip(".").lower()
    try:
        return MeshFormat(name)
    except ValueError:
        return UnsupportedFormat(name)


def extension_of(locator: str) -> str:
    """Extension of a locator's path without the dot, ignoring any query string"""
    path = urlparse(locator).path if "://" in locator else locator.split("?", 1)[0]
    return PurePosixPath(path).suffix.lstrip(".").lower()
