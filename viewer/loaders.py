"""
Format loaders: turn the bytes behind a locator into a SceneObject.

Each loader fetches asynchronously, parses synchronously with trimesh and
reports the outcome as a LoadResult instead of raising.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Awaitable, Callable, Dict, List, Optional, Type

import trimesh

from utils.mesh_utils import MeshProcessor

from .errors import LoadError, ParseError
from .formats import MeshFormat
from .materials import Material
from .scene import MeshNode, SceneObject

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[bytes]]

OBJ_ACCENT_COLOR = 0x667EEA
STL_ACCENT_COLOR = 0x764BA2
# Used when a GLB/GLTF primitive carries no colour at all
NEUTRAL_COLOR = 0xCCCCCC


@dataclass
class LoadResult:
    """Either a loaded object or the error that prevented it"""

    scene_object: Optional[SceneObject] = None
    error: Optional[LoadError] = None

    @property
    def ok(self) -> bool:
        return self.scene_object is not None and self.error is None

    @classmethod
    def success(cls, scene_object: SceneObject) -> "LoadResult":
        return cls(scene_object=scene_object)

    @classmethod
    def failure(cls, error: LoadError) -> "LoadResult":
        return cls(error=error)


class MeshLoader(ABC):
    """Base class for format loaders"""

    format: MeshFormat

    def __init__(self, fetch: Fetcher):
        self.fetch = fetch

    @property
    def file_type(self) -> str:
        return self.format.value

    async def load(self, locator: str) -> LoadResult:
        """Fetch and parse the file at locator"""
        try:
            data = await self.fetch(locator)
        except Exception as e:
            logger.error(f"Error fetching {self.format.label} from {locator}: {e}")
            return LoadResult.failure(
                LoadError(self.format.label, f"could not fetch {locator}", cause=e)
            )

        try:
            scene_object = self.parse(data, name=PurePosixPath(locator).stem or "model")
        except ParseError as e:
            logger.error(f"Error loading {self.format.label}: {e}")
            return LoadResult.failure(e)
        except Exception as e:
            logger.error(f"Error loading {self.format.label}: {e}")
            return LoadResult.failure(
                ParseError(self.format.label, "could not parse file", cause=e)
            )

        logger.info(
            f"Loaded {self.format.label} from {locator}: {len(scene_object.nodes)} mesh nodes"
        )
        return LoadResult.success(scene_object)

    def parse(self, data: bytes, name: str = "model") -> SceneObject:
        """
        Parse raw bytes into a SceneObject.

        Raises:
            ParseError: If the bytes are empty or contain no triangle geometry.
        """
        if not data:
            raise ParseError(self.format.label, "file is empty")

        scene = MeshProcessor.load_scene(data, self.file_type)
        nodes = self._build_nodes(scene)
        if not nodes:
            raise ParseError(self.format.label, "file contains no renderable geometry")

        return SceneObject(nodes, source_format=self.format.label, name=name)

    @abstractmethod
    def _build_nodes(self, scene: trimesh.Scene) -> List[MeshNode]:
        """Convert the parsed scene into mesh nodes. Override in subclasses."""
        pass


class GLTFLoader(MeshLoader):
    """glTF scenes keep their hierarchy transforms and their own materials"""

    format = MeshFormat.GLTF

    def _build_nodes(self, scene: trimesh.Scene) -> List[MeshNode]:
        nodes = []
        for node_name, transform, geometry in MeshProcessor.iter_mesh_nodes(scene):
            color, opacity = MeshProcessor.visual_color(geometry)
            material = Material(
                color=NEUTRAL_COLOR if color is None else color,
                kind="standard",
                transparent=opacity < 1.0,
                opacity=opacity,
                name=getattr(getattr(geometry.visual, "material", None), "name", None),
            )
            nodes.append(MeshNode(node_name, geometry, material, transform))
        return nodes


class GLBLoader(GLTFLoader):
    format = MeshFormat.GLB


class OBJLoader(MeshLoader):
    """OBJ geometry always gets the OBJ accent material"""

    format = MeshFormat.OBJ

    def __init__(self, fetch: Fetcher, color: int = OBJ_ACCENT_COLOR):
        super().__init__(fetch)
        self.color = color

    def _build_nodes(self, scene: trimesh.Scene) -> List[MeshNode]:
        return [
            MeshNode(node_name, geometry, Material.phong(self.color, name="obj-default"), transform)
            for node_name, transform, geometry in MeshProcessor.iter_mesh_nodes(scene)
        ]


class STLLoader(MeshLoader):
    """
    STL carries bare triangles: degenerate faces are dropped, normals
    computed from the winding, the solids re-centred together on their
    combined bounding box and given the STL accent material.
    """

    format = MeshFormat.STL

    def __init__(self, fetch: Fetcher, color: int = STL_ACCENT_COLOR):
        super().__init__(fetch)
        self.color = color

    def _build_nodes(self, scene: trimesh.Scene) -> List[MeshNode]:
        kept = []
        for node_name, transform, geometry in MeshProcessor.iter_mesh_nodes(scene):
            MeshProcessor.drop_degenerate_faces(geometry)
            if len(geometry.faces) == 0:
                continue
            MeshProcessor.compute_normals(geometry)
            kept.append((node_name, transform, geometry))

        # Multi-solid files are centred as a whole
        centered = MeshProcessor.center_nodes(
            [(transform, geometry) for _, transform, geometry in kept]
        )
        return [
            MeshNode(node_name, geometry, Material.phong(self.color, name="stl-default"), transform)
            for (node_name, _, geometry), transform in zip(kept, centered)
        ]


LOADER_REGISTRY: Dict[MeshFormat, Type[MeshLoader]] = {
    MeshFormat.GLB: GLBLoader,
    MeshFormat.GLTF: GLTFLoader,
    MeshFormat.OBJ: OBJLoader,
    MeshFormat.STL: STLLoader,
}


def create_loaders(
    fetch: Fetcher,
    obj_color: int = OBJ_ACCENT_COLOR,
    stl_color: int = STL_ACCENT_COLOR,
) -> Dict[MeshFormat, MeshLoader]:
    """One loader instance per previewable format"""
    loaders: Dict[MeshFormat, MeshLoader] = {}
    for mesh_format, loader_class in LOADER_REGISTRY.items():
        if loader_class is OBJLoader:
            loaders[mesh_format] = OBJLoader(fetch, color=obj_color)
        elif loader_class is STLLoader:
            loaders[mesh_format] = STLLoader(fetch, color=stl_color)
        else:
            loaders[mesh_format] = loader_class(fetch)
    return loaders
