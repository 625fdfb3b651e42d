"""
Scene graph, loaded scene objects and the scene manager.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Union

import numpy as np
import trimesh

from utils.mesh_utils import MeshProcessor

from .materials import MaterialNormalizer, MaterialSlot, iter_materials

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_SIZE = 5.0


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounding box"""

    min: Tuple[float, float, float]
    max: Tuple[float, float, float]

    @classmethod
    def from_bounds(cls, bounds: np.ndarray) -> "BoundingBox":
        return cls(tuple(float(v) for v in bounds[0]), tuple(float(v) for v in bounds[1]))

    @property
    def center(self) -> np.ndarray:
        return (np.asarray(self.min) + np.asarray(self.max)) / 2.0

    @property
    def size(self) -> np.ndarray:
        return np.asarray(self.max) - np.asarray(self.min)

    @property
    def max_dimension(self) -> float:
        return float(self.size.max())

    def to_dict(self) -> dict:
        return {
            "min": list(self.min),
            "max": list(self.max),
            "center": self.center.tolist(),
            "size": self.size.tolist(),
        }


@dataclass
class MeshNode:
    """A renderable primitive: geometry, its placement inside the object, material(s)"""

    name: str
    geometry: trimesh.Trimesh
    material: MaterialSlot
    transform: np.ndarray = field(default_factory=lambda: np.eye(4))
    cast_shadow: bool = True
    receive_shadow: bool = True


class SceneObject:
    """
    A loaded model: mesh nodes flattened from the file's scene graph, plus an
    object-level translation and uniform scale.
    """

    def __init__(self, nodes: List[MeshNode], source_format: str, name: str = "model"):
        self.nodes = nodes
        self.source_format = source_format
        self.name = name
        self.position = np.zeros(3)
        self.scale = 1.0
        self._bounds_key: Optional[tuple] = None
        self._bounds: Optional[BoundingBox] = None

    def traverse(self) -> Iterator[MeshNode]:
        yield from self.nodes

    @property
    def matrix(self) -> np.ndarray:
        """Object-to-world transform"""
        matrix = np.eye(4)
        matrix[:3, :3] *= self.scale
        matrix[:3, 3] = self.position
        return matrix

    def bounding_box(self) -> BoundingBox:
        """World-space bounding box of every node under the current transform"""
        key = (tuple(self.position.tolist()), self.scale)
        if self._bounds is not None and self._bounds_key == key:
            return self._bounds

        world = self.matrix
        bounds = [
            MeshProcessor.transformed_bounds(node.geometry, world @ node.transform)
            for node in self.nodes
        ]
        if not bounds:
            raise ValueError("Scene object has no geometry")
        stacked = np.concatenate(bounds)
        self._bounds = BoundingBox.from_bounds(
            np.array([stacked.min(axis=0), stacked.max(axis=0)])
        )
        self._bounds_key = key
        return self._bounds

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "format": self.source_format,
            "position": self.position.tolist(),
            "scale": self.scale,
            "bounding_box": self.bounding_box().to_dict(),
            "nodes": [
                {
                    "name": node.name,
                    "materials": [m.to_dict() for m in iter_materials(node.material)],
                }
                for node in self.nodes
            ],
        }


@dataclass(frozen=True)
class Light:
    kind: str
    color: int
    intensity: float
    position: Optional[Tuple[float, float, float]] = None
    cast_shadow: bool = False
    shadow_map_size: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "color": f"#{self.color:06x}",
            "intensity": self.intensity,
            "position": list(self.position) if self.position else None,
            "cast_shadow": self.cast_shadow,
        }


def default_lighting_rig() -> Tuple[Light, ...]:
    """Ambient fill, a shadow-casting key light and a point light"""
    return (
        Light("ambient", 0xFFFFFF, 0.6),
        Light(
            "directional",
            0xFFFFFF,
            0.8,
            position=(5.0, 10.0, 7.0),
            cast_shadow=True,
            shadow_map_size=2048,
        ),
        Light("point", 0xFFFFFF, 0.5, position=(-5.0, 5.0, 5.0)),
    )


SceneChild = Union[Light, SceneObject]


class SceneGraph:
    """Root container the renderer draws"""

    def __init__(self, background: int = 0xF5F7FA):
        self.background = background
        self.children: List[SceneChild] = []

    def add(self, child: SceneChild) -> None:
        if any(existing is child for existing in self.children):
            return
        self.children.append(child)

    def remove(self, child: SceneChild) -> None:
        self.children = [existing for existing in self.children if existing is not child]

    @property
    def lights(self) -> List[Light]:
        return [c for c in self.children if isinstance(c, Light)]

    @property
    def models(self) -> List[SceneObject]:
        return [c for c in self.children if isinstance(c, SceneObject)]


class SceneManager:
    """
    Owns the scene graph and the single current object.

    The lighting rig is added once at construction and never touched again;
    only the current object changes between loads.
    """

    def __init__(
        self,
        normalizer: MaterialNormalizer,
        reference_size: float = DEFAULT_REFERENCE_SIZE,
        background: int = 0xF5F7FA,
    ):
        self.normalizer = normalizer
        self.reference_size = reference_size
        self.scene = SceneGraph(background=background)
        for light in default_lighting_rig():
            self.scene.add(light)
        self.current: Optional[SceneObject] = None

    def adopt(self, scene_object: SceneObject) -> SceneObject:
        """
        Make scene_object the only model in the scene, normalise its
        materials, centre it on the origin and scale it to the reference size.
        """
        if self.current is not None:
            self.scene.remove(self.current)
        # Stray models from any earlier path must not survive either
        for stale in self.scene.models:
            self.scene.remove(stale)

        self.scene.add(scene_object)
        self.current = scene_object

        for node in scene_object.traverse():
            node.cast_shadow = True
            node.receive_shadow = True
        self.normalizer.apply(scene_object)

        self._center_and_scale(scene_object)

        logger.info(
            f"Adopted {scene_object.source_format} object '{scene_object.name}' "
            f"with {len(scene_object.nodes)} mesh nodes"
        )
        return scene_object

    def _center_and_scale(self, scene_object: SceneObject) -> None:
        box = scene_object.bounding_box()
        center = box.center
        max_dim = box.max_dimension

        if not np.isfinite(max_dim) or max_dim <= 0:
            logger.warning(
                f"Object '{scene_object.name}' has degenerate bounds, centring without scaling"
            )
            scene_object.position = scene_object.position - center
            return

        factor = self.reference_size / max_dim
        # world' = factor * (world - center)
        scene_object.position = (scene_object.position - center) * factor
        scene_object.scale = scene_object.scale * factor

    def clear(self) -> None:
        """Remove the current object, leaving only the lighting rig"""
        if self.current is not None:
            self.scene.remove(self.current)
            self.current = None
