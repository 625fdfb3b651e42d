"""
Materials and the solid/wireframe shading policy.

Every loader produces different default materials; the normalizer gives all of
them the same opacity and wireframe treatment once they are in the scene.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

logger = logging.getLogger(__name__)

ACCENT_SPECULAR = 0x111111
ACCENT_SHININESS = 200.0


@dataclass
class Material:
    """Renderer-agnostic material description"""

    color: int
    kind: str = "standard"
    specular: Optional[int] = None
    shininess: Optional[float] = None
    wireframe: bool = False
    transparent: bool = False
    opacity: float = 1.0
    name: Optional[str] = None

    @classmethod
    def phong(cls, color: int, name: Optional[str] = None) -> "Material":
        """Shiny Phong material used as the default accent for geometry-only formats"""
        return cls(
            color=color,
            kind="phong",
            specular=ACCENT_SPECULAR,
            shininess=ACCENT_SHININESS,
            name=name,
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind,
            "color": f"#{self.color:06x}",
            "specular": f"#{self.specular:06x}" if self.specular is not None else None,
            "shininess": self.shininess,
            "wireframe": self.wireframe,
            "transparent": self.transparent,
            "opacity": self.opacity,
        }


MaterialSlot = Union[Material, List[Material]]


def iter_materials(slot: Optional[MaterialSlot]) -> Iterator[Material]:
    """Yield the material(s) of a node whether it holds one or a sequence"""
    if slot is None:
        return
    if isinstance(slot, (list, tuple)):
        yield from slot
    else:
        yield slot


class MaterialNormalizer:
    """
    Holds the viewer's wireframe flag and applies it to scene objects.

    The flag is sticky: it is read, never reset, when a new object is
    adopted, so a wireframe view stays wireframe across loads.
    """

    def __init__(self, wireframe_mode: bool = False):
        self.wireframe_mode = wireframe_mode

    def apply(self, scene_object) -> None:
        """Force opaque rendering and the current wireframe flag on every material"""
        for node in scene_object.traverse():
            for material in iter_materials(node.material):
                material.wireframe = self.wireframe_mode
                material.transparent = False
                material.opacity = 1.0

    def toggle_wireframe(self, scene_object=None) -> bool:
        """
        Flip the flag and re-apply it to the current object, if any.

        Returns:
            The new wireframe flag.
        """
        self.wireframe_mode = not self.wireframe_mode
        if scene_object is not None:
            for node in scene_object.traverse():
                for material in iter_materials(node.material):
                    material.wireframe = self.wireframe_mode

        logger.info(f"Wireframe mode {'enabled' if self.wireframe_mode else 'disabled'}")
        return self.wireframe_mode
