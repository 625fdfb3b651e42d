"""
The surface the viewer draws into and the renderer that records frames.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import FullscreenDeniedError

logger = logging.getLogger(__name__)


class ViewerHost:
    """
    Host element of the viewer: a viewport size plus fullscreen state.

    Entering fullscreen switches the viewport to the screen size; leaving it
    restores the windowed size.
    """

    def __init__(
        self,
        width: int = 800,
        height: int = 600,
        screen_width: int = 1920,
        screen_height: int = 1080,
        allow_fullscreen: bool = True,
    ):
        self.windowed_size = (width, height)
        self.screen_size = (screen_width, screen_height)
        self.allow_fullscreen = allow_fullscreen
        self.is_fullscreen = False
        self.width, self.height = width, height

    def request_fullscreen(self) -> None:
        """
        Raises:
            FullscreenDeniedError: If the host does not permit fullscreen.
        """
        if not self.allow_fullscreen:
            raise FullscreenDeniedError("Fullscreen request was denied by the host")
        self.is_fullscreen = True
        self.width, self.height = self.screen_size

    def exit_fullscreen(self) -> None:
        self.is_fullscreen = False
        self.width, self.height = self.windowed_size

    def set_size(self, width: int, height: int) -> None:
        """Windowed size change, e.g. a browser resize"""
        self.windowed_size = (width, height)
        if not self.is_fullscreen:
            self.width, self.height = width, height


@dataclass
class FrameSnapshot:
    """What one rendered frame showed"""

    frame: int
    width: int
    height: int
    background: str
    camera: dict
    lights: List[dict] = field(default_factory=list)
    model: Optional[dict] = None


class SnapshotRenderer:
    """
    Renderer that records the state of each frame instead of rasterizing it.
    Browser clients draw from the latest snapshot.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.frames_rendered = 0
        self.last_frame: Optional[FrameSnapshot] = None

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def render(self, scene, camera) -> FrameSnapshot:
        self.frames_rendered += 1
        models = scene.models
        self.last_frame = FrameSnapshot(
            frame=self.frames_rendered,
            width=self.width,
            height=self.height,
            background=f"#{scene.background:06x}",
            camera=camera.to_dict(),
            lights=[light.to_dict() for light in scene.lights],
            model=models[0].to_dict() if models else None,
        )
        return self.last_frame
