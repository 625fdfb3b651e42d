"""
Viewer façade: sequences loading, normalisation and camera fitting, and
exposes the interactive operations (fit, reset, orbit, wireframe, fullscreen).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from core.config import ViewerConfig

from .camera import CameraController, PerspectiveCamera
from .errors import (
    FullscreenDeniedError,
    LoadError,
    UnsupportedFormatError,
    ViewerNotInitializedError,
)
from .formats import MeshFormat, UnsupportedFormat, resolve_format
from .host import SnapshotRenderer, ViewerHost
from .loaders import Fetcher, MeshLoader, create_loaders
from .materials import MaterialNormalizer
from .render_loop import RenderLoop
from .scene import SceneManager, SceneObject

logger = logging.getLogger(__name__)

FALLBACK_ICON = "📦"


@dataclass
class Notification:
    """Transient user-visible message"""

    level: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"level": self.level, "message": self.message}


@dataclass
class FallbackPreview:
    """Static preview shown instead of a 3D view"""

    label: str
    title: str
    icon: str = FALLBACK_ICON
    message: str = "3D preview unavailable"

    def to_dict(self) -> Dict[str, str]:
        return {
            "icon": self.icon,
            "label": self.label,
            "title": self.title,
            "message": self.message,
        }


@dataclass
class LoadOutcome:
    """Result of load_by_format as seen by the UI"""

    status: str
    format_label: str
    notification: Optional[Notification] = None
    fallback: Optional[FallbackPreview] = None
    error: Optional[LoadError] = None

    @property
    def loaded(self) -> bool:
        return self.status == "loaded"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "format": self.format_label,
            "notification": self.notification.to_dict() if self.notification else None,
            "fallback": self.fallback.to_dict() if self.fallback else None,
            "error": type(self.error).__name__ if self.error else None,
        }


class Viewer:
    """
    One interactive 3D viewer.

    All state (current object, wireframe flag, camera, render loop) lives on
    the instance. The render surface is created by attach() or start();
    until then, and after dispose(), operations raise
    ViewerNotInitializedError.
    """

    def __init__(self, fetch: Fetcher, config: Optional[ViewerConfig] = None):
        self.config = config or ViewerConfig()

        self.normalizer = MaterialNormalizer()
        self.scene_manager = SceneManager(
            self.normalizer,
            reference_size=self.config.reference_size,
            background=self.config.background_color,
        )
        self.camera = PerspectiveCamera(
            fov=self.config.fov,
            aspect=self.config.viewport_width / self.config.viewport_height,
            near=self.config.near,
            far=self.config.far,
        )
        self.camera_controller = CameraController(
            self.camera,
            damping_factor=self.config.damping_factor,
            fit_direction=self.config.fit_direction,
        )
        self.loaders: Dict[MeshFormat, MeshLoader] = create_loaders(
            fetch, obj_color=self.config.obj_color, stl_color=self.config.stl_color
        )
        self.render_loop = RenderLoop(self.render_frame, frame_rate=self.config.frame_rate)

        self.host: Optional[ViewerHost] = None
        self.renderer: Optional[SnapshotRenderer] = None
        self.fallback: Optional[FallbackPreview] = None

    # Lifecycle

    @property
    def initialized(self) -> bool:
        return self.renderer is not None

    def attach(
        self,
        host: Optional[ViewerHost] = None,
        renderer: Optional[SnapshotRenderer] = None,
    ) -> None:
        """Create the render surface on a host element"""
        if self.initialized:
            return
        self.host = host or ViewerHost(
            width=self.config.viewport_width,
            height=self.config.viewport_height,
            screen_width=self.config.screen_width,
            screen_height=self.config.screen_height,
            allow_fullscreen=self.config.allow_fullscreen,
        )
        self.renderer = renderer or SnapshotRenderer(self.host.width, self.host.height)
        self._apply_host_size()
        logger.info(f"Viewer attached at {self.host.width}x{self.host.height}")

    def start(
        self,
        host: Optional[ViewerHost] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        """Attach if needed and start the render loop"""
        self.attach(host)
        self.render_loop.start(loop)

    def dispose(self) -> None:
        """Stop rendering and release the scene"""
        self.render_loop.stop()
        self.scene_manager.clear()
        self.renderer = None
        logger.info("Viewer disposed")

    def _require_surface(self) -> None:
        if not self.initialized:
            raise ViewerNotInitializedError(
                "3D viewer not initialized. Please refresh the page."
            )

    # Rendering

    def render_frame(self) -> None:
        """One render-loop tick: advance control damping, then draw"""
        if self.renderer is None:
            return
        self.camera_controller.controls.update()
        self.renderer.render(self.scene_manager.scene, self.camera)

    def resize(self, width: int, height: int) -> None:
        """Handle a host resize; camera and renderer are updated before returning"""
        self._require_surface()
        self.host.set_size(width, height)
        self._apply_host_size()

    def _apply_host_size(self) -> None:
        width, height = self.host.width, self.host.height
        self.camera_controller.resize(width, height)
        self.renderer.set_size(width, height)

    # Loading

    @property
    def current_object(self) -> Optional[SceneObject]:
        return self.scene_manager.current

    async def load_by_format(
        self,
        format: Union[str, MeshFormat],
        locator: str,
        title: str = "",
    ) -> LoadOutcome:
        """
        Load the file at locator with the loader for format, then adopt it
        and frame it. Unsupported formats and load failures produce a
        fallback preview and a notification instead of raising.

        Raises:
            ViewerNotInitializedError: If there is no render surface.
        """
        self._require_surface()
        mesh_format = resolve_format(format)

        if isinstance(mesh_format, UnsupportedFormat):
            error = UnsupportedFormatError(mesh_format.label)
            logger.warning(f"No preview loader for {mesh_format.label}: {locator}")
            return self._show_fallback(
                mesh_format.label,
                title,
                Notification(
                    "warning",
                    f"Format .{mesh_format.label} is not yet supported for 3D preview. "
                    "Download to view in a compatible viewer.",
                ),
                error,
            )

        result = await self.loaders[mesh_format].load(locator)

        # The viewer may have been disposed while the fetch was pending
        self._require_surface()

        if not result.ok:
            return self._show_fallback(
                mesh_format.label,
                title,
                Notification("error", f"Failed to load 3D model: {result.error.message}"),
                result.error,
            )

        self.scene_manager.adopt(result.scene_object)
        self.fallback = None
        self.fit_to_frame()

        return LoadOutcome(status="loaded", format_label=mesh_format.label)

    def _show_fallback(
        self,
        label: str,
        title: str,
        notification: Notification,
        error: LoadError,
    ) -> LoadOutcome:
        self.fallback = FallbackPreview(label=label, title=title)
        return LoadOutcome(
            status="fallback",
            format_label=label,
            notification=notification,
            fallback=self.fallback,
            error=error,
        )

    # UI operations

    def fit_to_frame(self) -> Notification:
        self._require_surface()
        current = self.current_object
        box = current.bounding_box() if current is not None else None
        if not self.camera_controller.fit_to_frame(box):
            return Notification("info", "No model loaded")
        return Notification("info", "View fitted to model")

    def reset_view(self) -> Notification:
        notification = self.fit_to_frame()
        if self.current_object is None:
            return notification
        return Notification("info", "View reset")

    def orbit(self, delta_theta: float, delta_phi: float) -> None:
        """Queue a rotation about the pivot; applied over the next frames"""
        self._require_surface()
        self.camera_controller.controls.rotate(delta_theta, delta_phi)

    def pan(self, delta_x: float, delta_y: float) -> None:
        self._require_surface()
        self.camera_controller.controls.pan(delta_x, delta_y)

    def zoom(self, factor: float) -> None:
        """
        Queue a dolly of the orbit radius; factor > 1 moves away from the pivot.

        Raises:
            ValueError: If factor is not positive.
        """
        self._require_surface()
        self.camera_controller.controls.dolly(factor)

    def toggle_wireframe(self) -> Notification:
        self._require_surface()
        enabled = self.normalizer.toggle_wireframe(self.current_object)
        return Notification("info", "Wireframe mode enabled" if enabled else "Solid mode enabled")

    def toggle_fullscreen(self) -> Notification:
        """
        Enter or leave fullscreen. A refusal from the host is logged and
        reported, never raised.
        """
        self._require_surface()
        if not self.host.is_fullscreen:
            try:
                self.host.request_fullscreen()
            except FullscreenDeniedError as e:
                logger.error(f"Error attempting to enable fullscreen: {e}")
                return Notification("warning", f"Fullscreen unavailable: {e}")
            message = "Entered fullscreen"
        else:
            self.host.exit_fullscreen()
            message = "Exited fullscreen"

        self._apply_host_size()
        return Notification("info", message)

    # State

    def view_state(self) -> Dict[str, Any]:
        """Serializable snapshot of everything a client needs to draw the view"""
        self._require_surface()
        current = self.current_object
        return {
            "frame": self.render_loop.frame_count,
            "rendering": self.render_loop.running,
            "viewport": {
                "width": self.host.width,
                "height": self.host.height,
                "fullscreen": self.host.is_fullscreen,
            },
            "background": f"#{self.scene_manager.scene.background:06x}",
            "camera": self.camera.to_dict(),
            "pivot": self.camera_controller.controls.target.tolist(),
            "wireframe": self.normalizer.wireframe_mode,
            "lights": [light.to_dict() for light in self.scene_manager.scene.lights],
            "model": current.to_dict() if current is not None else None,
            "fallback": self.fallback.to_dict() if self.fallback else None,
        }
