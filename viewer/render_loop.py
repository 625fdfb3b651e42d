"""
Frame scheduling on the asyncio event loop.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RenderLoop:
    """
    Calls tick() once per frame through event-loop timer callbacks.

    Each callback reschedules the next one, so the loop yields to other
    coroutines between frames. stop() cancels the pending callback.
    """

    def __init__(self, tick: Callable[[], None], frame_rate: float = 60.0):
        if frame_rate <= 0:
            raise ValueError("frame_rate must be positive")
        self._tick = tick
        self.frame_interval = 1.0 / frame_rate
        self.frame_count = 0
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        Begin ticking on the given loop, or the running one.

        Raises:
            RuntimeError: If no event loop is running and none was given.
        """
        if self.running:
            return
        self._loop = loop or asyncio.get_running_loop()
        self._schedule()
        logger.info(f"Render loop started at {1.0 / self.frame_interval:.0f} fps")

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.info(f"Render loop stopped after {self.frame_count} frames")

    def _schedule(self) -> None:
        self._handle = self._loop.call_later(self.frame_interval, self._on_frame)

    def _on_frame(self) -> None:
        if self._handle is None:
            return
        try:
            self._tick()
            self.frame_count += 1
        except Exception as e:
            logger.exception(f"Render tick failed: {e}")
        if self._handle is not None:
            self._schedule()
