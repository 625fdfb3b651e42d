"""
Perspective camera, damped orbit controls and bounding-box camera fitting.
"""

import logging
import math
from typing import Optional, Sequence

import numpy as np

from .scene import BoundingBox

logger = logging.getLogger(__name__)

DEFAULT_FIT_DIRECTION = (0.6, 0.6, 0.8)
# Keep the polar angle just off the poles so the up vector stays defined
POLAR_EPSILON = 1e-6


def fit_distance(max_dimension: float, fov_degrees: float) -> float:
    """Distance at which an extent of max_dimension fills the vertical field of view"""
    if max_dimension <= 0 or not math.isfinite(max_dimension):
        raise ValueError(f"max_dimension must be positive and finite, got {max_dimension}")
    if not 0 < fov_degrees < 180:
        raise ValueError(f"fov must be in (0, 180) degrees, got {fov_degrees}")
    return max_dimension / (2 * math.tan(math.radians(fov_degrees) / 2))


class PerspectiveCamera:
    """Pinhole camera with a cached projection matrix"""

    def __init__(
        self,
        fov: float = 75.0,
        aspect: float = 1.0,
        near: float = 0.1,
        far: float = 1000.0,
    ):
        self.fov = fov
        self.aspect = aspect
        self.near = near
        self.far = far
        self.position = np.array([0.0, 0.0, 5.0])
        self.target = np.zeros(3)
        self.up = np.array([0.0, 1.0, 0.0])
        self.projection_matrix = np.eye(4)
        self.update_projection_matrix()

    def update_projection_matrix(self) -> None:
        f = 1.0 / math.tan(math.radians(self.fov) / 2)
        depth = self.near - self.far
        self.projection_matrix = np.array(
            [
                [f / self.aspect, 0.0, 0.0, 0.0],
                [0.0, f, 0.0, 0.0],
                [0.0, 0.0, (self.far + self.near) / depth, 2 * self.far * self.near / depth],
                [0.0, 0.0, -1.0, 0.0],
            ]
        )

    def look_at(self, target: Sequence[float]) -> None:
        self.target = np.asarray(target, dtype=np.float64).copy()

    @property
    def view_matrix(self) -> np.ndarray:
        forward = self.target - self.position
        norm = np.linalg.norm(forward)
        if norm == 0:
            return np.eye(4)
        forward = forward / norm
        right = np.cross(forward, self.up)
        if np.linalg.norm(right) == 0:
            right = np.array([1.0, 0.0, 0.0])
        right = right / np.linalg.norm(right)
        up = np.cross(right, forward)

        view = np.eye(4)
        view[0, :3] = right
        view[1, :3] = up
        view[2, :3] = -forward
        view[:3, 3] = -view[:3, :3] @ self.position
        return view

    def to_dict(self) -> dict:
        return {
            "position": self.position.tolist(),
            "target": self.target.tolist(),
            "fov": self.fov,
            "aspect": self.aspect,
            "near": self.near,
            "far": self.far,
        }


class OrbitControls:
    """
    Orbit/pan/zoom around a pivot with inertial damping.

    Input methods only accumulate deltas; update() moves the camera by a
    damping_factor share of the pending rotation and pan, then decays what is
    left, so motion eases out over several frames.
    """

    def __init__(self, camera: PerspectiveCamera, damping_factor: float = 0.05):
        self.camera = camera
        self.damping_factor = damping_factor
        self.target = np.zeros(3)
        self.min_distance = 0.0
        self.max_distance = math.inf

        self._delta_theta = 0.0
        self._delta_phi = 0.0
        self._pan_offset = np.zeros(3)
        self._scale = 1.0

    def rotate(self, delta_theta: float, delta_phi: float) -> None:
        """Queue an azimuth/polar rotation in radians"""
        self._delta_theta += delta_theta
        self._delta_phi += delta_phi

    def pan(self, delta_x: float, delta_y: float) -> None:
        """Queue a pan in view-plane units"""
        view = self.camera.view_matrix
        right = view[0, :3]
        up = view[1, :3]
        self._pan_offset += right * delta_x + up * delta_y

    def dolly(self, factor: float) -> None:
        """Scale the orbit radius; factor > 1 moves away from the pivot"""
        if factor <= 0:
            raise ValueError("dolly factor must be positive")
        self._scale *= factor

    def stop(self) -> None:
        """Drop any pending motion"""
        self._delta_theta = 0.0
        self._delta_phi = 0.0
        self._pan_offset = np.zeros(3)
        self._scale = 1.0

    def update(self) -> bool:
        """
        Advance the damping integration by one frame.

        Returns:
            True if the camera moved.
        """
        offset = self.camera.position - self.target
        radius = float(np.linalg.norm(offset))
        if radius == 0:
            return False

        # Spherical coordinates around the y-up pivot
        theta = math.atan2(offset[0], offset[2])
        phi = math.acos(max(-1.0, min(1.0, offset[1] / radius)))

        theta += self._delta_theta * self.damping_factor
        phi += self._delta_phi * self.damping_factor
        phi = max(POLAR_EPSILON, min(math.pi - POLAR_EPSILON, phi))

        radius = min(self.max_distance, max(self.min_distance, radius * self._scale))

        pan = self._pan_offset * self.damping_factor
        self.target = self.target + pan

        new_offset = np.array(
            [
                radius * math.sin(phi) * math.sin(theta),
                radius * math.cos(phi),
                radius * math.sin(phi) * math.cos(theta),
            ]
        )
        previous = self.camera.position.copy()
        self.camera.position = self.target + new_offset
        self.camera.look_at(self.target)

        self._delta_theta *= 1 - self.damping_factor
        self._delta_phi *= 1 - self.damping_factor
        self._pan_offset *= 1 - self.damping_factor
        self._scale = 1.0

        return not np.allclose(previous, self.camera.position)


class CameraController:
    """Places the camera around the adopted object and owns the orbit controls"""

    def __init__(
        self,
        camera: PerspectiveCamera,
        damping_factor: float = 0.05,
        fit_direction: Sequence[float] = DEFAULT_FIT_DIRECTION,
    ):
        self.camera = camera
        self.controls = OrbitControls(camera, damping_factor=damping_factor)
        self.fit_direction = np.asarray(fit_direction, dtype=np.float64)

    def fit_to_frame(self, box: Optional[BoundingBox]) -> bool:
        """
        Move the camera so the whole box is in view from an oblique angle and
        re-centre the orbit pivot on it.

        Returns:
            False if there was nothing to frame.
        """
        if box is None:
            return False

        max_dim = box.max_dimension
        if not math.isfinite(max_dim) or max_dim <= 0:
            logger.warning(f"Cannot frame a degenerate bounding box: {box}")
            return False

        center = box.center
        distance = fit_distance(max_dim, self.camera.fov)

        self.camera.position = center + distance * self.fit_direction
        self.camera.look_at(center)
        self.controls.stop()
        self.controls.target = center.copy()
        self.controls.update()

        logger.debug(f"Camera fitted at distance {distance:.3f} from {center.tolist()}")
        return True

    def resize(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Viewport size must be positive, got {width}x{height}")
        self.camera.aspect = width / height
        self.camera.update_projection_matrix()
