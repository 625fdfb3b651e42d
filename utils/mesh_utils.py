"""
Mesh processing utilities for the viewer loaders.
"""

import io
import logging
from typing import Iterator, Optional, Sequence, Tuple

import numpy as np
import trimesh

logger = logging.getLogger(__name__)


def rgb_to_hex(rgb: Sequence[int]) -> int:
    """Pack an (r, g, b[, a]) uint8 colour into 0xRRGGBB"""
    r, g, b = (int(c) for c in rgb[:3])
    return (r << 16) | (g << 8) | b


class MeshProcessor:
    """Utility class for common mesh processing operations."""

    @staticmethod
    def load_scene(data: bytes, file_type: str) -> trimesh.Scene:
        """Parse raw bytes of the given type into a scene."""
        scene = trimesh.load(io.BytesIO(data), file_type=file_type, force="scene")
        logger.debug(
            f"Parsed {file_type} scene with {len(scene.geometry)} geometries"
        )
        return scene

    @staticmethod
    def iter_mesh_nodes(
        scene: trimesh.Scene,
    ) -> Iterator[Tuple[str, np.ndarray, trimesh.Trimesh]]:
        """
        Walk the scene graph, yielding (node name, node-to-scene transform,
        geometry) for every node that carries triangle geometry.
        """
        for node_name in scene.graph.nodes_geometry:
            transform, geometry_name = scene.graph[node_name]
            geometry = scene.geometry.get(geometry_name)
            if not isinstance(geometry, trimesh.Trimesh):
                continue
            if len(geometry.faces) == 0:
                continue
            yield node_name, np.asarray(transform, dtype=np.float64), geometry

    @staticmethod
    def drop_degenerate_faces(mesh: trimesh.Trimesh) -> trimesh.Trimesh:
        """Remove zero-area triangles so every face has a usable normal."""
        valid = mesh.nondegenerate_faces()
        if not valid.all():
            logger.info(f"Dropping {int((~valid).sum())} degenerate faces")
            mesh.update_faces(valid)
            mesh.remove_unreferenced_vertices()
        return mesh

    @staticmethod
    def compute_normals(mesh: trimesh.Trimesh) -> np.ndarray:
        """Compute face and vertex normals; returns the vertex normals."""
        # Accessing the cached properties forces computation from the winding
        _ = mesh.face_normals
        return mesh.vertex_normals

    @staticmethod
    def center_nodes(
        nodes: Sequence[Tuple[np.ndarray, trimesh.Trimesh]],
    ) -> list:
        """
        Shift a group of (transform, mesh) nodes so the centre of their
        combined bounding box sits at the origin.

        The nodes move by one shared offset, so their relative placement is
        kept. Returns the new node transforms in the same order.
        """
        if not nodes:
            return []
        bounds = np.array(
            [MeshProcessor.transformed_bounds(mesh, matrix) for matrix, mesh in nodes]
        )
        center = (bounds[:, 0].min(axis=0) + bounds[:, 1].max(axis=0)) / 2.0
        shift = trimesh.transformations.translation_matrix(-center)
        return [shift @ matrix for matrix, _ in nodes]

    @staticmethod
    def transformed_bounds(mesh: trimesh.Trimesh, matrix: np.ndarray) -> np.ndarray:
        """Axis-aligned (2, 3) bounds of the mesh vertices under a 4x4 transform."""
        points = trimesh.transform_points(mesh.vertices, matrix)
        return np.array([points.min(axis=0), points.max(axis=0)])

    @staticmethod
    def visual_color(mesh: trimesh.Trimesh) -> Tuple[Optional[int], float]:
        """
        Best-effort base colour and opacity from whatever visual the file
        carried: PBR base colour, simple diffuse, or a vertex/face colour.
        """
        visual = getattr(mesh, "visual", None)
        if visual is None:
            return None, 1.0

        rgba = None
        material = getattr(visual, "material", None)
        if material is not None:
            rgba = getattr(material, "main_color", None)
        elif visual.kind in ("vertex", "face"):
            rgba = visual.main_color

        if rgba is None or len(rgba) < 3:
            return None, 1.0

        opacity = float(rgba[3]) / 255.0 if len(rgba) > 3 else 1.0
        return rgb_to_hex(rgba), opacity
