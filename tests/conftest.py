"""
Test configuration and utilities.

Provides common fixtures for the test suite: an application client bound to
a temporary upload directory and SQLite database, in-memory mesh files and
an in-memory fetcher for driving the viewer without touching the disk.
"""

import asyncio
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pytest
import trimesh
from fastapi.testclient import TestClient

import core.config as config_module
from api.main import app
from core.config import LoggingConfig, Settings, StorageConfig, ViewerConfig
from viewer import Viewer

STL_RECORD_DTYPE = np.dtype(
    [
        ("normals", "<f4", (3,)),
        ("vertices", "<f4", (3, 3)),
        ("attributes", "<u2"),
    ]
)

# Off-origin placement so centring is observable
CUBE_OFFSET = (10.0, -3.0, 4.0)


def make_binary_stl(triangles: np.ndarray) -> bytes:
    """Binary STL with every stored facet normal left at zero"""
    records = np.zeros(len(triangles), dtype=STL_RECORD_DTYPE)
    records["vertices"] = triangles
    header = b"binary stl written by tests".ljust(80, b" ")
    return header + np.uint32(len(triangles)).tobytes() + records.tobytes()


def make_ascii_stl(solids: Dict[str, np.ndarray]) -> bytes:
    """ASCII STL with one named solid per entry, facet normals left at zero"""
    lines = []
    for name, triangles in solids.items():
        lines.append(f"solid {name}")
        for triangle in triangles:
            lines.append("  facet normal 0 0 0")
            lines.append("    outer loop")
            for x, y, z in triangle:
                lines.append(f"      vertex {x:.6f} {y:.6f} {z:.6f}")
            lines.append("    endloop")
            lines.append("  endfacet")
        lines.append(f"endsolid {name}")
    return ("\n".join(lines) + "\n").encode("ascii")


class MemoryFetcher:
    """
    Fetcher serving bytes from a dict.

    A locator with an asyncio.Event in `gates` blocks until the event is set,
    which lets tests hold one load open while another completes.
    """

    def __init__(self, files: Optional[Dict[str, bytes]] = None):
        self.files = dict(files or {})
        self.gates: Dict[str, asyncio.Event] = {}
        self.calls: List[str] = []

    async def __call__(self, locator: str) -> bytes:
        self.calls.append(locator)
        gate = self.gates.get(locator)
        if gate is not None:
            await gate.wait()
        if locator not in self.files:
            raise FileNotFoundError(f"Mesh file not found: {locator}")
        return self.files[locator]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    temp_path = tempfile.mkdtemp()
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def cube_stl_bytes():
    """2x2x2 cube away from the origin, stored with zero normals"""
    cube = trimesh.creation.box(extents=(2.0, 2.0, 2.0))
    return make_binary_stl(cube.triangles + np.array(CUBE_OFFSET))


@pytest.fixture
def box_obj_bytes():
    """1x2x3 box as a material-less OBJ"""
    text = trimesh.creation.box(extents=(1.0, 2.0, 3.0)).export(file_type="obj")
    return text.encode("utf-8") if isinstance(text, str) else text


@pytest.fixture
def box_glb_bytes():
    return trimesh.creation.box(extents=(1.0, 1.0, 1.0)).export(file_type="glb")


@pytest.fixture
def box_gltf_bytes():
    """1x1x1 box as a glTF document with its buffers embedded as data URIs"""
    exported = trimesh.creation.box(extents=(1.0, 1.0, 1.0)).export(
        file_type="gltf", embed_buffers=True
    )
    if isinstance(exported, dict):
        exported = next(v for k, v in exported.items() if k.endswith(".gltf"))
    return exported.encode("utf-8") if isinstance(exported, str) else exported


@pytest.fixture
def two_solid_stl_bytes():
    """ASCII STL holding two unit cubes 10 apart on x, as two separate solids"""
    first = trimesh.creation.box(extents=(1.0, 1.0, 1.0))
    second = first.copy()
    second.apply_translation((10.0, 0.0, 0.0))
    return make_ascii_stl({"left": first.triangles, "right": second.triangles})


@pytest.fixture
def fetcher(cube_stl_bytes, box_obj_bytes, box_glb_bytes, box_gltf_bytes, two_solid_stl_bytes):
    return MemoryFetcher(
        {
            "/uploads/cube.stl": cube_stl_bytes,
            "/uploads/pair.stl": two_solid_stl_bytes,
            "/uploads/box.obj": box_obj_bytes,
            "/uploads/box.glb": box_glb_bytes,
            "/uploads/box.gltf": box_gltf_bytes,
            "/uploads/garbage.stl": b"this is not a mesh file at all",
            "/uploads/empty.obj": b"",
        }
    )


@pytest.fixture
def viewer(fetcher):
    """Viewer with a render surface but no running render loop"""
    mesh_viewer = Viewer(fetch=fetcher, config=ViewerConfig())
    mesh_viewer.attach()
    yield mesh_viewer
    mesh_viewer.dispose()


@pytest.fixture
def app_settings(temp_dir):
    """Point the application at a throwaway upload dir and database"""
    original = config_module.settings
    config_module.settings = Settings(
        logging=LoggingConfig(file=str(Path(temp_dir) / "logs" / "app.log")),
        storage=StorageConfig(
            upload_dir=str(Path(temp_dir) / "uploads"),
            database_url=f"sqlite:///{Path(temp_dir) / 'test.db'}",
        ),
        viewer=ViewerConfig(frame_rate=30),
    )

    yield config_module.settings

    config_module.settings = original


@pytest.fixture
def test_client(app_settings):
    """Test client with the application lifespan running"""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def upload_mesh(test_client):
    """POST a mesh through the API and return the response"""

    def _upload(title, filename, content, tags=None):
        data = {"title": title}
        if tags is not None:
            data["tags"] = tags
        return test_client.post(
            "/api/meshes",
            data=data,
            files={"file": (filename, content, "application/octet-stream")},
        )

    return _upload


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "api: marks tests as API tests")
    config.addinivalue_line("markers", "viewer: marks tests of the 3D viewer")
