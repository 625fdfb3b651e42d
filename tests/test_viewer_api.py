"""
API tests for the viewer endpoints, running against the application's
viewer instance.
"""

import time

import numpy as np
import pytest

from api.main import app

pytestmark = [pytest.mark.api, pytest.mark.viewer]


class TestViewerLoad:
    def test_load_stl(self, test_client, upload_mesh, cube_stl_bytes):
        mesh = upload_mesh("Cube", "cube.stl", cube_stl_bytes).json()

        response = test_client.post(f"/api/viewer/load/{mesh['id']}")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "loaded"
        assert data["format"] == "STL"
        assert data["title"] == "Cube"
        assert data["fallback"] is None
        model = data["state"]["model"]
        assert model["format"] == "STL"
        assert max(model["bounding_box"]["size"]) == pytest.approx(5.0)
        assert data["state"]["pivot"] == pytest.approx([0.0, 0.0, 0.0], abs=1e-5)

    def test_load_obj(self, test_client, upload_mesh, box_obj_bytes):
        mesh = upload_mesh("Box", "box.obj", box_obj_bytes).json()

        data = test_client.post(f"/api/viewer/load/{mesh['id']}").json()

        assert data["status"] == "loaded"
        colors = {m["color"] for node in data["state"]["model"]["nodes"] for m in node["materials"]}
        assert colors == {"#667eea"}

    @pytest.mark.parametrize("filename,label", [("robot.fbx", "FBX"), ("scan.ply", "PLY")])
    def test_download_only_format_falls_back(self, test_client, upload_mesh, filename, label):
        mesh = upload_mesh("Robot", filename, b"binary payload").json()

        data = test_client.post(f"/api/viewer/load/{mesh['id']}").json()

        assert data["status"] == "fallback"
        assert data["format"] == label
        assert data["fallback"] == {
            "icon": "📦",
            "label": label,
            "title": "Robot",
            "message": "3D preview unavailable",
        }
        assert data["notification"]["level"] == "warning"
        assert data["error"] == "UnsupportedFormatError"
        assert data["state"]["fallback"]["label"] == label

    def test_corrupt_file_falls_back(self, test_client, upload_mesh):
        mesh = upload_mesh("Broken", "broken.stl", b"not really an stl").json()

        data = test_client.post(f"/api/viewer/load/{mesh['id']}").json()

        assert data["status"] == "fallback"
        assert data["notification"]["level"] == "error"
        assert data["notification"]["message"].startswith("Failed to load 3D model")
        assert len(data["state"]["lights"]) == 3

    def test_load_unknown_mesh(self, test_client):
        response = test_client.post("/api/viewer/load/999")

        assert response.status_code == 404


class TestViewerOperations:
    def test_initial_state(self, test_client):
        state = test_client.get("/api/viewer/state").json()

        assert state["rendering"] is True
        assert state["background"] == "#f5f7fa"
        assert state["model"] is None
        assert state["viewport"] == {"width": 800, "height": 600, "fullscreen": False}

    def test_fit_and_reset(self, test_client, upload_mesh, cube_stl_bytes):
        fit = test_client.post("/api/viewer/fit").json()
        assert fit["notification"]["message"] == "No model loaded"

        mesh = upload_mesh("Cube", "cube.stl", cube_stl_bytes).json()
        test_client.post(f"/api/viewer/load/{mesh['id']}")

        fit = test_client.post("/api/viewer/fit").json()
        assert fit["notification"]["message"] == "View fitted to model"
        reset = test_client.post("/api/viewer/reset").json()
        assert reset["notification"]["message"] == "View reset"

    def test_reset_without_model(self, test_client):
        reset = test_client.post("/api/viewer/reset").json()

        assert reset["notification"] == {"level": "info", "message": "No model loaded"}

    def test_orbit_moves_camera_on_render_loop(self, test_client, upload_mesh, cube_stl_bytes):
        mesh = upload_mesh("Cube", "cube.stl", cube_stl_bytes).json()
        before = test_client.post(f"/api/viewer/load/{mesh['id']}").json()["state"]
        start = np.array(before["camera"]["position"])
        pivot = np.array(before["pivot"])

        response = test_client.post(
            "/api/viewer/orbit", json={"delta_theta": 0.5, "delta_phi": 0.2}
        )
        assert response.status_code == 200

        position = start
        for _ in range(50):
            time.sleep(0.05)
            position = np.array(test_client.get("/api/viewer/state").json()["camera"]["position"])
            if not np.allclose(position, start):
                break

        assert not np.allclose(position, start)
        assert np.linalg.norm(position - pivot) == pytest.approx(np.linalg.norm(start - pivot))

    def test_zoom_and_pan_accepted(self, test_client):
        zoom = test_client.post("/api/viewer/zoom", json={"factor": 1.5})
        pan = test_client.post("/api/viewer/pan", json={"delta_x": 0.5, "delta_y": -0.5})

        assert zoom.status_code == 200
        assert pan.status_code == 200
        assert "camera" in pan.json()

    @pytest.mark.parametrize("factor", [0, -2])
    def test_zoom_rejects_non_positive_factor(self, test_client, factor):
        response = test_client.post("/api/viewer/zoom", json={"factor": factor})

        assert response.status_code == 422

    def test_wireframe_toggle(self, test_client):
        first = test_client.post("/api/viewer/wireframe").json()
        second = test_client.post("/api/viewer/wireframe").json()

        assert first["wireframe"] is True
        assert first["notification"]["message"] == "Wireframe mode enabled"
        assert second["wireframe"] is False
        assert test_client.get("/api/viewer/state").json()["wireframe"] is False

    def test_fullscreen_toggle(self, test_client):
        entered = test_client.post("/api/viewer/fullscreen").json()

        assert entered["fullscreen"] is True
        viewport = test_client.get("/api/viewer/state").json()["viewport"]
        assert (viewport["width"], viewport["height"]) == (1920, 1080)

        exited = test_client.post("/api/viewer/fullscreen").json()
        assert exited["fullscreen"] is False

    def test_resize(self, test_client):
        state = test_client.post("/api/viewer/resize", json={"width": 1000, "height": 500}).json()

        assert state["viewport"]["width"] == 1000
        assert state["camera"]["aspect"] == pytest.approx(2.0)

    def test_resize_rejects_empty_viewport(self, test_client):
        response = test_client.post("/api/viewer/resize", json={"width": 0, "height": 500})

        assert response.status_code == 422

    def test_viewer_unavailable(self, test_client):
        viewer = app.state.viewer
        app.state.viewer = None
        try:
            response = test_client.get("/api/viewer/state")
        finally:
            app.state.viewer = viewer

        assert response.status_code == 503
        assert response.json()["detail"] == "3D viewer not initialized. Please refresh the page."
