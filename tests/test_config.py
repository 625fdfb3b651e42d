"""Tests for configuration loading"""

import pytest
import yaml

from core.config import Settings, ViewerConfig, load_config_from_file

pytestmark = pytest.mark.unit


class TestConfig:
    def test_defaults(self):
        settings = Settings()

        assert settings.viewer.reference_size == 5.0
        assert settings.viewer.fov == 75.0
        assert settings.viewer.background_color == 0xF5F7FA
        assert settings.storage.public_prefix == "/uploads"

    def test_load_from_yaml(self, tmp_path):
        config_path = tmp_path / "system.yaml"
        config_path.write_text(
            yaml.safe_dump(
                {
                    "environment": "production",
                    "storage": {"upload_dir": "/data/uploads", "max_upload_size_mb": 50},
                    "viewer": {"reference_size": 8.0, "allow_fullscreen": False},
                }
            )
        )

        settings = load_config_from_file(str(config_path))

        assert settings.environment == "production"
        assert settings.storage.upload_dir == "/data/uploads"
        assert settings.storage.max_upload_size_mb == 50
        assert settings.viewer.reference_size == 8.0
        assert settings.viewer.allow_fullscreen is False

    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_config_from_file(str(tmp_path / "absent.yaml"))

        assert settings.viewer.frame_rate == 60.0

    @pytest.mark.parametrize(
        "overrides",
        [{"reference_size": 0}, {"fov": -1}, {"damping_factor": 0}, {"damping_factor": 1.5}],
    )
    def test_viewer_validation(self, overrides):
        with pytest.raises(ValueError):
            ViewerConfig(**overrides)
