"""Tests for the filesystem FileStore and upload helpers"""

import asyncio
import io
from pathlib import Path

import pytest
from fastapi import UploadFile

from core.file_store import FileStore
from core.utils.exceptions import FileUploadError
from core.utils.file_utils import (
    generate_filename,
    get_media_type,
    get_safe_filename,
    save_upload_file,
)

pytestmark = pytest.mark.unit


def make_upload(content: bytes, filename: str) -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=filename)


@pytest.fixture
def store(temp_dir):
    return FileStore(Path(temp_dir) / "uploads", public_prefix="/uploads/")


class TestFileUtils:
    def test_generated_name_keeps_lowercased_extension(self):
        name = generate_filename("My Model.GLB")

        assert name.endswith(".glb")
        assert len(Path(name).stem) == 36

    def test_media_types(self):
        assert get_media_type("a.glb") == "model/gltf-binary"
        assert get_media_type("a.xyz") == "application/octet-stream"

    def test_safe_filename(self):
        assert get_safe_filename('a/b\\c:"d.stl') == "a_b_c__d.stl"

    def test_size_limit(self, temp_dir):
        upload = make_upload(b"x" * 2048, "big.stl")

        with pytest.raises(FileUploadError) as exc_info:
            asyncio.run(save_upload_file(upload, temp_dir, max_size_mb=0))

        assert "exceeds limit" in exc_info.value.reason
        assert list(Path(temp_dir).iterdir()) == []


class TestFileStore:
    def test_save_and_fetch(self, store):
        info = asyncio.run(store.save(make_upload(b"solid cube", "cube.stl")))

        assert info["locator"] == f"/uploads/{info['saved_filename']}"
        assert info["original_filename"] == "cube.stl"
        assert asyncio.run(store.fetch(info["locator"])) == b"solid cube"

    def test_resolve_path(self, store):
        assert store.resolve_path("/uploads/abc.glb") == store.upload_dir / "abc.glb"
        assert store.resolve_path("https://example.com/a.glb") is None
        assert store.resolve_path("/srv/models/a.glb") == Path("/srv/models/a.glb")

    def test_fetch_missing(self, store):
        with pytest.raises(FileNotFoundError):
            asyncio.run(store.fetch("/uploads/missing.obj"))

    def test_delete(self, store):
        info = asyncio.run(store.save(make_upload(b"data", "cube.stl")))

        assert store.delete(info["locator"]) is True
        assert not Path(info["file_path"]).exists()
        assert store.delete(info["locator"]) is False

    def test_delete_refuses_outside_upload_dir(self, store, temp_dir):
        outside = Path(temp_dir) / "keep.stl"
        outside.write_bytes(b"data")

        assert store.delete(str(outside)) is False
        assert outside.exists()
