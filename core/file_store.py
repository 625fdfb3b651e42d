"""
Mesh file storage layer on the local filesystem.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Union

import aiofiles
import requests
from fastapi import UploadFile

from core.utils.file_utils import get_safe_filename, save_upload_file

logger = logging.getLogger(__name__)


class FileStore:
    """
    Filesystem storage for uploaded mesh files.

    Locator Schema:
        - {public_prefix}/{saved_filename} -> file under upload_dir
        - http(s)://... -> remote file, fetched on read
        - anything else -> plain filesystem path
    """

    def __init__(
        self,
        upload_dir: Union[str, Path],
        public_prefix: str = "/uploads",
        max_upload_size_mb: int = 200,
        request_timeout: float = 30.0,
    ):
        self.upload_dir = Path(upload_dir)
        self.public_prefix = "/" + public_prefix.strip("/")
        self.max_upload_size_mb = max_upload_size_mb
        self.request_timeout = request_timeout
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def locator_for(self, saved_filename: str) -> str:
        """Public locator of a stored file"""
        return f"{self.public_prefix}/{saved_filename}"

    def resolve_path(self, locator: str) -> Optional[Path]:
        """
        Map a locator to a filesystem path.

        Returns None for remote locators.
        """
        if locator.startswith(("http://", "https://")):
            return None
        if locator.startswith(self.public_prefix + "/"):
            name = get_safe_filename(locator[len(self.public_prefix) + 1 :])
            return self.upload_dir / name
        return Path(locator)

    async def save(self, upload_file: UploadFile) -> Dict:
        """
        Store an uploaded file under a generated unique name.

        Returns:
            File info including the public locator.
        """
        file_info = await save_upload_file(
            upload_file, str(self.upload_dir), max_size_mb=self.max_upload_size_mb
        )
        file_info["locator"] = self.locator_for(file_info["saved_filename"])
        return file_info

    async def fetch(self, locator: str) -> bytes:
        """
        Read the raw bytes behind a locator.

        Raises:
            FileNotFoundError: If a local file does not exist.
            requests.RequestException: If a remote fetch fails.
        """
        path = self.resolve_path(locator)
        if path is None:
            return await asyncio.to_thread(self._fetch_remote, locator)

        if not path.is_file():
            raise FileNotFoundError(f"Mesh file not found: {locator}")

        async with aiofiles.open(path, "rb") as f:
            return await f.read()

    def _fetch_remote(self, url: str) -> bytes:
        response = requests.get(url, timeout=self.request_timeout)
        response.raise_for_status()
        return response.content

    def delete(self, locator: str) -> bool:
        """
        Best-effort deletion of a stored file.

        Failures are logged, never raised.

        Returns:
            True if a file was removed, False otherwise.
        """
        try:
            path = self.resolve_path(locator)
            if path is None or not path.is_file():
                return False
            if not path.resolve().is_relative_to(self.upload_dir.resolve()):
                logger.warning(f"Refusing to delete file outside upload dir: {path}")
                return False
            os.remove(path)
            logger.info(f"File deleted: {path}")
            return True
        except Exception as e:
            logger.error(f"Error deleting file {locator}: {e}")
            return False
