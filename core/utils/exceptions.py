"""Custom exceptions for the API layer"""

from typing import Optional


class BaseAPIException(Exception):
    """Base class for exceptions rendered as structured JSON errors"""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class FileUploadError(BaseAPIException):
    """Raised when an uploaded file cannot be accepted or stored"""

    def __init__(self, filename: str, reason: str):
        super().__init__(f"{filename}: {reason}", error_code="FILE_UPLOAD_ERROR")
        self.filename = filename
        self.reason = reason


class MeshNotFoundError(BaseAPIException):
    """Raised when a mesh record does not exist"""

    def __init__(self, mesh_id: int):
        super().__init__(f"Mesh {mesh_id} not found", error_code="MESH_NOT_FOUND")
        self.mesh_id = mesh_id
