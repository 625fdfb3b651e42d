"""Viewer error taxonomy"""

from typing import Optional


class ViewerError(Exception):
    """Base class for viewer errors"""


class LoadError(ViewerError):
    """A mesh could not be loaded; always recoverable"""

    def __init__(self, format_name: str, message: str, cause: Optional[BaseException] = None):
        self.format_name = format_name.upper()
        self.cause = cause
        detail = f"{self.format_name}: {message}"
        if cause is not None:
            detail = f"{detail} ({cause})"
        super().__init__(detail)
        self.message = message


class UnsupportedFormatError(LoadError):
    """No loader exists for the format"""

    def __init__(self, format_name: str):
        super().__init__(format_name, "format is not supported for 3D preview")


class ParseError(LoadError):
    """Bytes of a supported format could not be parsed into renderable geometry"""


class ViewerNotInitializedError(ViewerError):
    """The render surface was never constructed or has been disposed"""


class FullscreenDeniedError(ViewerError):
    """The host refused to enter fullscreen"""
