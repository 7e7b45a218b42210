"""
Error taxonomy for vector data access.

Every public operation either returns a payload or raises one of these.
"""

from typing import Any


class VectorToolkitError(Exception):
    """Base class for all errors raised by the toolkit."""

    kind: str = "Unknown"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for JSON payloads."""
        return {"kind": self.kind, "message": self.message}


class FileReadError(VectorToolkitError):
    """A dataset, layer or feature could not be read."""

    kind = "FileReadError"


class FileWriteError(VectorToolkitError):
    """An export failed, including a missing conversion tool."""

    kind = "FileWriteError"


class InvalidFormatError(VectorToolkitError, ValueError):
    """Geometry, CRS, transform or output format problems."""

    kind = "InvalidFormat"


class ParseError(VectorToolkitError, ValueError):
    """JSON (de)serialization failed."""

    kind = "ParseError"


class VectorIOError(VectorToolkitError):
    """Generic filesystem failure."""

    kind = "IoError"


class UnknownError(VectorToolkitError):
    """Anything that does not fit the categories above."""

    kind = "Unknown"
