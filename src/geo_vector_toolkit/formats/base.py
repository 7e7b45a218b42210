"""
Base descriptor for vector file formats.
"""

from pathlib import Path
from typing import Any, List, Optional, Union


class BaseFormat:
    """
    Describes how one vector format family is read and written.

    Subclasses only set class attributes; the registry and the readers
    consult them to decide encoding handling, attribute post-processing
    and the driver used for export.
    """

    # Class-level format metadata
    format_name: str = "Unknown"
    file_extensions: List[str] = []
    export_driver: str = ""
    """OGR driver name passed to the conversion tool."""

    export_tokens: List[str] = []
    """Upper-case format tokens accepted by export."""

    fixed_encoding: Optional[str] = None
    """Encoding mandated by the format, if any."""

    encoding_sensitive: bool = False
    """Whether opening must try candidate encodings in turn."""

    embedded_attributes: bool = False
    """Whether a 'description' field packs extra key/value attributes."""

    @classmethod
    def can_handle(cls, file_path: Union[str, Path]) -> bool:
        """
        Check if this format descriptor applies to the given file.

        Args:
            file_path: Path to the file to check.

        Returns:
            True if the file extension belongs to this format.
        """
        return Path(file_path).suffix.lower() in cls.file_extensions

    @classmethod
    def get_info(cls) -> dict[str, Any]:
        """
        Get format information.

        Returns:
            Dictionary with format metadata.
        """
        return {
            "format_name": cls.format_name,
            "file_extensions": cls.file_extensions,
            "export_driver": cls.export_driver,
            "export_tokens": cls.export_tokens,
            "fixed_encoding": cls.fixed_encoding,
            "encoding_sensitive": cls.encoding_sensitive,
        }
