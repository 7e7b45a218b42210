"""
Format registry for extension lookup and export driver resolution.
"""

from pathlib import Path
from typing import Any

from geo_vector_toolkit.errors import InvalidFormatError
from geo_vector_toolkit.formats.base import BaseFormat


class FormatRegistry:
    """
    Registry for vector format descriptors.

    Maps file extensions to formats for reading and format tokens to
    OGR driver names for export. Only registered formats can be exported.
    """

    _formats: dict[str, type[BaseFormat]] = {}
    _extension_map: dict[str, str] = {}
    _token_map: dict[str, str] = {}

    @classmethod
    def register(cls, format_class: type[BaseFormat]) -> type[BaseFormat]:
        """
        Register a format class.

        Can be used as a decorator:
            @FormatRegistry.register
            class MyFormat(BaseFormat):
                ...

        Args:
            format_class: The format class to register.

        Returns:
            The same format class (for decorator use).
        """
        format_name = format_class.format_name.lower()
        cls._formats[format_name] = format_class

        for ext in format_class.file_extensions:
            cls._extension_map[ext.lower()] = format_name
        for token in format_class.export_tokens:
            cls._token_map[token.upper()] = format_name

        return format_class

    @classmethod
    def get_format(cls, file_path: str | Path) -> type[BaseFormat] | None:
        """
        Look up the format of a file by extension.

        Args:
            file_path: File path to inspect.

        Returns:
            The format class, or None when the extension is not registered
            (such files are opened with library defaults).
        """
        suffix = Path(file_path).suffix.lower()
        format_name = cls._extension_map.get(suffix)
        if format_name is None:
            return None
        return cls._formats[format_name]

    @classmethod
    def resolve_export_driver(cls, token: str) -> str:
        """
        Map an export format token to its OGR driver name.

        Args:
            token: Format token such as "KML", "KMZ", "GeoJSON", "SHP" or "GPKG".

        Returns:
            The OGR driver name.

        Raises:
            InvalidFormatError: If the token is not supported.
        """
        format_name = cls._token_map.get(token.strip().upper())
        if format_name is None:
            raise InvalidFormatError(
                f"Unsupported export format: {token}. "
                f"Supported: {', '.join(sorted(cls._token_map))}"
            )
        return cls._formats[format_name].export_driver

    @classmethod
    def get_supported_formats(cls) -> list[dict[str, Any]]:
        """
        Get information about all registered formats.

        Returns:
            List of format info dictionaries.
        """
        return [fmt.get_info() for _, fmt in sorted(cls._formats.items())]


# Convenience functions
def get_format(file_path: str | Path) -> type[BaseFormat] | None:
    """Get a format by file path. See FormatRegistry.get_format."""
    return FormatRegistry.get_format(file_path)


def resolve_export_driver(token: str) -> str:
    """Resolve an export token. See FormatRegistry.resolve_export_driver."""
    return FormatRegistry.resolve_export_driver(token)


def get_supported_formats() -> list[dict[str, Any]]:
    """Get supported formats. See FormatRegistry.get_supported_formats."""
    return FormatRegistry.get_supported_formats()


def register_format(format_class: type[BaseFormat]) -> type[BaseFormat]:
    """Register a format. See FormatRegistry.register."""
    return FormatRegistry.register(format_class)


def _register_builtin_formats() -> None:
    """Register all built-in formats."""
    # Import formats to trigger registration
    from geo_vector_toolkit.formats import (  # noqa: F401
        geojson,
        geopackage,
        kml,
        shapefile,
    )


# Register built-in formats on module load
_register_builtin_formats()
