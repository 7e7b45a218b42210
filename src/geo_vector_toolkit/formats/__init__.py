"""
Vector format descriptors.

Registered formats:
- Shapefile (.shp) - encoding fallback through .cpg sidecar
- KML (.kml) / KMZ (.kmz) - UTF-8, description attributes parsed
- GeoPackage (.gpkg)
- GeoJSON (.geojson, .json)

Any other extension is opened with the library's defaults and cannot be
used as an export target.
"""

from geo_vector_toolkit.formats.base import BaseFormat
from geo_vector_toolkit.formats.registry import (
    FormatRegistry,
    get_format,
    get_supported_formats,
    register_format,
    resolve_export_driver,
)

__all__ = [
    "BaseFormat",
    "FormatRegistry",
    "get_format",
    "get_supported_formats",
    "register_format",
    "resolve_export_driver",
]
