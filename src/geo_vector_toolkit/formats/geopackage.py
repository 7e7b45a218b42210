"""
GeoPackage format descriptor.
"""

from geo_vector_toolkit.formats.base import BaseFormat
from geo_vector_toolkit.formats.registry import register_format


@register_format
class GeoPackageFormat(BaseFormat):
    """OGC GeoPackage, usually holding several layers."""

    format_name = "GeoPackage"
    file_extensions = [".gpkg"]
    export_driver = "GPKG"
    export_tokens = ["GPKG"]
