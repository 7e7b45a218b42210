"""
ESRI Shapefile format descriptor.
"""

from geo_vector_toolkit.formats.base import BaseFormat
from geo_vector_toolkit.formats.registry import register_format


@register_format
class ShapefileFormat(BaseFormat):
    """ESRI Shapefile (.shp with .dbf/.prj/.cpg sidecars)."""

    format_name = "Shapefile"
    file_extensions = [".shp"]
    export_driver = "ESRI Shapefile"
    export_tokens = ["SHAPEFILE", "SHP"]
    encoding_sensitive = True
