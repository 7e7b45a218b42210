"""
GeoJSON format descriptor.
"""

from geo_vector_toolkit.formats.base import BaseFormat
from geo_vector_toolkit.formats.registry import register_format


@register_format
class GeoJSONFormat(BaseFormat):
    """GeoJSON (RFC 7946)."""

    format_name = "GeoJSON"
    file_extensions = [".geojson", ".json"]
    export_driver = "GeoJSON"
    export_tokens = ["GEOJSON"]
