"""
KML and KMZ format descriptors.

KML mandates UTF-8, and many producers pack the attribute table of a
placemark into its description text instead of ExtendedData.
"""

from geo_vector_toolkit.formats.base import BaseFormat
from geo_vector_toolkit.formats.registry import register_format


@register_format
class KMLFormat(BaseFormat):
    """Keyhole Markup Language."""

    format_name = "KML"
    file_extensions = [".kml"]
    export_driver = "KML"
    export_tokens = ["KML"]
    fixed_encoding = "UTF-8"
    encoding_sensitive = True
    embedded_attributes = True


@register_format
class KMZFormat(BaseFormat):
    """Zipped KML, written through the LIBKML driver."""

    format_name = "KMZ"
    file_extensions = [".kmz"]
    export_driver = "LIBKML"
    export_tokens = ["KMZ"]
    fixed_encoding = "UTF-8"
    encoding_sensitive = True
    embedded_attributes = True
