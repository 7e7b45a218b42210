"""
Geo Vector Toolkit - Read, normalize and convert vector GIS files.

Handles:
- Shapefile (.shp) with .cpg / GBK / UTF-8 encoding fallback
- KML/KMZ (.kml, .kmz) including attributes packed into descriptions
- GeoPackage (.gpkg) and other multi-layer containers
- GeoJSON (.geojson, .json)
- Anything else GDAL can read, with library defaults

Extents and geometries are reprojected to WGS84 longitude/latitude.
"""

from geo_vector_toolkit.cache import InMemorySummaryCache, SummaryCache
from geo_vector_toolkit.config import RuntimeConfig
from geo_vector_toolkit.errors import (
    FileReadError,
    FileWriteError,
    InvalidFormatError,
    ParseError,
    UnknownError,
    VectorIOError,
    VectorToolkitError,
)
from geo_vector_toolkit.formats import get_format, get_supported_formats
from geo_vector_toolkit.models import (
    Extent,
    Feature,
    FieldDescriptor,
    Geometry,
    LayerInfo,
    MultiLayerVectorInfo,
    VectorInfo,
)
from geo_vector_toolkit.service import VectorService

__version__ = "0.1.0"
__all__ = [
    # Core
    "VectorService",
    "RuntimeConfig",
    "SummaryCache",
    "InMemorySummaryCache",
    # Models
    "Extent",
    "Feature",
    "FieldDescriptor",
    "Geometry",
    "LayerInfo",
    "MultiLayerVectorInfo",
    "VectorInfo",
    # Formats
    "get_format",
    "get_supported_formats",
    # Errors
    "VectorToolkitError",
    "FileReadError",
    "FileWriteError",
    "InvalidFormatError",
    "ParseError",
    "VectorIOError",
    "UnknownError",
    # Version
    "__version__",
]
