"""
Geometry conversion to GeoJSON mappings, with optional reprojection.
"""

from typing import Any, Callable

import shapely
from pyproj import Transformer
from pyproj.exceptions import ProjError
from shapely.errors import ShapelyError
from shapely.geometry import mapping, shape

from geo_vector_toolkit.errors import InvalidFormatError
from geo_vector_toolkit.models import Geometry


def _as_lists(value: Any) -> Any:
    """Turn nested tuples into lists so the result is plain JSON."""
    if isinstance(value, (list, tuple)):
        return [_as_lists(v) for v in value]
    if isinstance(value, dict):
        return {k: _as_lists(v) for k, v in value.items()}
    return value


def _projector(transformer: Transformer) -> Callable[[Any], Any]:
    """Adapt a pyproj transformer to shapely.transform's (N, 2|3) coordinate arrays."""

    def project(coords: Any) -> Any:
        if len(coords) == 0:
            return coords
        return list(zip(*transformer.transform(*coords.T, errcheck=True)))

    return project


def geo_interface(raw: Any) -> dict[str, Any] | None:
    """Read a geometry as a GeoJSON-like dict."""
    if raw is None:
        return None
    data = getattr(raw, "__geo_interface__", raw)
    if not isinstance(data, dict):
        data = dict(data)
    return data


def to_geojson(raw: Any, transformer: Transformer | None = None) -> dict[str, Any] | None:
    """
    Convert a source geometry to a GeoJSON geometry dict.

    The source object is never modified; reprojection works on a copy.

    Args:
        raw: Geometry mapping or object with __geo_interface__, or None.
        transformer: Optional transformer to apply.

    Returns:
        GeoJSON geometry dict, or None for a missing geometry.

    Raises:
        InvalidFormatError: If the geometry cannot be converted or transformed.
    """
    data = geo_interface(raw)
    if data is None:
        return None

    if transformer is None:
        return _as_lists(data)

    try:
        source = shape(data)
        projected = shapely.transform(source, _projector(transformer), include_z=source.has_z)
        return _as_lists(mapping(projected))
    except ProjError as e:
        raise InvalidFormatError(f"Coordinate transform failed: {e}") from e
    except (ShapelyError, ValueError, TypeError, KeyError) as e:
        raise InvalidFormatError(f"Geometry conversion failed: {e}") from e


def to_model(raw: Any, transformer: Transformer | None = None) -> Geometry:
    """Convert a source geometry to the Geometry model (Null when missing)."""
    return Geometry.from_geojson(to_geojson(raw, transformer))


def geometry_type(raw: Any) -> str:
    """GeoJSON type tag of a source geometry, or 'Unknown'."""
    data = geo_interface(raw)
    if data is None:
        return "Unknown"
    return data.get("type") or "Unknown"
