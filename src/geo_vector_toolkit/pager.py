"""
Offset/limit windowing over a layer's features.
"""

from itertools import islice
from typing import Iterator

from pyproj import Transformer

from geo_vector_toolkit import geometry
from geo_vector_toolkit.attributes import extract_properties
from geo_vector_toolkit.backends.base import VectorLayer
from geo_vector_toolkit.models import Feature


def window(
    layer: VectorLayer,
    offset: int = 0,
    limit: int | None = None,
) -> Iterator[tuple[int, object]]:
    """
    Yield (index, raw feature) pairs in native order inside the window.

    Args:
        layer: Layer to read.
        offset: Number of leading features to skip.
        limit: Maximum number of features, or None for all.

    Raises:
        ValueError: If offset or limit is negative.
    """
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    if limit is not None and limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")

    stop = None if limit is None else offset + limit
    return islice(enumerate(layer.features()), offset, stop)


def page(
    layer: VectorLayer,
    offset: int = 0,
    limit: int | None = None,
    transformer: Transformer | None = None,
    embedded_attributes: bool = False,
    include_geometry: bool = True,
) -> list[Feature]:
    """
    Read one page of features.

    Args:
        layer: Layer to read.
        offset: Number of leading features to skip.
        limit: Maximum number of features, or None for all.
        transformer: Optional reprojection applied to each geometry.
        embedded_attributes: Parse KML description attributes.
        include_geometry: Include geometry; otherwise Feature.geometry is None.

    Returns:
        Features in native iteration order. Running past the end of the
        layer just yields fewer features.
    """
    features = []
    for index, raw in window(layer, offset, limit):
        geom = geometry.to_model(raw.geometry, transformer) if include_geometry else None
        feature_id = raw.id if raw.id is not None else index
        features.append(
            Feature(
                id=str(feature_id),
                geometry=geom,
                properties=extract_properties(raw.properties, embedded_attributes),
            )
        )
    return features
