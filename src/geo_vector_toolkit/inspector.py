"""
Layer summaries for single-layer and multi-layer datasets.
"""

import logging
from dataclasses import dataclass

from geo_vector_toolkit import geometry
from geo_vector_toolkit.backends.base import VectorDataset, VectorLayer
from geo_vector_toolkit.crs import CrsNormalizer
from geo_vector_toolkit.errors import FileReadError
from geo_vector_toolkit.models import (
    Extent,
    FieldDescriptor,
    LayerInfo,
    MultiLayerVectorInfo,
)

logger = logging.getLogger(__name__)


@dataclass
class LayerSummary:
    """Per-layer facts shared by VectorInfo and LayerInfo."""

    name: str
    feature_count: int
    geometry_type: str
    fields: list[FieldDescriptor]
    extent: Extent
    projection: str | None


def first_geometry_type(layer: VectorLayer) -> str:
    """Geometry type of the first feature, or 'Unknown'."""
    first = next(iter(layer.features()), None)
    if first is None:
        return "Unknown"
    return geometry.geometry_type(first.geometry)


def describe_layer(layer: VectorLayer, normalizer: CrsNormalizer) -> LayerSummary:
    """
    Summarize a layer with its extent normalized to WGS84.

    Raises:
        FileReadError: If the extent, schema or features cannot be read.
        InvalidFormatError: If the CRS or its transform is invalid.
    """
    try:
        bounds = layer.extent()
    except Exception as e:
        raise FileReadError(f"Cannot read extent of layer {layer.name!r}: {e}") from e

    decision = normalizer.decide(layer.spatial_reference())
    extent = normalizer.normalize_extent(bounds, decision)

    try:
        feature_count = layer.feature_count()
        fields = [FieldDescriptor(name=name, field_type=ftype) for name, ftype in layer.fields()]
        geometry_type = first_geometry_type(layer)
    except Exception as e:
        raise FileReadError(f"Cannot read layer {layer.name!r}: {e}") from e

    return LayerSummary(
        name=layer.name,
        feature_count=feature_count,
        geometry_type=geometry_type,
        fields=fields,
        extent=extent,
        projection=decision.wkt,
    )


class MultiLayerInspector:
    """
    Summarizes every layer of a container dataset.

    A layer that cannot be opened or read is logged and skipped so one bad
    sublayer does not hide the others; layer_count still counts it.
    """

    def __init__(self, normalizer: CrsNormalizer | None = None) -> None:
        self.normalizer = normalizer or CrsNormalizer()

    def inspect(self, dataset: VectorDataset, path: str | None = None) -> MultiLayerVectorInfo:
        """
        Inspect all layers of an open dataset.

        Args:
            dataset: Open dataset.
            path: Path to report; defaults to dataset.path.

        Returns:
            MultiLayerVectorInfo with one LayerInfo per readable layer.
        """
        layer_count = dataset.layer_count
        logger.info("Dataset has %d layer(s)", layer_count)

        info = MultiLayerVectorInfo(path=path or dataset.path, layer_count=layer_count)

        for index in range(layer_count):
            try:
                layer = dataset.layer(index)
            except Exception as e:
                logger.warning("Skipping layer %d: cannot open: %s", index, e)
                continue

            try:
                summary = describe_layer(layer, self.normalizer)
            except FileReadError as e:
                logger.warning("Skipping layer %d (%s): %s", index, layer.name, e)
                continue

            logger.info(
                "Layer %d: %s (%d features)", index, summary.name, summary.feature_count
            )
            if index == 0:
                info.projection = summary.projection

            info.layers.append(
                LayerInfo(
                    name=summary.name,
                    index=index,
                    feature_count=summary.feature_count,
                    geometry_type=summary.geometry_type,
                    fields=summary.fields,
                    extent=summary.extent,
                )
            )

        layer_zero_read = bool(info.layers) and info.layers[0].index == 0
        if layer_count > 0 and not layer_zero_read:
            info.projection = self._first_layer_projection(dataset)

        return info

    def _first_layer_projection(self, dataset: VectorDataset) -> str | None:
        """WKT of layer 0 even when that layer was skipped."""
        try:
            definition = dataset.layer(0).spatial_reference()
            return self.normalizer.decide(definition).wkt
        except Exception as e:
            logger.warning("Cannot read CRS of layer 0: %s", e)
            return None
