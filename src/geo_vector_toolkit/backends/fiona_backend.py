"""
Vector backend built on fiona (GDAL/OGR).
"""

import logging
from contextlib import ExitStack
from typing import Iterator

import fiona

from geo_vector_toolkit.backends.base import (
    RawFeature,
    VectorBackend,
    VectorDataset,
    VectorLayer,
)
from geo_vector_toolkit.config import RuntimeConfig

logger = logging.getLogger(__name__)


def _enable_kml_drivers() -> None:
    """Make sure fiona will read KML/KMZ through GDAL."""
    fiona.drvsupport.supported_drivers.setdefault("KML", "r")
    fiona.drvsupport.supported_drivers.setdefault("LIBKML", "r")


class FionaLayer(VectorLayer):
    """Wraps an open fiona Collection."""

    def __init__(self, collection: "fiona.Collection") -> None:
        self._collection = collection
        self.name = collection.name

    def feature_count(self) -> int:
        try:
            return len(self._collection)
        except (TypeError, ValueError):
            # Some drivers cannot report a count without a full scan
            return sum(1 for _ in self._collection)

    def spatial_reference(self) -> str | None:
        wkt = self._collection.crs_wkt
        return wkt or None

    def extent(self) -> tuple[float, float, float, float]:
        minx, miny, maxx, maxy = self._collection.bounds
        return float(minx), float(miny), float(maxx), float(maxy)

    def fields(self) -> list[tuple[str, str]]:
        properties = self._collection.schema.get("properties", {})
        return [(name, str(ftype).split(":")[0]) for name, ftype in properties.items()]

    def features(self) -> Iterator[RawFeature]:
        for feature in self._collection:
            yield RawFeature(
                id=feature.id,
                geometry=feature.geometry,
                properties=dict(feature.properties or {}),
            )


class FionaDataset(VectorDataset):
    """A file opened through fiona; layers are opened on demand."""

    def __init__(
        self,
        path: str,
        encoding: str | None,
        gdal_options: dict[str, str],
    ) -> None:
        self.path = path
        self.encoding = encoding
        self._stack = ExitStack()
        try:
            self._stack.enter_context(fiona.Env(**gdal_options))
            self._layer_names = fiona.listlayers(path)
        except Exception:
            self._stack.close()
            raise

    @property
    def layer_count(self) -> int:
        return len(self._layer_names)

    def layer(self, index: int) -> FionaLayer:
        if index < 0 or index >= len(self._layer_names):
            raise IndexError(f"Layer index {index} out of range (0..{len(self._layer_names) - 1})")

        # fiona treats layer=0 as "the layer named after the file", so open by name
        kwargs = {"layer": self._layer_names[index]}
        if self.encoding:
            kwargs["encoding"] = self.encoding
        collection = self._stack.enter_context(fiona.open(self.path, **kwargs))
        return FionaLayer(collection)

    def probe(self) -> None:
        """Decode the first record so a wrong encoding fails at open time."""
        if not self._layer_names:
            return
        layer = self.layer(0)
        next(iter(layer.features()), None)

    def close(self) -> None:
        self._stack.close()


class FionaBackend(VectorBackend):
    """Backend that reads vector data with fiona."""

    def __init__(self, config: RuntimeConfig | None = None) -> None:
        self.config = config or RuntimeConfig()
        _enable_kml_drivers()

    def open_dataset(self, path: str, encoding: str | None = None) -> FionaDataset:
        dataset = FionaDataset(str(path), encoding or None, self.config.gdal_options())
        try:
            dataset.probe()
        except Exception:
            dataset.close()
            raise
        return dataset

    def drivers(self) -> dict[str, str]:
        with fiona.Env(**self.config.gdal_options()) as env:
            return dict(env.drivers())

    def version(self) -> str:
        return fiona.__gdal_version__
