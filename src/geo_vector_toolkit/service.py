"""
Query and export operations over vector files.

VectorService is the entry point used by the CLI and by embedding
applications. Every public method either returns a payload or raises a
VectorToolkitError subclass; nothing else escapes.
"""

import functools
import json
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence, TypeVar

from pyproj import Transformer

from geo_vector_toolkit import crs, geometry, pager, shapefile_reader
from geo_vector_toolkit.attributes import extract_properties
from geo_vector_toolkit.backends.base import VectorBackend, VectorDataset, VectorLayer
from geo_vector_toolkit.cache import SummaryCache
from geo_vector_toolkit.config import RuntimeConfig
from geo_vector_toolkit.diagnostics import diagnose
from geo_vector_toolkit.errors import (
    FileReadError,
    ParseError,
    UnknownError,
    VectorIOError,
    VectorToolkitError,
)
from geo_vector_toolkit.exporter import ProcessRunner, VectorExporter
from geo_vector_toolkit.formats import get_format
from geo_vector_toolkit.inspector import MultiLayerInspector, describe_layer
from geo_vector_toolkit.models import Feature, MultiLayerVectorInfo, VectorInfo
from geo_vector_toolkit.opener import DatasetOpener

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _boundary(method: Callable[..., T]) -> Callable[..., T]:
    """Convert anything that is not a toolkit error into one."""

    @functools.wraps(method)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return method(*args, **kwargs)
        except VectorToolkitError:
            raise
        except json.JSONDecodeError as e:
            raise ParseError(f"JSON error: {e}") from e
        except OSError as e:
            raise VectorIOError(f"IO error: {e}") from e
        except Exception as e:
            logger.exception("Unexpected error in %s", method.__name__)
            raise UnknownError(f"Unknown error: {e}") from e

    return wrapper


def _numeric_id(raw_id: Any) -> int:
    """Native feature id as a number for GeoJSON output, 0 when not numeric."""
    if raw_id is None:
        return 0
    try:
        return int(raw_id)
    except (TypeError, ValueError):
        return 0


class VectorService:
    """
    Opens vector files, normalizes them to WGS84 and serves their contents.

    Each call opens its own read-only dataset and closes it before
    returning, so a single service can be shared between threads.

    Example:
        >>> service = VectorService()
        >>> info = service.open_vector_info("rivers.shp")
        >>> table = service.get_attribute_table("rivers.shp", offset=0, limit=50)
    """

    def __init__(
        self,
        config: RuntimeConfig | None = None,
        backend: VectorBackend | None = None,
        cache: SummaryCache | None = None,
        runner: ProcessRunner | None = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            config: Runtime configuration. Defaults to RuntimeConfig.from_env().
            backend: Vector backend. Defaults to the fiona backend.
            cache: Optional cache of loaded Shapefile summaries.
            runner: Process runner for exports. Defaults to subprocess.
        """
        self.config = config or RuntimeConfig.from_env()
        if backend is None:
            from geo_vector_toolkit.backends.fiona_backend import FionaBackend

            backend = FionaBackend(self.config)
        self.backend = backend
        self.cache = cache
        self.opener = DatasetOpener(self.backend)
        self.normalizer = crs.CrsNormalizer()
        self.inspector = MultiLayerInspector(self.normalizer)
        self.exporter = VectorExporter(self.config, self.backend, runner)

    # Helpers

    def _layer(self, dataset: VectorDataset, index: int) -> VectorLayer:
        try:
            return dataset.layer(index)
        except Exception as e:
            raise FileReadError(f"Cannot get layer {index} of {dataset.path}: {e}") from e

    def _transformer(self, layer: VectorLayer) -> Transformer | None:
        decision = self.normalizer.decide(layer.spatial_reference())
        return self.normalizer.transformer_for(decision)

    @staticmethod
    def _embedded_attributes(path: str | Path) -> bool:
        fmt = get_format(path)
        return fmt is not None and fmt.embedded_attributes

    def _page(
        self,
        path: str | Path,
        offset: int | None,
        limit: int | None,
        include_geometry: bool,
    ) -> tuple[list[Feature], int]:
        with self.opener.open(path) as dataset:
            layer = self._layer(dataset, 0)
            transformer = self._transformer(layer) if include_geometry else None
            try:
                total = layer.feature_count()
                features = pager.page(
                    layer,
                    offset=offset or 0,
                    limit=limit,
                    transformer=transformer,
                    embedded_attributes=self._embedded_attributes(path),
                    include_geometry=include_geometry,
                )
            except (VectorToolkitError, ValueError):
                raise
            except Exception as e:
                raise FileReadError(f"Cannot read features of {path}: {e}") from e
        return features, total

    def _feature_collection(self, path: str | Path, layer: VectorLayer) -> dict[str, Any]:
        transformer = self._transformer(layer)
        embedded = self._embedded_attributes(path)

        features = []
        try:
            for _, raw in pager.window(layer):
                features.append(
                    {
                        "type": "Feature",
                        "id": _numeric_id(raw.id),
                        "geometry": geometry.to_geojson(raw.geometry, transformer),
                        "properties": extract_properties(raw.properties, embedded),
                    }
                )
        except VectorToolkitError:
            raise
        except Exception as e:
            raise FileReadError(f"Cannot read features of {path}: {e}") from e

        logger.info("Built FeatureCollection with %d features", len(features))
        return {"type": "FeatureCollection", "features": features}

    # Summaries

    @_boundary
    def open_vector_info(self, path: str | Path) -> VectorInfo:
        """
        Summarize the first layer of a vector file.

        The extent is normalized to WGS84. Nothing is cached; every call
        reads the file again.

        Raises:
            FileReadError: If the file or its first layer cannot be read.
            InvalidFormatError: If the CRS or its transform is invalid.
        """
        logger.info("Opening vector info: %s", path)
        with self.opener.open(path) as dataset:
            summary = describe_layer(self._layer(dataset, 0), self.normalizer)

        return VectorInfo(
            path=str(path),
            feature_count=summary.feature_count,
            geometry_type=summary.geometry_type,
            fields=summary.fields,
            extent=summary.extent,
            projection=summary.projection,
        )

    @_boundary
    def open_multi_layer_info(self, path: str | Path) -> MultiLayerVectorInfo:
        """Summarize every readable layer of a container file."""
        logger.info("Opening multi-layer info: %s", path)
        with self.opener.open(path) as dataset:
            return self.inspector.inspect(dataset, path=str(path))

    @_boundary
    def get_feature_count(self, path: str | Path) -> int:
        """Number of features in the first layer."""
        with self.opener.open(path) as dataset:
            layer = self._layer(dataset, 0)
            try:
                return layer.feature_count()
            except Exception as e:
                raise FileReadError(f"Cannot count features of {path}: {e}") from e

    # Features

    @_boundary
    def get_features(
        self,
        path: str | Path,
        offset: int | None = None,
        limit: int | None = None,
        include_geometry: bool = False,
    ) -> list[Feature]:
        """
        Read features of the first layer, attributes only by default.

        Args:
            path: Vector file.
            offset: Number of leading features to skip.
            limit: Maximum number of features.
            include_geometry: Also return WGS84 geometry.
        """
        features, _ = self._page(path, offset, limit, include_geometry)
        return features

    @_boundary
    def get_attribute_table(
        self,
        path: str | Path,
        offset: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """
        Read one page of the attribute table with WGS84 geometry.

        Returns:
            {"features": [feature dicts], "total": feature count of the layer}
        """
        features, total = self._page(path, offset, limit, include_geometry=True)
        logger.info("Attribute table page: %d of %d features", len(features), total)
        return {"features": [f.to_dict() for f in features], "total": total}

    @_boundary
    def get_geojson(self, path: str | Path) -> dict[str, Any]:
        """First layer as a WGS84 GeoJSON FeatureCollection."""
        logger.info("Building GeoJSON: %s", path)
        with self.opener.open(path) as dataset:
            return self._feature_collection(path, self._layer(dataset, 0))

    @_boundary
    def get_layer_geojson(self, path: str | Path, layer_index: int) -> dict[str, Any]:
        """One layer as a WGS84 GeoJSON FeatureCollection."""
        logger.info("Building GeoJSON for layer %d: %s", layer_index, path)
        with self.opener.open(path) as dataset:
            return self._feature_collection(path, self._layer(dataset, layer_index))

    # Export and coordinates

    @_boundary
    def export_vector(
        self,
        input_path: str | Path,
        output_path: str | Path,
        format_name: str,
        layer_index: int | None = None,
    ) -> None:
        """Export a file, or one of its layers, with ogr2ogr."""
        self.exporter.export(input_path, output_path, format_name, layer_index)

    @_boundary
    def transform_coordinates(
        self,
        from_crs: str,
        to_crs: str,
        coordinates: Iterable[Sequence[float]],
    ) -> list[tuple[float, float]]:
        """Transform (x, y) pairs between two CRS definitions."""
        return crs.transform_coordinates(from_crs, to_crs, coordinates)

    # Environment

    @_boundary
    def diagnose(self) -> dict[str, Any]:
        """Library version, data paths and driver summary."""
        return diagnose(self.config, self.backend)

    @_boundary
    def supported_drivers(self) -> dict[str, str]:
        """Registered drivers, short name to long name."""
        return self.backend.drivers()

    @_boundary
    def gdal_version(self) -> str:
        """Version of the underlying GDAL library."""
        return self.backend.version()

    # Shapefile previews

    @_boundary
    def load_shapefile(self, path: str | Path) -> shapefile_reader.ShapefileSummary:
        """Read a Shapefile summary and remember it in the cache, if any."""
        summary = shapefile_reader.read_shapefile_summary(path)
        if self.cache is not None:
            self.cache.put(str(path), summary)
        logger.info(
            "Loaded %s: %d %s features", summary.filename, summary.feature_count, summary.geometry_type
        )
        return summary

    @_boundary
    def loaded_shapefiles(self) -> list[shapefile_reader.ShapefileSummary]:
        """Summaries remembered by load_shapefile()."""
        if self.cache is None:
            return []
        return self.cache.values()

    @_boundary
    def get_shapefile_attributes(self, path: str | Path) -> list[dict[str, Any]]:
        """All DBF records of a Shapefile as strings."""
        return shapefile_reader.read_shapefile_attributes(path)

    @_boundary
    def shapefile_to_geojson(self, path: str | Path) -> dict[str, Any]:
        """Shapefile as GeoJSON in its stored coordinates."""
        return shapefile_reader.shapefile_to_geojson(path)
