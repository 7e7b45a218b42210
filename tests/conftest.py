"""Shared fixtures: an in-memory backend standing in for fiona."""

from typing import Any, Iterator

import pytest
from pyproj import CRS

from geo_vector_toolkit.backends.base import (
    RawFeature,
    VectorBackend,
    VectorDataset,
    VectorLayer,
)
from geo_vector_toolkit.config import RuntimeConfig


class FakeLayer(VectorLayer):
    """Layer backed by a list of RawFeature."""

    def __init__(
        self,
        name: str = "layer",
        features: list[RawFeature] | None = None,
        crs: str | None = None,
        bounds: tuple[float, float, float, float] = (0.0, 0.0, 1.0, 1.0),
        fields: list[tuple[str, str]] | None = None,
        fail_extent: bool = False,
    ) -> None:
        self.name = name
        self._features = features or []
        self._crs = crs
        self._bounds = bounds
        self._fields = fields or []
        self._fail_extent = fail_extent

    def feature_count(self) -> int:
        return len(self._features)

    def spatial_reference(self) -> str | None:
        # GDAL reports WKT1, not the code the layer was built from
        if self._crs and self._crs.startswith("EPSG:"):
            return CRS.from_user_input(self._crs).to_wkt("WKT1_GDAL")
        return self._crs

    def extent(self) -> tuple[float, float, float, float]:
        if self._fail_extent:
            raise RuntimeError("extent unavailable")
        return self._bounds

    def fields(self) -> list[tuple[str, str]]:
        return list(self._fields)

    def features(self) -> Iterator[RawFeature]:
        return iter(self._features)


class FakeDataset(VectorDataset):
    """Dataset over a list of FakeLayer; tracks whether it was closed."""

    def __init__(self, path: str, layers: list[FakeLayer]) -> None:
        self.path = path
        self._layers = layers
        self.closed = False

    @property
    def layer_count(self) -> int:
        return len(self._layers)

    def layer(self, index: int) -> FakeLayer:
        if index < 0 or index >= len(self._layers):
            raise IndexError(f"no layer {index}")
        return self._layers[index]

    def close(self) -> None:
        self.closed = True


class FakeBackend(VectorBackend):
    """
    Backend serving registered in-memory files.

    Encodings listed in failing_encodings raise on open, which mimics a
    wrong codepage being rejected.
    """

    def __init__(self) -> None:
        self.files: dict[str, list[FakeLayer]] = {}
        self.failing_encodings: set[str | None] = set()
        self.open_calls: list[tuple[str, str | None]] = []
        self.opened: list[FakeDataset] = []

    def add(self, path: str, *layers: FakeLayer) -> None:
        self.files[path] = list(layers)

    def open_dataset(self, path: str, encoding: str | None = None) -> FakeDataset:
        self.open_calls.append((path, encoding))
        if encoding in self.failing_encodings:
            raise UnicodeDecodeError("gbk", b"\xff", 0, 1, f"cannot decode as {encoding}")
        if path not in self.files:
            raise OSError(f"{path}: No such file or directory")
        dataset = FakeDataset(path, self.files[path])
        self.opened.append(dataset)
        return dataset

    def drivers(self) -> dict[str, str]:
        return {f"Driver{i}": f"Fake driver {i}" for i in range(12)}

    def version(self) -> str:
        return "3.8.4"


def make_point(index: int, x: float | None = None, y: float | None = None, **props: Any) -> RawFeature:
    """Point feature with an 'n' property equal to its index."""
    geometry = {"type": "Point", "coordinates": (x if x is not None else float(index), y or 0.0)}
    return RawFeature(id=str(index), geometry=geometry, properties={"n": index, **props})


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def ten_points() -> FakeLayer:
    """Layer of ten points with no CRS."""
    return FakeLayer(
        name="points",
        features=[make_point(i) for i in range(10)],
        fields=[("n", "int")],
        bounds=(0.0, 0.0, 9.0, 0.0),
    )


@pytest.fixture
def config(tmp_path) -> RuntimeConfig:
    """Configuration that searches only inside tmp_path."""
    return RuntimeConfig(app_dir=tmp_path / "app", search_path=[tmp_path / "bin"])
