"""
Narrow interface over the vector geometry library.

Everything above this layer (encoding fallback, WGS84 policy, attribute
extraction, pagination, export) only talks to these classes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterator


@dataclass
class RawFeature:
    """A feature as read from the source, before normalization."""

    id: Any
    """Native feature id, or None when the source has none."""

    geometry: Any
    """GeoJSON-like mapping or object with __geo_interface__, or None."""

    properties: dict[str, Any] = field(default_factory=dict)
    """Field values in schema order."""


class VectorLayer(ABC):
    """One layer of an open dataset."""

    name: str = ""

    @abstractmethod
    def feature_count(self) -> int:
        """Number of features in the layer."""

    @abstractmethod
    def spatial_reference(self) -> str | None:
        """Source CRS definition (WKT), or None when undefined."""

    @abstractmethod
    def extent(self) -> tuple[float, float, float, float]:
        """
        Bounding box in source coordinates.

        Raises:
            Exception: Backend-specific error when the extent is unavailable.
        """

    @abstractmethod
    def fields(self) -> list[tuple[str, str]]:
        """(name, type tag) pairs in schema order."""

    @abstractmethod
    def features(self) -> Iterator[RawFeature]:
        """Iterate features in native storage order."""


class VectorDataset(ABC):
    """An open, read-only dataset holding one or more layers."""

    path: str = ""

    @property
    @abstractmethod
    def layer_count(self) -> int:
        """Number of layers."""

    @abstractmethod
    def layer(self, index: int) -> VectorLayer:
        """
        Get a layer by 0-based index.

        Raises:
            IndexError: If there is no such layer.
        """

    def close(self) -> None:
        """Release the underlying handles."""

    def __enter__(self) -> "VectorDataset":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class VectorBackend(ABC):
    """Factory for datasets plus library introspection."""

    @abstractmethod
    def open_dataset(self, path: str, encoding: str | None = None) -> VectorDataset:
        """
        Open a dataset read-only.

        Args:
            path: File path.
            encoding: Explicit encoding, or None for the library default.

        Raises:
            Exception: Backend-specific error when the file cannot be opened.
        """

    @abstractmethod
    def drivers(self) -> dict[str, str]:
        """Registered drivers, short name to long name."""

    @abstractmethod
    def version(self) -> str:
        """Version string of the underlying library."""
