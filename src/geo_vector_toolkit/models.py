"""
Data model for vector dataset summaries and features.

All extents and coordinates are WGS84 longitude/latitude unless the source
CRS could not be determined, in which case they are passed through as read.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Extent:
    """Axis-aligned bounding box, x = longitude and y = latitude."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_bounds(cls, bounds: tuple[float, float, float, float]) -> "Extent":
        """Build from a (minx, miny, maxx, maxy) tuple."""
        min_x, min_y, max_x, max_y = bounds
        return cls(float(min_x), float(min_y), float(max_x), float(max_y))

    def corners(self) -> tuple[list[float], list[float]]:
        """Return the four corners as parallel x and y lists."""
        xs = [self.min_x, self.max_x, self.min_x, self.max_x]
        ys = [self.min_y, self.min_y, self.max_y, self.max_y]
        return xs, ys

    def contains(self, other: "Extent", tolerance: float = 0.0) -> bool:
        """Check whether another extent lies inside this one."""
        return (
            self.min_x - tolerance <= other.min_x
            and self.min_y - tolerance <= other.min_y
            and self.max_x + tolerance >= other.max_x
            and self.max_y + tolerance >= other.max_y
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "min_x": self.min_x,
            "min_y": self.min_y,
            "max_x": self.max_x,
            "max_y": self.max_y,
        }


@dataclass
class FieldDescriptor:
    """One attribute column of a layer schema."""

    name: str
    field_type: str
    """Native field type name, e.g. 'str', 'int', 'float', 'date'."""

    alias: str | None = None
    editable: bool = False
    visible: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "field_type": self.field_type,
            "alias": self.alias,
            "editable": self.editable,
            "visible": self.visible,
        }


@dataclass
class Geometry:
    """GeoJSON-style geometry with a type tag and nested coordinates."""

    geom_type: str
    coordinates: Any = None

    @classmethod
    def null(cls) -> "Geometry":
        """Geometry used for features that have none."""
        return cls(geom_type="Null", coordinates=None)

    @classmethod
    def from_geojson(cls, geojson: dict[str, Any] | None) -> "Geometry":
        """Build from a GeoJSON geometry mapping (None means no geometry)."""
        if geojson is None:
            return cls.null()
        coordinates = geojson.get("coordinates", geojson.get("geometries"))
        return cls(geom_type=geojson.get("type") or "Unknown", coordinates=coordinates)

    @property
    def is_null(self) -> bool:
        return self.geom_type == "Null"

    def to_dict(self) -> dict[str, Any]:
        return {"geom_type": self.geom_type, "coordinates": self.coordinates}


@dataclass
class Feature:
    """A single feature: id, optional geometry and properties."""

    id: str
    """Native feature id, or the iteration index when the source has none."""

    geometry: Geometry | None
    """None when the caller asked for attributes only."""

    properties: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "geometry": self.geometry.to_dict() if self.geometry is not None else None,
            "properties": self.properties,
        }


@dataclass
class VectorInfo:
    """Summary of the first layer of a vector file."""

    path: str
    feature_count: int
    geometry_type: str
    """Taken from the first feature, so it may be 'Unknown' or unrepresentative."""

    fields: list[FieldDescriptor]
    extent: Extent
    projection: str | None = None
    """Source CRS as WKT, or None when undefined."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "feature_count": self.feature_count,
            "geometry_type": self.geometry_type,
            "fields": [f.to_dict() for f in self.fields],
            "extent": self.extent.to_dict(),
            "projection": self.projection,
        }


@dataclass
class LayerInfo:
    """Summary of one layer inside a multi-layer container."""

    name: str
    index: int
    feature_count: int
    geometry_type: str
    fields: list[FieldDescriptor]
    extent: Extent

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "index": self.index,
            "feature_count": self.feature_count,
            "geometry_type": self.geometry_type,
            "fields": [f.to_dict() for f in self.fields],
            "extent": self.extent.to_dict(),
        }


@dataclass
class MultiLayerVectorInfo:
    """Summary of every readable layer of a container dataset."""

    path: str
    layer_count: int
    """Number of layers in the container, including skipped ones."""

    layers: list[LayerInfo] = field(default_factory=list)
    projection: str | None = None
    """WKT of layer 0, used as the file-level default."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "layer_count": self.layer_count,
            "layers": [layer.to_dict() for layer in self.layers],
            "projection": self.projection,
        }
