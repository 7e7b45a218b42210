"""
Lightweight Shapefile reading with pyshp.

Used for quick previews without going through GDAL: header summary,
attribute dump and a plain GeoJSON conversion. No reprojection.
"""

import logging
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import shapefile

from geo_vector_toolkit.attributes import convert_value
from geo_vector_toolkit.encoding import resolve_encodings
from geo_vector_toolkit.errors import FileReadError

logger = logging.getLogger(__name__)

SHAPE_TYPE_NAMES = {
    shapefile.NULL: "Null",
    shapefile.POINT: "Point",
    shapefile.POINTZ: "PointZ",
    shapefile.POINTM: "PointM",
    shapefile.POLYLINE: "LineString",
    shapefile.POLYLINEZ: "LineStringZ",
    shapefile.POLYLINEM: "LineStringM",
    shapefile.POLYGON: "Polygon",
    shapefile.POLYGONZ: "PolygonZ",
    shapefile.POLYGONM: "PolygonM",
    shapefile.MULTIPOINT: "MultiPoint",
    shapefile.MULTIPOINTZ: "MultiPointZ",
    shapefile.MULTIPOINTM: "MultiPointM",
}

_EPSG_PATTERNS = [
    re.compile(r'AUTHORITY\["EPSG","(\d+)"\]'),
    re.compile(r"EPSG:(\d+)"),
    re.compile(r'EPSG","(\d+)'),
]


@dataclass
class ShapefileSummary:
    """Header-level facts about a Shapefile."""

    filename: str
    geometry_type: str
    feature_count: int
    bounds: list[float]
    """[min_x, min_y, max_x, max_y] in source coordinates."""

    fields: list[dict[str, str]] = field(default_factory=list)
    crs: str | None = None
    """Raw .prj WKT, if present."""

    epsg_code: int | None = None
    """EPSG code found in the .prj text, if any."""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def extract_epsg_from_wkt(wkt: str) -> int | None:
    """Find an EPSG code in WKT text, trying the common spellings in order."""
    for pattern in _EPSG_PATTERNS:
        match = pattern.search(wkt)
        if match:
            return int(match.group(1))
    return None


def _default_encoding(path: Path) -> str:
    """First concrete candidate encoding for the DBF."""
    for candidate in resolve_encodings(path):
        if candidate:
            return candidate
    return "utf-8"


def _open(path: Path, encoding: str | None) -> "shapefile.Reader":
    if not path.exists():
        raise FileReadError(f"File not found: {path}")
    try:
        return shapefile.Reader(
            str(path),
            encoding=encoding or _default_encoding(path),
            encodingErrors="replace",
        )
    except (shapefile.ShapefileException, OSError) as e:
        raise FileReadError(f"Invalid shapefile: {e}") from e


def read_shapefile_summary(path: str | Path, encoding: str | None = None) -> ShapefileSummary:
    """
    Read the header, schema and .prj of a Shapefile.

    Args:
        path: Path to the .shp file.
        encoding: DBF encoding. Defaults to the first resolved candidate.

    Returns:
        ShapefileSummary.

    Raises:
        FileReadError: If the file cannot be read.
    """
    path = Path(path)
    with _open(path, encoding) as sf:
        fields = [
            {"name": f[0], "field_type": str(f[1])}
            for f in sf.fields[1:]  # Skip DeletionFlag
        ]
        summary = ShapefileSummary(
            filename=path.name,
            geometry_type=SHAPE_TYPE_NAMES.get(sf.shapeType, "Unknown"),
            feature_count=len(sf),
            bounds=[float(v) for v in sf.bbox],
            fields=fields,
        )

    prj_path = path.with_suffix(".prj")
    if prj_path.exists():
        try:
            summary.crs = prj_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Cannot read %s: %s", prj_path, e)
        else:
            summary.epsg_code = extract_epsg_from_wkt(summary.crs)

    return summary


def read_shapefile_attributes(
    path: str | Path,
    encoding: str | None = None,
) -> list[dict[str, Any]]:
    """
    Read every DBF record with values rendered as strings.

    Returns:
        List of {"id": index, "properties": {name: text}}; empty values are "NULL".
    """
    path = Path(path)
    if not path.with_suffix(".dbf").exists():
        return []

    rows = []
    with _open(path, encoding) as sf:
        field_names = [f[0] for f in sf.fields[1:]]
        for index, record in enumerate(sf.iterRecords()):
            properties = {
                name: "NULL" if value is None or value == "" else str(value)
                for name, value in zip(field_names, record)
            }
            rows.append({"id": index, "properties": properties})
    return rows


def shapefile_to_geojson(path: str | Path, encoding: str | None = None) -> dict[str, Any]:
    """
    Convert a Shapefile to a GeoJSON FeatureCollection as stored.

    Every feature gets an "_id" property with its record index. Null and
    unrepresentable shapes are skipped.
    """
    path = Path(path)
    features = []
    with _open(path, encoding) as sf:
        field_names = [f[0] for f in sf.fields[1:]]
        for index, shaperec in enumerate(sf.iterShapeRecords()):
            shape = shaperec.shape
            if shape.shapeType == shapefile.NULL:
                continue
            try:
                geom = shape.__geo_interface__
            except Exception as e:  # pyshp raises bare Exception for unsupported shapes
                logger.warning("Skipping record %d: %s", index, e)
                continue

            properties: dict[str, Any] = {"_id": index}
            for name, value in zip(field_names, shaperec.record):
                properties[name] = convert_value(value)

            features.append(
                {
                    "type": "Feature",
                    "id": index,
                    "geometry": geom,
                    "properties": properties,
                }
            )

    return {"type": "FeatureCollection", "features": features}
