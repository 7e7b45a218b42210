"""Tests for the VectorService operations."""

import json
from unittest.mock import MagicMock

import pytest

from conftest import FakeLayer, make_point
from geo_vector_toolkit.backends.base import RawFeature
from geo_vector_toolkit.cache import InMemorySummaryCache
from geo_vector_toolkit.config import RuntimeConfig
from geo_vector_toolkit.errors import (
    FileReadError,
    FileWriteError,
    InvalidFormatError,
    ParseError,
    UnknownError,
    VectorIOError,
)
from geo_vector_toolkit.exporter import ProcessResult, ProcessRunner
from geo_vector_toolkit.service import VectorService

WGS84_PRJ = (
    'GEOGCS["GCS_WGS_1984",DATUM["D_WGS_1984",SPHEROID["WGS_1984",6378137.0,298.257223563]],'
    'PRIMEM["Greenwich",0.0],UNIT["Degree",0.0174532925199433],AUTHORITY["EPSG","4326"]]'
)


@pytest.fixture
def service(backend) -> VectorService:
    return VectorService(config=RuntimeConfig(), backend=backend, cache=InMemorySummaryCache())


class TestSummaries:
    """Test info operations."""

    def test_open_vector_info(self, service, backend) -> None:
        """Test a projected layer is summarized in WGS84."""
        layer = FakeLayer(
            name="rivers",
            features=[make_point(i, x=400000.0 + i, y=3300000.0) for i in range(5)],
            fields=[("n", "int")],
            crs="EPSG:32648",
            bounds=(400000.0, 3300000.0, 500000.0, 3400000.0),
        )
        backend.add("rivers.shp", layer)

        info = service.open_vector_info("rivers.shp")

        assert info.path == "rivers.shp"
        assert info.feature_count == 5
        assert info.geometry_type == "Point"
        assert 102.0 < info.extent.min_x < info.extent.max_x < 106.0
        assert "UTM zone 48N" in info.projection
        assert backend.opened[-1].closed

    def test_info_is_not_cached(self, service, backend, ten_points) -> None:
        """Test every call reads the file again."""
        backend.add("points.gpkg", ten_points)
        service.open_vector_info("points.gpkg")
        service.open_vector_info("points.gpkg")
        assert len(backend.open_calls) == 2

    def test_multi_layer_info(self, service, backend) -> None:
        """Test a bad layer is skipped at the service level too."""
        backend.add(
            "places.kml",
            FakeLayer(name="a"),
            FakeLayer(name="b", fail_extent=True),
            FakeLayer(name="c"),
        )

        info = service.open_multi_layer_info("places.kml")

        assert info.layer_count == 3
        assert [layer.name for layer in info.layers] == ["a", "c"]
        assert backend.opened[-1].closed

    def test_feature_count(self, service, backend, ten_points) -> None:
        """Test counting the first layer."""
        backend.add("points.gpkg", ten_points)
        assert service.get_feature_count("points.gpkg") == 10

    def test_missing_file(self, service) -> None:
        """Test a file nobody can open."""
        with pytest.raises(FileReadError, match="all 3 candidate encodings failed"):
            service.open_vector_info("missing.shp")

    def test_empty_container(self, service, backend) -> None:
        """Test a dataset without layers has no first layer."""
        backend.add("empty.gpkg")
        with pytest.raises(FileReadError, match="Cannot get layer 0"):
            service.open_vector_info("empty.gpkg")


class TestFeatures:
    """Test feature and attribute table operations."""

    def test_attribute_table_page(self, service, backend, ten_points) -> None:
        """Test one page with geometry and the total count."""
        backend.add("points.gpkg", ten_points)

        table = service.get_attribute_table("points.gpkg", offset=3, limit=4)

        assert table["total"] == 10
        assert [f["id"] for f in table["features"]] == ["3", "4", "5", "6"]
        assert table["features"][0]["geometry"] == {"geom_type": "Point", "coordinates": [3.0, 0.0]}
        assert backend.opened[-1].closed

    def test_attribute_table_overrun(self, service, backend, ten_points) -> None:
        """Test a limit past the end returns what is left."""
        backend.add("points.gpkg", ten_points)
        table = service.get_attribute_table("points.gpkg", offset=8, limit=10)
        assert [f["id"] for f in table["features"]] == ["8", "9"]

    def test_features_without_geometry(self, service, backend, ten_points) -> None:
        """Test the raw accessor leaves geometry out by default."""
        backend.add("points.gpkg", ten_points)

        features = service.get_features("points.gpkg", offset=3, limit=4)

        assert [f.id for f in features] == ["3", "4", "5", "6"]
        assert all(f.geometry is None for f in features)

    def test_features_with_geometry_match_table(self, service, backend, ten_points) -> None:
        """Test both accessors page and transform identically."""
        backend.add("points.gpkg", ten_points)

        features = service.get_features("points.gpkg", offset=2, limit=3, include_geometry=True)
        table = service.get_attribute_table("points.gpkg", offset=2, limit=3)

        assert [f.to_dict() for f in features] == table["features"]

    def test_null_geometry(self, service, backend) -> None:
        """Test null geometry is serialized, not an error."""
        backend.add("nulls.gpkg", FakeLayer(features=[RawFeature(id="0", geometry=None)]))

        table = service.get_attribute_table("nulls.gpkg")

        assert table["features"][0]["geometry"] == {"geom_type": "Null", "coordinates": None}

    def test_kml_description_attributes(self, service, backend) -> None:
        """Test KML descriptions are expanded; other formats are not."""
        raw = RawFeature(
            id="1",
            geometry=None,
            properties={"Name": "岷江", "description": '"OBJECTID":1 "LEN":12.5'},
        )
        backend.add("rivers.kml", FakeLayer(features=[raw]))
        backend.add("rivers.gpkg", FakeLayer(features=[raw]))

        (kml_feature,) = service.get_features("rivers.kml")
        (gpkg_feature,) = service.get_features("rivers.gpkg")

        assert kml_feature.properties["OBJECTID"] == 1
        assert kml_feature.properties["LEN"] == 12.5
        assert "OBJECTID" not in gpkg_feature.properties


class TestGeoJSON:
    """Test FeatureCollection output."""

    def test_first_layer(self, service, backend) -> None:
        """Test numeric ids, null geometry and JSON-serializable output."""
        features = [
            make_point(0),
            RawFeature(id="abc", geometry=None, properties={"n": 1}),
        ]
        backend.add("points.gpkg", FakeLayer(features=features))

        collection = service.get_geojson("points.gpkg")

        assert collection["type"] == "FeatureCollection"
        first, second = collection["features"]
        assert first == {
            "type": "Feature",
            "id": 0,
            "geometry": {"type": "Point", "coordinates": [0.0, 0.0]},
            "properties": {"n": 0},
        }
        assert second["id"] == 0
        assert second["geometry"] is None
        json.dumps(collection)

    def test_reprojected(self, service, backend) -> None:
        """Test coordinates come out as WGS84 lon/lat."""
        layer = FakeLayer(features=[make_point(5, x=11584184.5, y=3588769.9)], crs="EPSG:3857")
        backend.add("city.gpkg", layer)

        collection = service.get_geojson("city.gpkg")

        feature = collection["features"][0]
        assert feature["id"] == 5
        lon, lat = feature["geometry"]["coordinates"]
        assert lon == pytest.approx(104.06, abs=0.01)

    def test_layer_by_index(self, service, backend) -> None:
        """Test a specific layer is converted."""
        backend.add("places.kml", FakeLayer(name="a"), FakeLayer(name="b", features=[make_point(9)]))

        collection = service.get_layer_geojson("places.kml", 1)

        assert [f["id"] for f in collection["features"]] == [9]

    def test_layer_out_of_range(self, service, backend) -> None:
        """Test a missing layer index is a read error."""
        backend.add("places.kml", FakeLayer(name="a"))
        with pytest.raises(FileReadError, match="Cannot get layer 4"):
            service.get_layer_geojson("places.kml", 4)
        assert backend.opened[-1].closed

    def test_invalid_crs(self, service, backend) -> None:
        """Test a broken CRS is an InvalidFormat error."""
        backend.add("bad.gpkg", FakeLayer(features=[make_point(0)], crs="not a crs"))
        with pytest.raises(InvalidFormatError):
            service.get_geojson("bad.gpkg")


class TestOtherOperations:
    """Test export, transform and environment operations."""

    def test_export(self, backend, tmp_path) -> None:
        """Test export goes through the injected runner."""
        config = RuntimeConfig(app_dir=tmp_path)
        tool = tmp_path / config.tool_name
        tool.write_text("")
        runner = MagicMock(spec=ProcessRunner)
        runner.run.return_value = ProcessResult(exit_code=0)
        backend.add("places.kml", FakeLayer(name="Roads"))
        service = VectorService(config=config, backend=backend, runner=runner)

        service.export_vector("places.kml", str(tmp_path / "roads.shp"), "SHP", layer_index=0)

        runner.run.assert_called_once_with(
            tool, ["-f", "ESRI Shapefile", str(tmp_path / "roads.shp"), "places.kml", "Roads"]
        )

    def test_export_without_tool(self, backend, tmp_path) -> None:
        """Test a missing ogr2ogr is a write error."""
        service = VectorService(config=RuntimeConfig(app_dir=tmp_path), backend=backend)
        with pytest.raises(FileWriteError, match="not found"):
            service.export_vector("a.shp", str(tmp_path / "a.kml"), "KML")

    def test_transform_coordinates(self, service) -> None:
        """Test the coordinate utility is exposed."""
        (point,) = service.transform_coordinates("EPSG:4326", "EPSG:3857", [(0.0, 0.0)])
        assert point == pytest.approx((0.0, 0.0), abs=1e-6)

    def test_environment(self, service) -> None:
        """Test driver and version introspection."""
        assert service.gdal_version() == "3.8.4"
        assert len(service.supported_drivers()) == 12
        assert service.diagnose()["driver_count"] == 12


class TestErrorBoundary:
    """Test conversion of unexpected exceptions."""

    def test_os_error(self, service, backend) -> None:
        """Test OSError becomes an IO error."""
        backend.drivers = MagicMock(side_effect=OSError("disk gone"))
        with pytest.raises(VectorIOError, match="disk gone") as exc_info:
            service.supported_drivers()
        assert exc_info.value.to_dict() == {"kind": "IoError", "message": "IO error: disk gone"}

    def test_json_error(self, service, backend) -> None:
        """Test JSON decoding errors become parse errors."""
        backend.version = MagicMock(side_effect=json.JSONDecodeError("bad", "{", 0))
        with pytest.raises(ParseError):
            service.gdal_version()

    def test_anything_else(self, service, backend) -> None:
        """Test other exceptions become Unknown."""
        backend.version = MagicMock(side_effect=RuntimeError("boom"))
        with pytest.raises(UnknownError, match="boom"):
            service.gdal_version()


class TestShapefilePreview:
    """Test the pyshp-based Shapefile operations."""

    @pytest.fixture
    def rivers(self, tmp_path):
        shapefile = pytest.importorskip("shapefile")
        path = tmp_path / "rivers.shp"
        with shapefile.Writer(str(tmp_path / "rivers"), shapeType=shapefile.POINT, encoding="gbk") as w:
            w.field("NAME", "C", size=20)
            w.field("LEN", "N", size=10, decimal=2)
            w.point(104.06, 30.67)
            w.record("岷江", 12.5)
            w.null()
            w.record("", None)
        (tmp_path / "rivers.prj").write_text(WGS84_PRJ)
        return path

    def test_load_shapefile(self, service, rivers) -> None:
        """Test the summary is read and cached."""
        summary = service.load_shapefile(rivers)

        assert summary.filename == "rivers.shp"
        assert summary.geometry_type == "Point"
        assert summary.feature_count == 2
        assert summary.bounds == pytest.approx([104.06, 30.67, 104.06, 30.67])
        assert [f["name"] for f in summary.fields] == ["NAME", "LEN"]
        assert summary.epsg_code == 4326
        assert service.loaded_shapefiles() == [summary]

    def test_without_cache(self, backend, rivers) -> None:
        """Test everything works with no cache."""
        service = VectorService(config=RuntimeConfig(), backend=backend)
        service.load_shapefile(rivers)
        assert service.loaded_shapefiles() == []

    def test_attributes(self, service, rivers) -> None:
        """Test GBK text is decoded and empty values become NULL."""
        rows = service.get_shapefile_attributes(rivers)

        assert rows[0] == {"id": 0, "properties": {"NAME": "岷江", "LEN": "12.5"}}
        assert rows[1] == {"id": 1, "properties": {"NAME": "NULL", "LEN": "NULL"}}

    def test_geojson_skips_null_shapes(self, service, rivers) -> None:
        """Test the null record is dropped and _id is added."""
        collection = service.shapefile_to_geojson(rivers)

        (feature,) = collection["features"]
        assert feature["properties"] == {"_id": 0, "NAME": "岷江", "LEN": 12.5}
        assert feature["geometry"]["type"] == "Point"
        assert list(feature["geometry"]["coordinates"]) == pytest.approx([104.06, 30.67])

    def test_missing_shapefile(self, service, tmp_path) -> None:
        """Test a missing file is a read error."""
        with pytest.raises(FileReadError, match="File not found"):
            service.load_shapefile(tmp_path / "nope.shp")


class TestFionaBackend:
    """End-to-end reads through fiona and GDAL."""

    @pytest.fixture
    def fiona_service(self) -> VectorService:
        pytest.importorskip("fiona")
        return VectorService(config=RuntimeConfig())

    def test_geojson_with_legacy_crs(self, fiona_service, tmp_path) -> None:
        """Test a Web Mercator GeoJSON file is summarized in WGS84."""
        path = tmp_path / "city.geojson"
        path.write_text(
            json.dumps(
                {
                    "type": "FeatureCollection",
                    "crs": {"type": "name", "properties": {"name": "urn:ogc:def:crs:EPSG::3857"}},
                    "features": [
                        {
                            "type": "Feature",
                            "properties": {"name": "成都"},
                            "geometry": {"type": "Point", "coordinates": [11584184.5, 3588769.9]},
                        }
                    ],
                },
                ensure_ascii=False,
            ),
            encoding="utf-8",
        )

        info = fiona_service.open_vector_info(path)
        collection = fiona_service.get_geojson(path)

        assert info.feature_count == 1
        assert info.geometry_type == "Point"
        assert info.extent.min_x == pytest.approx(104.06, abs=0.01)
        feature = collection["features"][0]
        assert feature["properties"]["name"] == "成都"
        assert feature["geometry"]["coordinates"][0] == pytest.approx(104.06, abs=0.01)

    def test_gbk_shapefile(self, fiona_service, tmp_path) -> None:
        """Test a GBK Shapefile without .cpg opens with the first candidate."""
        shapefile = pytest.importorskip("shapefile")
        with shapefile.Writer(str(tmp_path / "rivers"), shapeType=shapefile.POINT, encoding="gbk") as w:
            w.field("NAME", "C", size=20)
            w.point(104.06, 30.67)
            w.record("岷江")

        (feature,) = fiona_service.get_features(tmp_path / "rivers.shp")

        assert feature.properties["NAME"] == "岷江"

    def test_multi_layer_geopackage(self, fiona_service, tmp_path) -> None:
        """Test layer 0 of a container is found when it is not named after the file."""
        fiona = pytest.importorskip("fiona")
        path = tmp_path / "m.gpkg"
        schema = {"geometry": "Point", "properties": {"name": "str"}}
        for name, x in (("a", 104.06), ("b", 103.6)):
            with fiona.open(path, "w", driver="GPKG", layer=name, schema=schema, crs="EPSG:4326") as dst:
                dst.write(
                    fiona.Feature.from_dict(
                        {
                            "type": "Feature",
                            "geometry": {"type": "Point", "coordinates": (x, 30.67)},
                            "properties": {"name": name},
                        }
                    )
                )

        info = fiona_service.open_multi_layer_info(path)
        summary = fiona_service.open_vector_info(path)
        second = fiona_service.get_layer_geojson(path, 1)

        assert [layer.name for layer in info.layers] == ["a", "b"]
        assert summary.extent.min_x == pytest.approx(104.06)
        assert second["features"][0]["properties"]["name"] == "b"

    def test_kml_folders(self, fiona_service, tmp_path) -> None:
        """Test each KML folder is a layer and descriptions become properties."""
        path = tmp_path / "places.kml"
        path.write_text(
            """<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
<Document>
  <Folder>
    <name>Rivers</name>
    <Placemark>
      <name>Minjiang</name>
      <description>"OBJECTID":1 "NAME":"岷江"</description>
      <Point><coordinates>104.06,30.67</coordinates></Point>
    </Placemark>
  </Folder>
  <Folder>
    <name>Towns</name>
    <Placemark>
      <name>Chengdu</name>
      <Point><coordinates>104.07,30.57</coordinates></Point>
    </Placemark>
  </Folder>
</Document>
</kml>
""",
            encoding="utf-8",
        )

        info = fiona_service.open_multi_layer_info(path)
        collection = fiona_service.get_geojson(path)

        assert [layer.name for layer in info.layers] == ["Rivers", "Towns"]
        properties = collection["features"][0]["properties"]
        assert properties["OBJECTID"] == 1
        assert properties["NAME"] == "岷江"
