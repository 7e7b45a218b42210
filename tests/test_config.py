"""Tests for runtime configuration, diagnostics and the summary cache."""

import os
import threading
from pathlib import Path

from conftest import FakeBackend
from geo_vector_toolkit.cache import InMemorySummaryCache
from geo_vector_toolkit.config import RuntimeConfig
from geo_vector_toolkit.diagnostics import diagnose


class TestRuntimeConfig:
    """Test configuration loading."""

    def test_from_env(self, tmp_path) -> None:
        """Test environment values are picked up without touching os.environ."""
        environ = {
            "GDAL_DATA": "/opt/gdal/data",
            "PROJ_LIB": "/opt/proj",
            "PATH": os.pathsep.join(["/usr/bin", "", "/opt/bin"]),
        }
        config = RuntimeConfig.from_env(environ, app_dir=tmp_path)

        assert config.gdal_data == "/opt/gdal/data"
        assert config.proj_lib == "/opt/proj"
        assert config.proj_data is None
        assert config.app_dir == tmp_path
        assert config.search_path == [Path("/usr/bin"), Path("/opt/bin")]

    def test_bundled_data_dirs(self, tmp_path) -> None:
        """Test proj-data and gdal-data next to the app fill unset variables."""
        (tmp_path / "proj-data").mkdir()
        (tmp_path / "proj-data" / "proj.db").write_bytes(b"")
        (tmp_path / "gdal-data").mkdir()

        config = RuntimeConfig.from_env({}, app_dir=tmp_path)

        assert config.proj_lib == str(tmp_path / "proj-data")
        assert config.proj_data == str(tmp_path / "proj-data")
        assert config.gdal_data == str(tmp_path / "gdal-data")
        assert diagnose(config, FakeBackend())["proj_db_exists"] is True

    def test_environment_wins_over_bundled_data(self, tmp_path) -> None:
        """Test variables already set are kept."""
        (tmp_path / "proj-data").mkdir()
        (tmp_path / "gdal-data").mkdir()

        config = RuntimeConfig.from_env({"PROJ_LIB": "/opt/proj", "GDAL_DATA": "/opt/gdal"}, app_dir=tmp_path)

        assert config.proj_lib == "/opt/proj"
        assert config.proj_data == str(tmp_path / "proj-data")
        assert config.gdal_data == "/opt/gdal"

    def test_gdal_options(self) -> None:
        """Test only set values become GDAL options."""
        assert RuntimeConfig().gdal_options() == {"GDAL_FILENAME_IS_UTF8": "YES"}

        config = RuntimeConfig(proj_lib="/opt/proj", shape_encoding="")
        assert config.gdal_options() == {
            "GDAL_FILENAME_IS_UTF8": "YES",
            "SHAPE_ENCODING": "",
            "PROJ_LIB": "/opt/proj",
        }

    def test_proj_db_path(self) -> None:
        """Test proj.db location follows PROJ_LIB."""
        assert RuntimeConfig().proj_db_path is None
        assert RuntimeConfig(proj_lib="/opt/proj").proj_db_path == Path("/opt/proj/proj.db")

    def test_tool_candidates(self, tmp_path) -> None:
        """Test lookup order: app dir, gdal-tools, then PATH."""
        config = RuntimeConfig(app_dir=tmp_path, tool_name="ogr2ogr", search_path=[Path("/usr/bin")])
        assert config.tool_candidates() == [
            tmp_path / "ogr2ogr",
            tmp_path / "gdal-tools" / "ogr2ogr",
            Path("/usr/bin/ogr2ogr"),
        ]


class TestDiagnose:
    """Test the environment report."""

    def test_report(self, tmp_path) -> None:
        """Test version, paths and a sample of drivers."""
        (tmp_path / "proj.db").write_bytes(b"")
        config = RuntimeConfig(proj_lib=str(tmp_path), gdal_data="/opt/gdal/data")

        report = diagnose(config, FakeBackend())

        assert report["version"] == "3.8.4"
        assert report["gdal_data"] == "/opt/gdal/data"
        assert report["proj_db_exists"] is True
        assert report["proj_db_path"] == str(tmp_path / "proj.db")
        assert report["driver_count"] == 12
        assert len(report["drivers"]) == 10

    def test_missing_proj_db(self, tmp_path) -> None:
        """Test a PROJ_LIB without proj.db is reported."""
        report = diagnose(RuntimeConfig(proj_lib=str(tmp_path)), FakeBackend())
        assert report["proj_db_exists"] is False

    def test_no_proj_lib(self) -> None:
        """Test an unset PROJ_LIB."""
        report = diagnose(RuntimeConfig(), FakeBackend())
        assert report["proj_db_path"] is None
        assert report["proj_db_exists"] is False


class TestInMemorySummaryCache:
    """Test the summary cache."""

    def test_put_get(self) -> None:
        """Test basic storage and replacement."""
        cache = InMemorySummaryCache()
        assert cache.get("a.shp") is None

        cache.put("a.shp", 1)
        cache.put("a.shp", 2)
        cache.put("b.shp", 3)

        assert cache.get("a.shp") == 2
        assert sorted(cache.values()) == [2, 3]
        assert len(cache) == 2

        cache.clear()
        assert len(cache) == 0

    def test_concurrent_puts(self) -> None:
        """Test writers on several threads."""
        cache = InMemorySummaryCache()

        def fill(prefix: str) -> None:
            for i in range(200):
                cache.put(f"{prefix}{i}.shp", i)

        threads = [threading.Thread(target=fill, args=(p,)) for p in "abcd"]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 800
