"""
Runtime configuration for the GDAL/PROJ stack.

Built once at process start and passed to the service instead of mutating
the process environment.
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

logger = logging.getLogger(__name__)

PROJ_DATA_SUBDIR = "proj-data"
GDAL_DATA_SUBDIR = "gdal-data"


def _default_app_dir() -> Path:
    """Directory of the running application (frozen binary or interpreter)."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(sys.executable).parent


def _default_tool_name() -> str:
    return "ogr2ogr.exe" if sys.platform == "win32" else "ogr2ogr"


@dataclass
class RuntimeConfig:
    """Configuration for dataset access and the export tool."""

    gdal_data: str | None = None
    """Value for GDAL_DATA, if any."""

    proj_lib: str | None = None
    """Value for PROJ_LIB, if any."""

    proj_data: str | None = None
    """Value for PROJ_DATA, if any."""

    app_dir: Path = field(default_factory=_default_app_dir)
    """Directory searched first for the conversion tool."""

    tools_subdir: str = "gdal-tools"
    """Subdirectory of app_dir searched second."""

    tool_name: str = field(default_factory=_default_tool_name)
    """Executable name of the conversion tool."""

    search_path: list[Path] = field(default_factory=list)
    """Directories searched last, in order."""

    shape_encoding: str | None = None
    """Optional SHAPE_ENCODING override for the Shapefile driver."""

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        app_dir: str | Path | None = None,
    ) -> "RuntimeConfig":
        """
        Build a configuration from environment variables.

        Data directories bundled next to the application (proj-data,
        gdal-data) fill in whichever variables are unset.

        Args:
            environ: Mapping to read from. Defaults to os.environ.
            app_dir: Application directory. Defaults to the interpreter's directory.

        Returns:
            A new RuntimeConfig.
        """
        env = os.environ if environ is None else environ
        search_path = [Path(p) for p in env.get("PATH", "").split(os.pathsep) if p]

        config = cls(
            gdal_data=env.get("GDAL_DATA") or None,
            proj_lib=env.get("PROJ_LIB") or None,
            proj_data=env.get("PROJ_DATA") or None,
            search_path=search_path,
        )
        if app_dir is not None:
            config.app_dir = Path(app_dir)

        bundled_proj = config.app_dir / PROJ_DATA_SUBDIR
        if bundled_proj.is_dir():
            config.proj_lib = config.proj_lib or str(bundled_proj)
            config.proj_data = config.proj_data or str(bundled_proj)
            logger.info("Bundled PROJ data found: %s", bundled_proj)

        bundled_gdal = config.app_dir / GDAL_DATA_SUBDIR
        if bundled_gdal.is_dir():
            config.gdal_data = config.gdal_data or str(bundled_gdal)
            logger.info("Bundled GDAL data found: %s", bundled_gdal)

        return config

    @property
    def proj_db_path(self) -> Path | None:
        """Location of proj.db implied by PROJ_LIB, if set."""
        if not self.proj_lib:
            return None
        return Path(self.proj_lib) / "proj.db"

    def gdal_options(self) -> dict[str, str]:
        """GDAL config options to apply when opening datasets."""
        options = {"GDAL_FILENAME_IS_UTF8": "YES"}
        if self.shape_encoding is not None:
            options["SHAPE_ENCODING"] = self.shape_encoding
        if self.gdal_data:
            options["GDAL_DATA"] = self.gdal_data
        if self.proj_lib:
            options["PROJ_LIB"] = self.proj_lib
        if self.proj_data:
            options["PROJ_DATA"] = self.proj_data
        return options

    def tool_candidates(self) -> list[Path]:
        """Locations to look for the conversion tool, in priority order."""
        candidates = [
            self.app_dir / self.tool_name,
            self.app_dir / self.tools_subdir / self.tool_name,
        ]
        candidates.extend(directory / self.tool_name for directory in self.search_path)
        return candidates
