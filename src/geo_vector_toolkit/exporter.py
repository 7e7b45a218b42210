"""
Format export through the ogr2ogr command-line tool.
"""

import logging
import subprocess
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from geo_vector_toolkit.backends.base import VectorBackend
from geo_vector_toolkit.config import RuntimeConfig
from geo_vector_toolkit.errors import FileReadError, FileWriteError
from geo_vector_toolkit.formats import resolve_export_driver

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Outcome of running an external tool."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class ProcessRunner(ABC):
    """Runs an external tool and waits for it to exit."""

    @abstractmethod
    def run(self, tool_path: Path, args: list[str]) -> ProcessResult:
        """
        Run a tool.

        Raises:
            OSError: If the process cannot be started.
        """


class SubprocessRunner(ProcessRunner):
    """Runs tools with subprocess, capturing output as text."""

    def run(self, tool_path: Path, args: list[str]) -> ProcessResult:
        cmd = [str(tool_path)] + args
        kwargs: dict[str, Any] = {}
        if sys.platform == "win32":
            # No console window flashing up on Windows
            kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW

        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
            **kwargs,
        )
        return ProcessResult(
            exit_code=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )


class VectorExporter:
    """
    Converts vector files to another format with ogr2ogr.

    The input is addressed by path; a specific layer of a multi-layer
    container is exported by name, because ogr2ogr selects layers by name.
    """

    def __init__(
        self,
        config: RuntimeConfig | None = None,
        backend: VectorBackend | None = None,
        runner: ProcessRunner | None = None,
    ) -> None:
        self.config = config or RuntimeConfig.from_env()
        self.backend = backend
        self.runner = runner or SubprocessRunner()

    def locate_tool(self) -> Path:
        """
        Find the ogr2ogr executable.

        Searches the application directory, its gdal-tools subdirectory,
        then every directory on the search path.

        Raises:
            FileWriteError: If the tool is not found anywhere.
        """
        for candidate in self.config.tool_candidates():
            logger.debug("Looking for %s at %s", self.config.tool_name, candidate)
            if candidate.is_file():
                logger.info("Found %s at %s", self.config.tool_name, candidate)
                return candidate

        logger.error("%s not found", self.config.tool_name)
        raise FileWriteError(
            f"{self.config.tool_name} not found. Install GDAL or place "
            f"{self.config.tool_name} in {self.config.app_dir}, in "
            f"{self.config.app_dir / self.config.tools_subdir}, or in a directory on PATH."
        )

    def resolve_layer_name(self, input_path: str, layer_index: int) -> str:
        """
        Resolve a layer index to its name.

        Raises:
            FileReadError: If the input or the layer cannot be opened.
        """
        if self.backend is None:
            raise FileReadError("No backend available to resolve layer names")
        try:
            dataset = self.backend.open_dataset(input_path)
        except Exception as e:
            raise FileReadError(f"Cannot open input file {input_path}: {e}") from e

        with dataset:
            try:
                name = dataset.layer(layer_index).name
            except Exception as e:
                raise FileReadError(f"Cannot access layer index {layer_index}: {e}") from e

        logger.info("Layer index %d is %r", layer_index, name)
        return name

    def build_args(
        self,
        driver: str,
        input_path: str,
        output_path: str,
        layer_name: str | None = None,
    ) -> list[str]:
        """Arguments for ogr2ogr, without the executable."""
        args = ["-f", driver, output_path, input_path]
        if layer_name is not None:
            args.append(layer_name)
        return args

    def export(
        self,
        input_path: str | Path,
        output_path: str | Path,
        format_name: str,
        layer_index: int | None = None,
    ) -> None:
        """
        Export a vector file to another format.

        Args:
            input_path: Source file.
            output_path: Destination file; an existing file is replaced.
            format_name: KML, KMZ, GeoJSON, Shapefile/SHP or GPKG.
            layer_index: Export only this layer of the source.

        Raises:
            InvalidFormatError: If the format is unsupported. Nothing is run.
            FileReadError: If the requested layer cannot be resolved.
            FileWriteError: If ogr2ogr is missing, cannot run, or fails.
        """
        input_path = str(input_path)
        output_path = str(output_path)

        if layer_index is not None:
            logger.info(
                "Exporting layer %d: %s -> %s (%s)", layer_index, input_path, output_path, format_name
            )
        else:
            logger.info("Exporting %s -> %s (%s)", input_path, output_path, format_name)

        driver = resolve_export_driver(format_name)
        logger.info("Target driver: %s", driver)

        tool = self.locate_tool()

        output = Path(output_path)
        if output.exists():
            logger.info("Removing existing output %s", output)
            try:
                output.unlink()
            except OSError as e:
                logger.warning("Cannot remove %s, leaving it to ogr2ogr: %s", output, e)

        layer_name = None
        if layer_index is not None:
            layer_name = self.resolve_layer_name(input_path, layer_index)

        args = self.build_args(driver, input_path, output_path, layer_name)
        logger.info("Running %s %s", tool, " ".join(args))

        try:
            result = self.runner.run(tool, args)
        except OSError as e:
            logger.error("Cannot run %s: %s", tool, e)
            raise FileWriteError(f"Cannot run {self.config.tool_name}: {e}") from e

        if not result.success:
            logger.error("ogr2ogr failed (exit %d): %s", result.exit_code, result.stderr)
            raise FileWriteError(f"Export failed: {result.stderr.strip()}")

        logger.info("Exported to %s", output_path)
