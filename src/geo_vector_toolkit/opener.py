"""
Open vector datasets with encoding fallback.
"""

import logging
from pathlib import Path

from geo_vector_toolkit.backends.base import VectorBackend, VectorDataset
from geo_vector_toolkit.encoding import resolve_encodings
from geo_vector_toolkit.errors import FileReadError
from geo_vector_toolkit.formats import get_format

logger = logging.getLogger(__name__)


def _label(encoding: str) -> str:
    return encoding or "default"


class DatasetOpener:
    """
    Opens datasets read-only, trying candidate encodings in order.

    Shapefile, KML and KMZ go through the encoding candidates from
    resolve_encodings(); every other file is opened once with defaults.
    """

    def __init__(self, backend: VectorBackend) -> None:
        self.backend = backend

    def open(self, path: str | Path) -> VectorDataset:
        """
        Open a dataset.

        Args:
            path: Path to the vector file.

        Returns:
            The open dataset. The caller must close it.

        Raises:
            FileReadError: If the file cannot be opened with any candidate.
        """
        path = str(path)
        fmt = get_format(path)

        if fmt is None or not fmt.encoding_sensitive:
            try:
                return self.backend.open_dataset(path)
            except Exception as e:
                raise FileReadError(f"Cannot open {path}: {e}") from e

        candidates = resolve_encodings(path)
        last_error: Exception | None = None
        for encoding in candidates:
            logger.info("Opening %s with encoding %s", path, _label(encoding))
            try:
                dataset = self.backend.open_dataset(path, encoding or None)
            except Exception as e:
                logger.warning("Encoding %s failed for %s: %s", _label(encoding), path, e)
                last_error = e
                continue
            logger.info("Opened %s with encoding %s", path, _label(encoding))
            return dataset

        tried = ", ".join(_label(enc) for enc in candidates)
        raise FileReadError(
            f"Cannot open {path}: all {len(candidates)} candidate encodings failed "
            f"({tried}); last error: {last_error}"
        )
