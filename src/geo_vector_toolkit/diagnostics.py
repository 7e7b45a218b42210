"""
Environment report for troubleshooting GDAL/PROJ setups.
"""

import logging
from typing import Any

from geo_vector_toolkit.backends.base import VectorBackend
from geo_vector_toolkit.config import RuntimeConfig

logger = logging.getLogger(__name__)

# Only the first few drivers are listed; driver_count has the total
DRIVER_SAMPLE_SIZE = 10


def diagnose(config: RuntimeConfig, backend: VectorBackend) -> dict[str, Any]:
    """
    Describe the library version, data paths and registered drivers.

    Args:
        config: Runtime configuration in effect.
        backend: Backend to query.

    Returns:
        Dict with version, gdal_data, proj_lib, proj_data, proj_db_path,
        proj_db_exists, driver_count and drivers (a sample of short names).
    """
    drivers = backend.drivers()
    proj_db = config.proj_db_path
    proj_db_exists = proj_db is not None and proj_db.is_file()

    if proj_db is not None and not proj_db_exists:
        logger.warning("proj.db not found at %s", proj_db)

    return {
        "version": backend.version(),
        "gdal_data": config.gdal_data,
        "proj_lib": config.proj_lib,
        "proj_data": config.proj_data,
        "proj_db_path": str(proj_db) if proj_db is not None else None,
        "proj_db_exists": proj_db_exists,
        "driver_count": len(drivers),
        "drivers": list(drivers)[:DRIVER_SAMPLE_SIZE],
    }
