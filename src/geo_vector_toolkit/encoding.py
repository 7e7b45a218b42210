"""
Candidate text encodings for vector files.

The returned order is the order DatasetOpener tries them in. An empty
string stands for "let the library use its default".
"""

import logging
from pathlib import Path

from geo_vector_toolkit.formats import get_format

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = ""

# Legacy Shapefiles from our users are mostly GBK without a .cpg.
HEURISTIC_ORDER = ["GBK", "UTF-8", DEFAULT_ENCODING]

_CPG_ORDERS: dict[str, list[str]] = {
    "UTF-8": ["UTF-8", "GBK", DEFAULT_ENCODING],
    "UTF8": ["UTF-8", "GBK", DEFAULT_ENCODING],
    "GBK": ["GBK", "UTF-8", DEFAULT_ENCODING],
    "GB2312": ["GBK", "UTF-8", DEFAULT_ENCODING],
    "GB18030": ["GBK", "UTF-8", DEFAULT_ENCODING],
    "ISO-8859-1": ["ISO-8859-1", "GBK", "UTF-8", DEFAULT_ENCODING],
    "ISO8859-1": ["ISO-8859-1", "GBK", "UTF-8", DEFAULT_ENCODING],
    "LATIN1": ["ISO-8859-1", "GBK", "UTF-8", DEFAULT_ENCODING],
    "LATIN-1": ["ISO-8859-1", "GBK", "UTF-8", DEFAULT_ENCODING],
}


def read_cpg(path: str | Path) -> str | None:
    """
    Read the encoding declared by a sibling .cpg file.

    Args:
        path: Path of the main file (e.g. the .shp).

    Returns:
        The declared encoding, upper-cased and stripped, or None when there
        is no readable .cpg file.
    """
    main = Path(path)
    cpg_path = main.with_name(f"{main.stem}.cpg")
    if not cpg_path.is_file():
        return None
    try:
        declared = cpg_path.read_text(encoding="ascii", errors="ignore")
    except OSError as e:
        logger.warning("Cannot read %s: %s", cpg_path, e)
        return None
    return declared.strip().upper()


def resolve_encodings(path: str | Path) -> list[str]:
    """
    Return candidate encodings for a file, most likely first.

    Args:
        path: Path to the vector file.

    Returns:
        Non-empty list of encoding names, ending with the default ("").
    """
    fmt = get_format(path)
    if fmt is not None and fmt.fixed_encoding:
        logger.info("%s mandates %s", fmt.format_name, fmt.fixed_encoding)
        return [fmt.fixed_encoding, DEFAULT_ENCODING]

    declared = read_cpg(path)
    if declared is not None:
        logger.info("Found .cpg declaring %r for %s", declared, path)
        order = _CPG_ORDERS.get(declared)
        if order is not None:
            return list(order)
        logger.info("Unrecognized .cpg encoding %r, using heuristic order", declared)
    else:
        logger.info("No .cpg for %s, trying GBK, UTF-8, default", path)

    return list(HEURISTIC_ORDER)
