"""
Attribute value conversion and KML description parsing.

Some KML producers write a placemark's whole attribute table into its
description as text like:

    "OBJECTID":1 "HNNM":"岷江" "RIVER":"杂谷脑河"

Those pairs are lifted into real properties after the regular fields.
"""

import datetime
import logging
import math
import re
from typing import Any, Mapping

logger = logging.getLogger(__name__)

DESCRIPTION_FIELD = "description"

_PAIR_RE = re.compile(r'"(\S+)":("[^"]*"|\S+)')
_INT_RE = re.compile(r"[+-]?[0-9]+")

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def convert_value(value: Any) -> Any:
    """
    Convert a native field value to a JSON-compatible value.

    Args:
        value: Value as read from the source.

    Returns:
        str, int, finite float or None. Booleans become "True"/"False",
        dates and times become their string form, anything else is None.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        return value
    if isinstance(value, (datetime.date, datetime.time)):
        return str(value)
    return None


def _parse_token(token: str) -> Any:
    """Type a single value token from a description blob."""
    if len(token) >= 2 and token.startswith('"') and token.endswith('"'):
        return token[1:-1]

    if _INT_RE.fullmatch(token):
        number = int(token)
        if _INT64_MIN <= number <= _INT64_MAX:
            return number

    # float() also accepts full-width and other non-ASCII digits
    if token.isascii() and "_" not in token:
        try:
            number = float(token)
        except ValueError:
            pass
        else:
            if math.isfinite(number):
                return number

    return token


def parse_kml_description(description: str) -> dict[str, Any]:
    """
    Parse "key":value pairs out of a KML description.

    Pairs are scanned left to right without overlap. Quoted values are
    strings; unquoted values become int or float when they parse as such
    and stay strings otherwise.

    Args:
        description: Description text.

    Returns:
        Parsed properties in order of appearance (later keys win).
    """
    properties: dict[str, Any] = {}
    for match in _PAIR_RE.finditer(description):
        properties[match.group(1)] = _parse_token(match.group(2))
    return properties


def extract_properties(
    properties: Mapping[str, Any],
    embedded_attributes: bool = False,
) -> dict[str, Any]:
    """
    Convert a feature's field values and merge embedded description attributes.

    Args:
        properties: Field values in schema order.
        embedded_attributes: Whether to parse a 'description' string field.

    Returns:
        Converted properties. Parsed description keys are inserted after the
        regular fields and overwrite fields of the same name.
    """
    result: dict[str, Any] = {}
    description: str | None = None

    for name, value in properties.items():
        converted = convert_value(value)
        if (
            embedded_attributes
            and isinstance(value, str)
            and name.lower() == DESCRIPTION_FIELD
        ):
            description = value
        result[name] = converted

    if description:
        parsed = parse_kml_description(description)
        if parsed:
            logger.debug("Parsed %d attributes from description", len(parsed))
        result.update(parsed)

    return result
