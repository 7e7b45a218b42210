"""
CRS detection and reprojection to WGS84 longitude/latitude.

Policy:
- EPSG:4326 and EPSG:4490 (CGCS2000) are left as they are.
- Any other CRS, including one without an EPSG code, is reprojected.
- A layer without any CRS is assumed to be WGS84 already.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError, ProjError

from geo_vector_toolkit.errors import InvalidFormatError
from geo_vector_toolkit.models import Extent

logger = logging.getLogger(__name__)

# Defined inline so no EPSG database lookup is needed for the target.
WGS84_WKT = (
    'GEOGCS["WGS 84",DATUM["WGS_1984",SPHEROID["WGS 84",6378137,298.257223563]],'
    'PRIMEM["Greenwich",0],UNIT["degree",0.0174532925199433]]'
)

# CGCS2000 is accepted as-is; the datum shift is ignored.
WGS84_EQUIVALENT_EPSG = frozenset({4326, 4490})


def parse_crs(definition: str | CRS | None) -> CRS | None:
    """
    Parse a CRS definition (WKT, "EPSG:xxxx", PROJ string).

    Args:
        definition: Definition to parse. None or empty means undefined.

    Returns:
        The parsed CRS, or None when undefined.

    Raises:
        InvalidFormatError: If the definition cannot be parsed.
    """
    if definition is None or isinstance(definition, CRS):
        return definition
    if not str(definition).strip():
        return None
    try:
        return CRS.from_user_input(definition)
    except CRSError as e:
        logger.error("Cannot build spatial reference from %r: %s", definition, e)
        raise InvalidFormatError(f"Invalid spatial reference: {e}") from e


@dataclass
class CrsDecision:
    """Outcome of inspecting a layer's source CRS."""

    source: CRS | None
    epsg: int | None
    needs_transform: bool
    definition: str | None = None
    """Definition as the layer reported it."""

    @property
    def undetermined(self) -> bool:
        """True when the layer declares no CRS at all."""
        return self.source is None

    @property
    def wkt(self) -> str | None:
        """Source CRS as the layer's own WKT, or None."""
        if self.source is None:
            return None
        return self.definition or self.source.to_wkt()


class CrsNormalizer:
    """
    Decides whether data must be reprojected and builds the transforms.

    The WGS84 target always uses traditional GIS axis order, so output is
    (x=longitude, y=latitude) whatever the authority says.
    """

    def __init__(self) -> None:
        try:
            self.target = CRS.from_wkt(WGS84_WKT)
        except CRSError as e:
            raise InvalidFormatError(f"Cannot create WGS84 spatial reference: {e}") from e

    def decide(self, definition: str | CRS | None) -> CrsDecision:
        """
        Inspect a source CRS definition.

        Args:
            definition: Source CRS definition, or None when the layer has none.

        Returns:
            CrsDecision describing the source and whether to reproject.
        """
        source = parse_crs(definition)
        if source is None:
            logger.warning("No CRS detected, assuming data is already WGS84")
            return CrsDecision(source=None, epsg=None, needs_transform=False)

        epsg = source.to_epsg()
        logger.info("Source CRS EPSG code: %s", epsg if epsg is not None else "none")
        needs = epsg not in WGS84_EQUIVALENT_EPSG
        logger.info("Reprojection to WGS84 required: %s", needs)
        return CrsDecision(
            source=source,
            epsg=epsg,
            needs_transform=needs,
            definition=definition if isinstance(definition, str) else None,
        )

    def needs_transform(self, definition: str | CRS | None) -> bool:
        """Whether data in this CRS must be reprojected to WGS84."""
        return self.decide(definition).needs_transform

    def transformer(self, source: CRS | None) -> Transformer:
        """
        Build a transformer from source to WGS84 lon/lat.

        A missing source defaults to WGS84 itself (identity).

        Raises:
            InvalidFormatError: If the transform cannot be created.
        """
        try:
            return Transformer.from_crs(source or self.target, self.target, always_xy=True)
        except (CRSError, ProjError) as e:
            logger.error("Cannot create coordinate transform: %s", e)
            raise InvalidFormatError(f"Cannot create coordinate transform: {e}") from e

    def transformer_for(self, decision: CrsDecision) -> Transformer | None:
        """Transformer for a decision, or None when no reprojection is needed."""
        if not decision.needs_transform:
            return None
        return self.transformer(decision.source)

    def transform_extent(self, extent: Extent, transformer: Transformer) -> Extent:
        """
        Reproject an extent by transforming its four corners.

        The result is the bounding box of the transformed corners, which
        can be looser than the true envelope of the reprojected shape.

        Raises:
            InvalidFormatError: If any corner fails to transform.
        """
        xs, ys = extent.corners()
        try:
            out_x, out_y = transformer.transform(xs, ys, errcheck=True)
        except ProjError as e:
            logger.error("Extent transform failed: %s", e)
            raise InvalidFormatError(f"Extent transform failed: {e}") from e

        result = Extent(
            min_x=min(out_x),
            min_y=min(out_y),
            max_x=max(out_x),
            max_y=max(out_y),
        )
        logger.info(
            "Extent reprojected to WGS84: [%s, %s, %s, %s]",
            result.min_x,
            result.min_y,
            result.max_x,
            result.max_y,
        )
        return result

    def normalize_extent(
        self,
        bounds: tuple[float, float, float, float],
        decision: CrsDecision,
    ) -> Extent:
        """Source bounds as a WGS84 extent according to the decision."""
        extent = Extent.from_bounds(bounds)
        transformer = self.transformer_for(decision)
        if transformer is None:
            return extent
        return self.transform_extent(extent, transformer)


def transform_coordinates(
    from_crs: str,
    to_crs: str,
    coordinates: Iterable[Sequence[float]],
) -> list[tuple[float, float]]:
    """
    Transform (x, y) pairs between two CRS definitions.

    Both sides use traditional axis order (x=lon/easting, y=lat/northing).

    Args:
        from_crs: Source definition (EPSG code string, WKT or PROJ string).
        to_crs: Target definition.
        coordinates: Iterable of (x, y) pairs.

    Returns:
        Transformed (x, y) pairs in input order.

    Raises:
        InvalidFormatError: If either CRS or the transform is invalid.
    """
    source = parse_crs(from_crs)
    target = parse_crs(to_crs)
    if source is None or target is None:
        raise InvalidFormatError("Both source and target CRS must be given")

    points = [(float(p[0]), float(p[1])) for p in coordinates]
    if not points:
        return []

    try:
        transformer = Transformer.from_crs(source, target, always_xy=True)
        xs, ys = transformer.transform(
            [p[0] for p in points], [p[1] for p in points], errcheck=True
        )
    except (CRSError, ProjError) as e:
        raise InvalidFormatError(f"Coordinate transform failed: {e}") from e

    return list(zip(xs, ys))
