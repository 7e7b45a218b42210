"""
Command-line interface for Geo Vector Toolkit.
"""

import json
import logging
from typing import Any

import click

from geo_vector_toolkit import __version__
from geo_vector_toolkit.cache import InMemorySummaryCache
from geo_vector_toolkit.errors import VectorToolkitError
from geo_vector_toolkit.formats import get_supported_formats
from geo_vector_toolkit.service import VectorService


# Custom help class for better formatting
class CustomGroup(click.Group):
    """Custom group with better help formatting."""

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Write the help into the formatter with additional info."""
        self.format_usage(ctx, formatter)
        self.format_help_text(ctx, formatter)
        self.format_options(ctx, formatter)
        self.format_commands(ctx, formatter)

        # Add examples section
        formatter.write_paragraph()
        with formatter.section("Examples"):
            formatter.write_text("gvt info rivers.shp")
            formatter.write_text("gvt layers boundaries.kml")
            formatter.write_text("gvt table rivers.shp --offset 100 --limit 50")
            formatter.write_text("gvt export rivers.shp rivers.kmz --format KMZ")
            formatter.write_text("gvt transform --from EPSG:3857 --to EPSG:4326 11584184.5,3588769.9")


def _echo_json(payload: Any, pretty: bool = False) -> None:
    click.echo(json.dumps(payload, ensure_ascii=False, indent=2 if pretty else None))


def _service(ctx: click.Context) -> VectorService:
    """Service for this invocation; tests can inject one through ctx.obj."""
    if not isinstance(ctx.obj, VectorService):
        ctx.obj = VectorService(cache=InMemorySummaryCache())
    return ctx.obj


def _parse_point(text: str) -> tuple[float, float]:
    try:
        x, y = text.split(",")
        return float(x), float(y)
    except ValueError:
        raise click.BadParameter(f"Expected X,Y but got {text!r}", param_hint="COORDINATES")


@click.group(cls=CustomGroup)
@click.version_option(version=__version__, prog_name="geo-vector-toolkit")
@click.option("--verbose", "-v", count=True, help="Log decisions (-v) or everything (-vv)")
@click.pass_context
def main(ctx: click.Context, verbose: int) -> None:
    """
    Geo Vector Toolkit - Inspect, read and convert vector GIS files.

    Opens Shapefile, KML/KMZ, GeoPackage, GeoJSON and anything else GDAL
    reads, reprojects to WGS84 longitude/latitude and prints JSON.

    \b
    Optional environment variables:
      GDAL_DATA   GDAL support files
      PROJ_LIB    PROJ database directory (proj.db)
      PROJ_DATA   PROJ data directory

    \b
    For more help on a specific command:
      gvt COMMAND --help
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
        )


@main.command()
@click.argument("file_path", type=click.Path(exists=True))
@click.option("--pretty", "-p", is_flag=True, help="Pretty-print output JSON")
@click.pass_context
def info(ctx: click.Context, file_path: str, pretty: bool) -> None:
    """
    Summarize the first layer of a file.

    \b
    Examples:
      gvt info rivers.shp
      gvt info parcels.gpkg --pretty
    """
    try:
        result = _service(ctx).open_vector_info(file_path)
    except VectorToolkitError as e:
        raise click.ClickException(str(e))
    _echo_json(result.to_dict(), pretty)


@main.command()
@click.argument("file_path", type=click.Path(exists=True))
@click.option("--pretty", "-p", is_flag=True, help="Pretty-print output JSON")
@click.pass_context
def layers(ctx: click.Context, file_path: str, pretty: bool) -> None:
    """
    Summarize every layer of a container file.

    Layers that cannot be read are skipped; layer_count still counts them.

    \b
    Examples:
      gvt layers boundaries.kml
    """
    try:
        result = _service(ctx).open_multi_layer_info(file_path)
    except VectorToolkitError as e:
        raise click.ClickException(str(e))
    _echo_json(result.to_dict(), pretty)


@main.command()
@click.argument("file_path", type=click.Path(exists=True))
@click.option("--layer", "-l", "layer_index", type=click.IntRange(min=0), help="Layer index")
@click.option("--output", "-o", "output_file", type=click.Path(), help="Write to file")
@click.option("--pretty", "-p", is_flag=True, help="Pretty-print output JSON")
@click.pass_context
def geojson(
    ctx: click.Context,
    file_path: str,
    layer_index: int | None,
    output_file: str | None,
    pretty: bool,
) -> None:
    """
    Convert a file, or one of its layers, to WGS84 GeoJSON.

    \b
    Examples:
      gvt geojson rivers.shp
      gvt geojson boundaries.kml --layer 2 -o counties.geojson --pretty
    """
    service = _service(ctx)
    try:
        if layer_index is None:
            collection = service.get_geojson(file_path)
        else:
            collection = service.get_layer_geojson(file_path, layer_index)
    except VectorToolkitError as e:
        raise click.ClickException(str(e))

    if output_file is None:
        _echo_json(collection, pretty)
        return

    with open(output_file, "w", encoding="utf-8") as f:
        if pretty:
            json.dump(collection, f, indent=2, ensure_ascii=False)
        else:
            json.dump(collection, f, ensure_ascii=False)

    click.echo(f"\n✅ Wrote {len(collection['features'])} features to {output_file}")


@main.command()
@click.argument("file_path", type=click.Path(exists=True))
@click.option("--offset", default=0, type=click.IntRange(min=0), help="Features to skip")
@click.option("--limit", type=click.IntRange(min=0), help="Maximum number of features")
@click.option("--geometry", "-g", "include_geometry", is_flag=True, help="Include geometry")
@click.option("--pretty", "-p", is_flag=True, help="Pretty-print output JSON")
@click.pass_context
def features(
    ctx: click.Context,
    file_path: str,
    offset: int,
    limit: int | None,
    include_geometry: bool,
    pretty: bool,
) -> None:
    """
    Print features of the first layer, attributes only by default.

    \b
    Examples:
      gvt features rivers.shp --limit 10
      gvt features rivers.shp --offset 10 --limit 10 --geometry
    """
    try:
        result = _service(ctx).get_features(
            file_path, offset=offset, limit=limit, include_geometry=include_geometry
        )
    except VectorToolkitError as e:
        raise click.ClickException(str(e))
    _echo_json([f.to_dict() for f in result], pretty)


@main.command()
@click.argument("file_path", type=click.Path(exists=True))
@click.option("--offset", default=0, type=click.IntRange(min=0), help="Rows to skip")
@click.option("--limit", type=click.IntRange(min=0), help="Maximum number of rows")
@click.option("--pretty", "-p", is_flag=True, help="Pretty-print output JSON")
@click.pass_context
def table(
    ctx: click.Context,
    file_path: str,
    offset: int,
    limit: int | None,
    pretty: bool,
) -> None:
    """
    Print one page of the attribute table with geometry and total count.

    \b
    Examples:
      gvt table rivers.shp --offset 100 --limit 50
    """
    try:
        result = _service(ctx).get_attribute_table(file_path, offset=offset, limit=limit)
    except VectorToolkitError as e:
        raise click.ClickException(str(e))
    _echo_json(result, pretty)


@main.command()
@click.argument("input_file", type=click.Path(exists=True))
@click.argument("output_file", type=click.Path())
@click.option(
    "--format", "-f", "format_name", required=True, help="KML, KMZ, GeoJSON, Shapefile/SHP or GPKG"
)
@click.option("--layer", "-l", "layer_index", type=click.IntRange(min=0), help="Export one layer")
@click.pass_context
def export(
    ctx: click.Context,
    input_file: str,
    output_file: str,
    format_name: str,
    layer_index: int | None,
) -> None:
    """
    Export a file to another format with ogr2ogr.

    An existing output file is replaced.

    \b
    Examples:
      gvt export rivers.shp rivers.kmz --format KMZ
      gvt export boundaries.kml counties.gpkg -f GPKG --layer 2
    """
    click.echo(f"\n🔄 Exporting: {input_file}")
    click.echo(f"   Format: {format_name}")
    if layer_index is not None:
        click.echo(f"   Layer: {layer_index}")

    try:
        _service(ctx).export_vector(input_file, output_file, format_name, layer_index)
    except VectorToolkitError as e:
        raise click.ClickException(str(e))

    click.echo(f"\n✅ Exported to {output_file}")


@main.command()
@click.option("--from", "from_crs", required=True, help="Source CRS (EPSG:xxxx, WKT or PROJ)")
@click.option("--to", "to_crs", required=True, help="Target CRS (EPSG:xxxx, WKT or PROJ)")
@click.argument("coordinates", nargs=-1, required=True)
@click.pass_context
def transform(ctx: click.Context, from_crs: str, to_crs: str, coordinates: tuple[str, ...]) -> None:
    """
    Transform X,Y pairs between coordinate systems.

    Both sides use longitude/easting first.

    \b
    Examples:
      gvt transform --from EPSG:4326 --to EPSG:3857 104.06,30.67
      gvt transform --from EPSG:3857 --to EPSG:4326 11584184.5,3588769.9 0,0
    """
    points = [_parse_point(text) for text in coordinates]
    try:
        result = _service(ctx).transform_coordinates(from_crs, to_crs, points)
    except VectorToolkitError as e:
        raise click.ClickException(str(e))
    _echo_json([list(p) for p in result])


@main.command()
@click.argument("file_path", type=click.Path(exists=True))
@click.option("--attributes", "-a", is_flag=True, help="Print every DBF record instead")
@click.option("--pretty", "-p", is_flag=True, help="Pretty-print output JSON")
@click.pass_context
def shapefile(ctx: click.Context, file_path: str, attributes: bool, pretty: bool) -> None:
    """
    Quick Shapefile preview without GDAL.

    Prints header, schema and .prj EPSG code, or the raw attribute records.

    \b
    Examples:
      gvt shapefile rivers.shp
      gvt shapefile rivers.shp --attributes
    """
    service = _service(ctx)
    try:
        if attributes:
            payload: Any = service.get_shapefile_attributes(file_path)
        else:
            payload = service.load_shapefile(file_path).to_dict()
    except VectorToolkitError as e:
        raise click.ClickException(str(e))
    _echo_json(payload, pretty)


@main.command()
def formats() -> None:
    """
    List formats with special handling and their export tokens.

    Any other format GDAL can read is opened with library defaults.

    \b
    Examples:
      gvt formats
    """
    click.echo("\n📁 Supported Formats\n")
    click.echo("-" * 60)

    for fmt in get_supported_formats():
        extensions = ", ".join(fmt["file_extensions"])
        tokens = ", ".join(fmt["export_tokens"])

        click.echo(f"\n{fmt['format_name']}")
        click.echo(f"   Extensions: {extensions}")
        click.echo(f"   Export: --format {tokens} ({fmt['export_driver']})")
        if fmt["fixed_encoding"]:
            click.echo(f"   Encoding: {fmt['fixed_encoding']}")
        elif fmt["encoding_sensitive"]:
            click.echo("   Encoding: .cpg, then GBK / UTF-8 fallback")

    click.echo("\n" + "-" * 60 + "\n")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Print the raw report as JSON")
@click.pass_context
def diagnose(ctx: click.Context, as_json: bool) -> None:
    """
    Show the GDAL version, data paths and registered drivers.

    \b
    Examples:
      gvt diagnose
      gvt diagnose --json
    """
    try:
        report = _service(ctx).diagnose()
    except VectorToolkitError as e:
        raise click.ClickException(str(e))

    if as_json:
        _echo_json(report, pretty=True)
        return

    proj_db_status = "✅" if report["proj_db_exists"] else "❌"
    click.echo(f"\n🔧 GDAL {report['version']}\n")
    click.echo(f"   GDAL_DATA: {report['gdal_data'] or '(not set)'}")
    click.echo(f"   PROJ_LIB:  {report['proj_lib'] or '(not set)'}")
    click.echo(f"   PROJ_DATA: {report['proj_data'] or '(not set)'}")
    click.echo(f"   proj.db:   {proj_db_status} {report['proj_db_path'] or '(unknown)'}")
    click.echo(f"\n   Drivers: {report['driver_count']}")
    for name in report["drivers"]:
        click.echo(f"     • {name}")
    if report["driver_count"] > len(report["drivers"]):
        click.echo(f"     ... and {report['driver_count'] - len(report['drivers'])} more")
    click.echo()


if __name__ == "__main__":
    main()
