import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    CONFIG_FILENAME,
    DEFAULT_CONTAINER,
    DEFAULT_DB_IMAGE,
    DEFAULT_DB_NAME,
    DEFAULT_DB_PASSWORD,
    DEFAULT_HOST_PORT,
    DEFAULT_IMPORT_IMAGE,
    DEFAULT_NETWORK,
    DEFAULT_ROADS_SQL,
)
from .core import Provisioner
from .errors import ProvisionError
from .errors_catalog import actionable_error
from .models import DesiredState
from .services.config_loader import ConfigLoader
from .services.validation import ValidationService


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option("--network", required=False, help=f"Docker network to ensure (default: {DEFAULT_NETWORK}).")
@click.option("--container", required=False, help=f"Database container name (default: {DEFAULT_CONTAINER}).")
@click.option("--db-name", required=False, help=f"Database to create and import into (default: {DEFAULT_DB_NAME}).")
@click.option("--db-password", required=False, help="Password for the postgres superuser.")
@click.option("--host-port", required=False, type=int, default=None, help="Host port mapped to 5432.")
@click.option("--db-image", required=False, help="Database image, used only when creating the container.")
@click.option("--import-image", required=False, help="osm2pgsql image used for the one-shot import.")
@click.option(
    "--workdir",
    required=False,
    type=click.Path(file_okay=False),
    help="Host directory mounted into the import container (default: current directory).",
)
@click.option("--source", required=False, help="OSM extract: path, filename inside workdir, or HTTPS URL.")
@click.option("--source-sha256", required=False, help="Expected SHA-256 of a downloaded extract.")
@click.option("--bbox", required=False, help="Import filter as minlon,minlat,maxlon,maxlat.")
@click.option("--skip-import", is_flag=True, default=None, help="Do not import OSM data.")
@click.option("--skip-roads", is_flag=True, default=None, help="Do not build the roads table.")
@click.option("--roads-sql", required=False, type=click.Path(dir_okay=False), help="Custom roads SQL script.")
@click.option(
    "--allow-insecure-http",
    is_flag=True,
    default=None,
    help="Allow HTTP URLs (insecure). By default only HTTPS URLs are accepted.",
)
@click.option("--manifest-file", required=False, type=click.Path(dir_okay=False), help="Run manifest JSON path.")
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {CONFIG_FILENAME} if present.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(
    network,
    container,
    db_name,
    db_password,
    host_port,
    db_image,
    import_image,
    workdir,
    source,
    source_sha256,
    bbox,
    skip_import,
    skip_roads,
    roads_sql,
    allow_insecure_http,
    manifest_file,
    config,
    verbose,
    log_file,
):
    """Provision a PostGIS/pgRouting database and load an OpenStreetMap extract."""
    logger = logging.getLogger("routingdb")

    try:
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), CONFIG_FILENAME)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = ConfigLoader().load(resolved_config)
    except ProvisionError as exc:
        raise click.ClickException(str(exc)) from exc

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    skip_import = bool(_resolve_option(skip_import, config_values, "skip_import", default=False))
    skip_roads = bool(_resolve_option(skip_roads, config_values, "skip_roads", default=False))
    source = _resolve_option(source, config_values, "source")
    workdir = os.path.abspath(str(_resolve_option(workdir, config_values, "workdir", default=os.getcwd())))

    if not source and not skip_import:
        raise click.ClickException(actionable_error("source_required"))

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    try:
        desired = DesiredState(
            network_name=str(_resolve_option(network, config_values, "network", default=DEFAULT_NETWORK)),
            container_name=str(_resolve_option(container, config_values, "container", default=DEFAULT_CONTAINER)),
            db_image=str(_resolve_option(db_image, config_values, "db_image", default=DEFAULT_DB_IMAGE)),
            import_image=str(
                _resolve_option(import_image, config_values, "import_image", default=DEFAULT_IMPORT_IMAGE)
            ),
            db_name=str(_resolve_option(db_name, config_values, "db_name", default=DEFAULT_DB_NAME)),
            db_password=str(
                _resolve_option(db_password, config_values, "db_password", default=DEFAULT_DB_PASSWORD)
            ),
            host_port=int(_resolve_option(host_port, config_values, "host_port", default=DEFAULT_HOST_PORT)),
            workdir=workdir,
            roads_sql=os.path.abspath(
                str(_resolve_option(roads_sql, config_values, "roads_sql", default=DEFAULT_ROADS_SQL))
            ),
            source=str(source) if source else None,
            source_sha256=ValidationService.normalize_sha256(
                _resolve_option(source_sha256, config_values, "source_sha256")
            ),
            bbox=ValidationService.parse_bbox(_resolve_option(bbox, config_values, "bbox")),
            skip_import=skip_import,
            skip_roads=skip_roads,
            allow_insecure_http=bool(
                _resolve_option(allow_insecure_http, config_values, "allow_insecure_http", default=False)
            ),
        )
        provisioner = Provisioner(
            desired,
            manifest_file=_resolve_option(manifest_file, config_values, "manifest_file"),
        )
    except (ProvisionError, TypeError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(provisioner.run())


if __name__ == "__main__":
    main()
