"""Shared constants for routingdb."""

from pathlib import Path

DEFAULT_NETWORK = "routing_net"
DEFAULT_CONTAINER = "routing_db"
DEFAULT_DB_NAME = "routing"
DEFAULT_DB_PASSWORD = "postgres"
DEFAULT_HOST_PORT = 5432
DEFAULT_DB_IMAGE = "pgrouting/pgrouting:16-3.4-3.6.1"
DEFAULT_IMPORT_IMAGE = "iboates/osm2pgsql:latest"

DB_USER = "postgres"
DB_PORT = 5432

EXTENSIONS = ("postgis", "hstore", "pgrouting")

READY_MAX_ATTEMPTS = 30
READY_INTERVAL_SECONDS = 2.0

IMPORT_MOUNT_DIR = "/data"
CONTAINER_STAGING_DIR = "/tmp/routingdb"

ROADS_TABLE = "roads"
DEFAULT_ROADS_SQL = Path(__file__).resolve().parent / "sql" / "build_roads.sql"

MANIFEST_FILENAME = "routingdb-manifest.json"
CONFIG_FILENAME = ".routingdb.yml"
