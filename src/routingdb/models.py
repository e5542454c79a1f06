"""Shared domain models for routingdb."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from routingdb.constants import DB_USER


@dataclass(frozen=True)
class BoundingBox:
    """Geographic filter in decimal degrees."""

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    @staticmethod
    def _degrees(value: float) -> str:
        text = f"{float(value):.7f}".rstrip("0").rstrip(".")
        return "0" if text in ("", "-0") else text

    def as_arg(self) -> str:
        return ",".join(
            self._degrees(value) for value in (self.min_lon, self.min_lat, self.max_lon, self.max_lat)
        )


@dataclass(frozen=True)
class DesiredState:
    """Everything a run needs, read once at startup and never mutated."""

    network_name: str
    container_name: str
    db_image: str
    import_image: str
    db_name: str
    db_password: str
    host_port: int
    workdir: str
    roads_sql: str
    source: Optional[str] = None
    source_sha256: Optional[str] = None
    bbox: Optional[BoundingBox] = None
    skip_import: bool = False
    skip_roads: bool = False
    allow_insecure_http: bool = False
    db_user: str = DB_USER


@dataclass(frozen=True)
class ContainerSnapshot:
    """Observed runtime facts about one container."""

    exists: bool
    running: bool = False
    networks: Tuple[str, ...] = field(default_factory=tuple)


class ContainerState(str, Enum):
    ABSENT = "absent"
    STOPPED_UNATTACHED = "stopped_unattached"
    STOPPED_ATTACHED = "stopped_attached"
    RUNNING_UNATTACHED = "running_unattached"
    RUNNING_ATTACHED = "running_attached"


class ContainerAction(str, Enum):
    CREATE = "create"
    START = "start"
    CONNECT = "connect"


@dataclass(frozen=True)
class ImportJob:
    host_path: str
    container_path: str
    bbox: Optional[BoundingBox] = None
