"""Input and URL validation helpers for routingdb."""

from typing import Optional, Sequence, Union
from urllib.parse import urlparse

from routingdb.errors import PreconditionError
from routingdb.errors_catalog import actionable_error
from routingdb.models import BoundingBox


class ValidationService:
    """Validates user inputs and protocol policy."""

    def __init__(self, allow_insecure_http: bool = False):
        self.allow_insecure_http = allow_insecure_http

    def is_url(self, location: str) -> bool:
        scheme = urlparse(location).scheme.lower()
        return scheme in {"http", "https"}

    def enforce_https_policy(self, location: str, label: str, logger, console):
        if not self.is_url(location):
            return

        scheme = urlparse(location).scheme.lower()
        if scheme == "http" and not self.allow_insecure_http:
            raise PreconditionError(actionable_error("insecure_http", label=label))

        if scheme == "http" and self.allow_insecure_http:
            logger.warning("Insecure HTTP enabled for %s: %s", label, location)
            console.print(
                f"[yellow]Warning:[/yellow] Using insecure HTTP for {label}. "
                "Prefer HTTPS whenever possible."
            )

    @staticmethod
    def normalize_sha256(value: Optional[str], option_name: str = "--source-sha256") -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str):
            raise PreconditionError(f"{option_name} must be a string of 64 hexadecimal characters.")

        clean_value = value.strip().lower()
        if len(clean_value) != 64 or any(c not in "0123456789abcdef" for c in clean_value):
            raise PreconditionError(
                f"{option_name} must be a valid SHA-256 hash (64 hexadecimal characters)."
            )
        return clean_value

    @staticmethod
    def parse_bbox(value: Union[None, str, Sequence[float]]) -> Optional[BoundingBox]:
        """Parse ``minlon,minlat,maxlon,maxlat`` from a string or a 4-item sequence."""
        if value is None or (isinstance(value, str) and not value.strip()):
            return None

        raw = value

        def invalid(reason: str) -> PreconditionError:
            return PreconditionError(actionable_error("invalid_bbox", value=str(raw), reason=reason))

        if isinstance(value, str):
            parts = [part.strip() for part in value.replace(" ", ",").split(",") if part.strip()]
        elif isinstance(value, (list, tuple)):
            parts = list(value)
        else:
            raise invalid("expected a string or a list of 4 numbers")

        if len(parts) != 4:
            raise invalid(f"expected 4 values, got {len(parts)}")

        try:
            min_lon, min_lat, max_lon, max_lat = (float(part) for part in parts)
        except (TypeError, ValueError):
            raise invalid("values must be numbers") from None

        for lon in (min_lon, max_lon):
            if not -180.0 <= lon <= 180.0:
                raise invalid(f"longitude {lon} is outside [-180, 180]")
        for lat in (min_lat, max_lat):
            if not -90.0 <= lat <= 90.0:
                raise invalid(f"latitude {lat} is outside [-90, 90]")
        if min_lon >= max_lon or min_lat >= max_lat:
            raise invalid("minimum must be smaller than maximum on both axes")

        return BoundingBox(min_lon=min_lon, min_lat=min_lat, max_lon=max_lon, max_lat=max_lat)
