import pytest

from routingdb.errors import PreconditionError
from routingdb.models import BoundingBox
from routingdb.services.validation import ValidationService


class DummyLogger:
    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


def test_parse_bbox_from_string():
    bbox = ValidationService.parse_bbox("7.40, 43.72, 7.44, 43.75")

    assert bbox == BoundingBox(min_lon=7.40, min_lat=43.72, max_lon=7.44, max_lat=43.75)
    assert bbox.as_arg() == "7.4,43.72,7.44,43.75"


def test_parse_bbox_from_sequence():
    assert ValidationService.parse_bbox([-1, 50, 1.5, 51]) == BoundingBox(-1.0, 50.0, 1.5, 51.0)


def test_parse_bbox_none_or_blank():
    assert ValidationService.parse_bbox(None) is None
    assert ValidationService.parse_bbox("  ") is None


@pytest.mark.parametrize(
    "value, reason",
    [
        ("1,2,3", "expected 4 values"),
        ("a,b,c,d", "must be numbers"),
        ("-190,10,10,20", "outside \\[-180, 180\\]"),
        ("10,95,20,96", "outside \\[-90, 90\\]"),
        ("10,20,5,30", "minimum must be smaller"),
        (5, "expected a string or a list"),
        ({"min_lon": 1}, "expected a string or a list"),
    ],
)
def test_parse_bbox_rejects_invalid_values(value, reason):
    with pytest.raises(PreconditionError, match=reason):
        ValidationService.parse_bbox(value)


def test_normalize_sha256():
    digest = "A" * 64
    assert ValidationService.normalize_sha256(digest) == "a" * 64
    assert ValidationService.normalize_sha256(None) is None

    with pytest.raises(PreconditionError, match="SHA-256"):
        ValidationService.normalize_sha256("abc")

    with pytest.raises(PreconditionError, match="must be a string"):
        ValidationService.normalize_sha256(1234)


def test_http_blocked_unless_allowed():
    strict = ValidationService()
    with pytest.raises(PreconditionError, match="insecure HTTP"):
        strict.enforce_https_policy("http://example.com/a.pbf", "source URL", DummyLogger(), DummyConsole())

    relaxed = ValidationService(allow_insecure_http=True)
    relaxed.enforce_https_policy("http://example.com/a.pbf", "source URL", DummyLogger(), DummyConsole())


def test_is_url():
    service = ValidationService()

    assert service.is_url("https://download.geofabrik.de/europe/monaco-latest.osm.pbf")
    assert not service.is_url("/data/monaco-latest.osm.pbf")
    assert not service.is_url("monaco-latest.osm.pbf")


def test_bbox_argument_uses_plain_decimals():
    assert BoundingBox(0.00001, -0.5, 1e-7, 2.0).as_arg() == "0.00001,-0.5,0.0000001,2"
    assert BoundingBox(-73.99, 40.7, -73.9, 40.8).as_arg() == "-73.99,40.7,-73.9,40.8"
