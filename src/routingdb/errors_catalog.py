"""Actionable error catalog for routingdb."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "docker_not_found": {
        "what": "Docker CLI not found on PATH.",
        "next": "Install Docker Engine (or Docker Desktop) and make sure `docker` runs for your user.",
    },
    "source_not_found": {
        "what": "OSM extract not found: {path}",
        "next": "Check the path or place the extract inside the workdir before retrying.",
    },
    "source_required": {
        "what": "No OSM extract was given.",
        "next": "Pass `--source` with a path or HTTPS URL, or use `--skip-import`.",
    },
    "roads_sql_not_found": {
        "what": "Roads SQL script not found: {path}",
        "next": "Pass an existing file with `--roads-sql` or omit it to use the bundled script.",
    },
    "insecure_http": {
        "what": "{label} uses insecure HTTP.",
        "next": "Switch to HTTPS or use `--allow-insecure-http` only for trusted endpoints.",
    },
    "invalid_bbox": {
        "what": "Invalid bounding box '{value}': {reason}",
        "next": "Use four decimal degrees as `minlon,minlat,maxlon,maxlat`.",
    },
    "database_not_ready": {
        "what": "Database in container '{container}' was not ready after {attempts} attempts.",
        "next": "Inspect `docker logs {container}` and check available resources, then rerun.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
