"""Configuration loader for routingdb."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from routingdb.errors import PreconditionError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "network",
        "container",
        "db_name",
        "db_password",
        "host_port",
        "db_image",
        "import_image",
        "workdir",
        "source",
        "source_sha256",
        "bbox",
        "skip_import",
        "skip_roads",
        "roads_sql",
        "allow_insecure_http",
        "manifest_file",
        "verbose",
        "log_file",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise PreconditionError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise PreconditionError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise PreconditionError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise PreconditionError(f"Unknown configuration keys: {unknown_list}")

        return parsed
