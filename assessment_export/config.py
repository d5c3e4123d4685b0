"""
Configuration management for assessment-export.
"""

import copy
import json
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validate

from assessment_export.exceptions import InvalidConfigError

SCHEMA_FILE = Path(__file__).parent / "schema" / "config.schema.json"
CONFIG_FILENAME = "assessment-export.yaml"


class ExportConfig:
    """Loads assessment-export.yaml and fills in defaults for anything unset."""

    DEFAULT_CONFIG = {
        "output_dir": "output",
        "pdf": {
            "margin_mm": 10,
            "block_selectors": ".dashboard-card-print, .pf-v6-c-card",
            "marker_container_id": "hidden-container",
            "default_title": "VMware Infrastructure Assessment Report",
        },
        "html": {
            "release_delay": 0.25,  # seconds before a download is released
        },
        "browser": {
            "viewport_width": 1600,
            "device_scale_factor": 2,
            "container_selector": "#hidden-container",
            "timeout_ms": 30000,
        },
    }

    def __init__(self, root: Path, config_file: Path | None = None):
        self.root = Path(root)
        self.config_file = Path(config_file) if config_file else self.root / CONFIG_FILENAME
        self._config_cache: dict[str, Any] | None = None

    def initialize(self) -> Path:
        """Write the default configuration file and return its path."""
        self.root.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w") as f:
            yaml.dump(self.DEFAULT_CONFIG, f, default_flow_style=False, sort_keys=False)
        self._config_cache = None
        return self.config_file

    def load_config(self) -> dict[str, Any]:
        """
        Load, validate and cache the configuration.

        A missing file yields the defaults. Values in the file override the
        defaults section by section.

        Raises:
            InvalidConfigError: If the file is unreadable YAML or fails the schema
        """
        if self._config_cache is not None:
            return self._config_cache

        config = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_file.exists():
            try:
                with open(self.config_file) as f:
                    user_config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise InvalidConfigError(f"{self.config_file}: {e}") from e

            if user_config is not None:
                if not isinstance(user_config, dict):
                    raise InvalidConfigError(
                        f"expected a mapping, got {type(user_config).__name__}"
                    )
                self._validate_config_schema(user_config)
                for key, value in user_config.items():
                    if isinstance(value, dict) and isinstance(config.get(key), dict):
                        config[key].update(value)
                    else:
                        config[key] = value

        self._config_cache = config
        return config

    def _validate_config_schema(self, config: dict) -> None:
        schema = json.loads(SCHEMA_FILE.read_text())
        try:
            validate(instance=config, schema=schema)
        except ValidationError as e:
            path = ".".join(str(p) for p in e.path) or "<root>"
            raise InvalidConfigError(f"{e.message} (at {path})") from e

    @property
    def output_dir(self) -> Path:
        output = Path(self.load_config()["output_dir"])
        return output if output.is_absolute() else self.root / output

    @property
    def margin_mm(self) -> float:
        return self.load_config()["pdf"]["margin_mm"]

    @property
    def block_selectors(self) -> str:
        return self.load_config()["pdf"]["block_selectors"]

    @property
    def marker_container_id(self) -> str:
        return self.load_config()["pdf"]["marker_container_id"]

    @property
    def default_title(self) -> str:
        return self.load_config()["pdf"]["default_title"]

    @property
    def release_delay(self) -> float:
        return self.load_config()["html"]["release_delay"]

    @property
    def browser(self) -> dict[str, Any]:
        return self.load_config()["browser"]
