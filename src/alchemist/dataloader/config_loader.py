# src/alchemist/dataloader/config_loader.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from alchemist.errors import ConfigError
from alchemist.schemas.models import Config

logger = logging.getLogger(__name__)


class ConfigLoader:
    """
    @brief
    Reads config.yaml and validates it into a `Config`.

    @details
    YAML is parsed with `yaml.safe_load`; the resulting mapping is validated
    against the strict pydantic schema (unknown keys rejected, weights in
    0..100, saturation ratio in (0, 1]). Every failure mode surfaces as a
    `ConfigError` carrying a suggested action.
    """

    SUFFIXES = frozenset({".yaml", ".yml"})

    def load(self, path: Path) -> Config:
        """
        @brief
        Load and validate configuration from a YAML file.

        @raises
            ConfigError
                Raised if file is missing, malformed, or fails schema validation.
        """
        data = self._read_yaml(path)
        cfg = self._validate(data)
        logger.info(
            "Config loaded from %s (saturation ratio %.2f, %d weight(s))",
            path,
            cfg.saturation_warning_ratio,
            len(cfg.prioritization_weights),
        )
        return cfg

    def load_or_default(self, path: Path | None) -> Config:
        """Load `path` if given, otherwise return the built-in defaults."""
        if path is None:
            logger.info("No config file given; using defaults.")
            return Config()
        return self.load(path)

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        if not isinstance(path, Path):
            raise ConfigError(
                message=f"Invalid path type: expected pathlib.Path, got {type(path).__name__}",
                source="ConfigLoader._read_yaml",
                suggested_action="Pass a pathlib.Path object pointing to config.yaml.",
            )

        if not path.exists():
            raise ConfigError(
                message=f"Configuration file not found: {path}",
                source="ConfigLoader._read_yaml",
                suggested_action="Ensure config.yaml exists and the path is correct.",
            )

        if path.suffix.lower() not in self.SUFFIXES:
            raise ConfigError(
                message=f"Invalid configuration file extension: {path.suffix}",
                source="ConfigLoader._read_yaml",
                suggested_action="Use .yaml or .yml extension for configuration files.",
            )

        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(
                message=f"YAML parsing failed: {e}",
                source="ConfigLoader._read_yaml",
                suggested_action="Fix YAML syntax/indentation.",
            ) from e
        except OSError as e:
            raise ConfigError(
                message=f"Unable to read configuration file: {e}",
                source="ConfigLoader._read_yaml",
                suggested_action="Check file permissions and path accessibility.",
            ) from e

        if data is None:
            raise ConfigError(
                message="Configuration file is empty.",
                source="ConfigLoader._read_yaml",
                suggested_action="Populate config.yaml or omit --config to use defaults.",
            )

        if not isinstance(data, Mapping):
            raise ConfigError(
                message="Configuration root must be a mapping (key: value pairs).",
                source="ConfigLoader._read_yaml",
                suggested_action="Ensure top-level YAML structure uses key: value mappings.",
            )

        return dict(data)

    def _validate(self, data: dict[str, Any]) -> Config:
        try:
            return Config.model_validate(data)
        except ValidationError as e:
            raise ConfigError(
                message=f"Invalid configuration structure: {e}",
                source="ConfigLoader._validate",
                suggested_action=(
                    "Check field names, types, and bounds in config.yaml "
                    "(prioritization weights must be integers in 0..100). "
                    "Remove unknown keys (extra fields are forbidden)."
                ),
            ) from e


__all__ = ["ConfigLoader"]
