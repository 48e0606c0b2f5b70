# src/alchemist/export/rules_export.py
from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from alchemist.errors import DataError
from alchemist.metrics.logger import write_json
from alchemist.schemas.rules import RuleConfig

logger = logging.getLogger(__name__)


def write_rule_config(config: RuleConfig, out_path: Path) -> Path:
    """
    @brief
    Persists a rule configuration as JSON.

    @details
    Output shape: {"rules": [StructuredRule...], "prioritizationWeights": {name: 0..100}},
    camelCase keys, unset optional fields omitted. Written atomically.

    @raises
        ExportError when the write fails.
    """
    path = write_json(config.to_json_dict(), Path(out_path))
    logger.info("Rule configuration saved: %s (%d rule(s))", path, len(config.rules))
    return path


def load_rule_config(path: Path) -> RuleConfig:
    """
    @brief
    Reads a rule configuration written by write_rule_config.

    @raises
        DataError if the file is missing, not JSON, or does not match the schema.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise DataError(
            f"Rule configuration not found: {path}",
            source="export.load_rule_config",
            suggested_action="Check the path to rules.json.",
        ) from e
    except (OSError, json.JSONDecodeError) as e:
        raise DataError(
            f"Unable to read rule configuration {path}: {e}",
            source="export.load_rule_config",
            suggested_action="Ensure the file is UTF-8 JSON produced by the exporter.",
        ) from e

    try:
        return RuleConfig.model_validate(data)
    except ValidationError as e:
        raise DataError(
            f"Invalid rule configuration structure: {e}",
            source="export.load_rule_config",
            suggested_action="Expect top-level keys 'rules' and 'prioritizationWeights'.",
        ) from e


__all__ = ["write_rule_config", "load_rule_config"]
