# src/alchemist/metrics/logger.py
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from alchemist.errors import ExportError


def write_metrics(metrics: dict[str, Any], out_dir: Path) -> Path:
    """
    @brief
    Writes metrics.json atomically in UTF-8 encoding.

    @details
    Validates that the input is a serializable dictionary, dumps it with
    sorted keys and indentation, and atomically replaces the target file, so
    repeated runs overwrite the same file cleanly.

    @returns
        Path to the created metrics.json file.

    @raises
        ExportError
            If input is not a dict, is not JSON-serializable, or cannot be written.
    """
    if not isinstance(metrics, dict):
        raise ExportError("metrics must be a dict", source="metrics.write_metrics")
    return write_json(metrics, Path(out_dir) / "metrics.json", sort_keys=True)


def write_json(payload: Any, path: Path, *, sort_keys: bool = False) -> Path:
    """
    @brief
    Serialise `payload` to JSON and write it atomically to `path`.

    @raises
        ExportError
            If serialisation or the write fails.
    """
    try:
        text = json.dumps(payload, ensure_ascii=False, sort_keys=sort_keys, indent=2)
    except (TypeError, ValueError) as e:
        raise ExportError(
            f"payload for {Path(path).name} is not JSON-serializable: {e}",
            source="metrics.write_json",
            suggested_action="Ensure values are primitives (str/float/int/bool/list/dict).",
        ) from e

    target = Path(path)
    _atomic_write_text(target, text + "\n", encoding="utf-8")
    return target


def _atomic_write_text(path: Path, text: str, encoding: str = "utf-8") -> None:
    """
    @brief
    Performs atomic text file writing using a temporary file swap.

    @details
    Writes to a temporary file in the destination directory, then replaces
    the destination in a single filesystem operation.

    @raises
        ExportError
            On write or rename failure.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=path.name + ".", dir=str(path.parent))
    except OSError as e:
        raise ExportError(
            f"cannot prepare output directory for {path}: {e}",
            source="metrics._atomic_write_text",
            suggested_action="Check output directory permissions.",
        ) from e

    try:
        with open(fd, "w", encoding=encoding, newline="") as f:
            f.write(text)
        os.replace(tmp_path, path)
    except OSError as e:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise ExportError(
            f"atomic write failed for {path}: {e}",
            source="metrics._atomic_write_text",
            suggested_action="Check output directory permissions and disk space.",
        ) from e
