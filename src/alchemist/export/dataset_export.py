# src/alchemist/export/dataset_export.py
from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from alchemist.errors import DataError
from alchemist.metrics.logger import _atomic_write_text

# Internal row-identity column of editable grids; never exported.
_INTERNAL_COLUMNS = frozenset({"id"})


def _to_rows(records: Any) -> list[Mapping[str, Any]]:
    """
    @brief
    Converts records into a list of mappings keyed by spreadsheet column name.

    @details
    Accepts pydantic records (dumped by alias, extra columns included) and
    plain mappings. Explicitly rejects a plain dict to prevent accidental
    iteration over keys.

    @raises
        DataError if input is unsupported or contains unsupported items.
    """
    if isinstance(records, (dict, str, bytes)) or not isinstance(records, Iterable):
        raise DataError(
            "Unsupported records type.",
            source="export.to_csv_text",
            suggested_action="Pass a list of records or a list of dicts.",
        )

    rows: list[Mapping[str, Any]] = []
    for record in records:
        if isinstance(record, BaseModel):
            rows.append(record.model_dump(by_alias=True))
        elif isinstance(record, Mapping):
            rows.append(record)
        else:
            raise DataError(
                f"Each record must be a model or a mapping, got {type(record).__name__}.",
                source="export.to_csv_text",
                suggested_action="Pass a list of records or a list of dicts.",
            )
    return rows


def _format_cell(value: Any) -> str:
    """
    @brief
    Renders one CSV cell.

    @details
    None and NaN become an empty cell; strings are wrapped in double quotes
    with embedded quotes doubled; booleans are lower-case; integral floats
    drop their ".0"; other values use str().
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return '"' + value.replace('"', '""') + '"'
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def to_csv_text(records: Any) -> str:
    """
    @brief
    Serialises records as comma-separated text.

    @details
    The header row lists the column names of the first record (internal
    row-identity column excluded), each wrapped in double quotes. Rows are
    joined with "\\n"; a column missing from a later row is an empty cell.
    An empty input yields an empty string.
    """
    rows = _to_rows(records)
    if not rows:
        return ""

    headers = [h for h in rows[0].keys() if h not in _INTERNAL_COLUMNS]
    lines = [",".join('"' + h.replace('"', '""') + '"' for h in headers)]
    for row in rows:
        lines.append(",".join(_format_cell(row.get(h)) for h in headers))
    return "\n".join(lines)


def write_dataset_csv(records: Any, out_path: Path) -> Path:
    """
    @brief
    Exports one dataset to a CSV file (atomic write, UTF-8).

    @returns
        Path to the written CSV file.

    @raises
        DataError for unsupported input, ExportError when the write fails.
    """
    text = to_csv_text(records)
    _atomic_write_text(Path(out_path), text + ("\n" if text else ""), encoding="utf-8")
    return Path(out_path)


__all__ = ["to_csv_text", "write_dataset_csv"]
