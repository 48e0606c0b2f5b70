# src/alchemist/dataloader/records_loader.py
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import pandas as pd
from pydantic import ValidationError

from alchemist.dataloader.types import LoadResult
from alchemist.errors import DataError
from alchemist.schemas.models import RECORD_TYPES, DataSet, Record

logger = logging.getLogger(__name__)


class RecordsLoader:
    """
    Decoded rows → LoadResult[Record] for one dataset.

    Rules:
      - Input: mappings of column name → cell, e.g. DataFrame.to_dict("records").
        Spreadsheet headers (ClientID, PriorityLevel, ...) and attribute names
        (client_id, priority, ...) are both accepted.
      - Cells: NaN/None → None, strings stripped. Values are otherwise kept raw;
        range and type faults are the validator's business, not the loader's.
      - Row-level issues (cell that cannot populate a record field, e.g. a list)
        → issue + continue; any issue makes success=False and records=[].

    Fatal errors (raise DataError immediately):
      - no rows at all
      - the identity column (ClientID / WorkerID / TaskID) is absent
      - CSV file missing or undecodable (load_csv only)
    """

    def __init__(self, data_set: DataSet) -> None:
        self.data_set = DataSet(data_set)
        self.record_type = RECORD_TYPES[self.data_set]

    def load_csv(self, path: Path) -> LoadResult:
        """Read a CSV with pandas (all cells as text) and map its rows."""
        frame = self._read_csv(path)
        result = self.load_frame(frame)
        self._report_summary(str(path), result)
        return result

    def load_frame(self, frame: pd.DataFrame) -> LoadResult:
        return self.load_rows(frame.to_dict(orient="records"))

    def load_rows(self, rows: Iterable[Mapping[str, Any]]) -> LoadResult:
        normalized = [self._normalize_row(r) for r in rows]
        if not normalized:
            raise DataError(
                message=f"The {self.data_set.value} data appears to be empty or malformed.",
                source="RecordsLoader.load_rows",
                suggested_action="Provide at least one data row below the header.",
            )
        self._validate_header(normalized[0].keys())
        return self._rows_to_result(normalized)

    # ------------------------------
    # Internal helpers
    # ------------------------------
    def _read_csv(self, path: Path) -> pd.DataFrame:
        if not isinstance(path, Path):
            raise DataError(
                message=f"Invalid path type: expected pathlib.Path, got {type(path).__name__}",
                source="RecordsLoader._read_csv",
                suggested_action=f"Pass a pathlib.Path pointing to the {self.data_set.value} CSV.",
            )
        if not path.exists():
            raise DataError(
                message=f"Input CSV not found: {path}",
                source="RecordsLoader._read_csv",
                suggested_action="Verify file path and ensure the CSV is present.",
            )
        try:
            return pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8")
        except pd.errors.EmptyDataError as e:
            raise DataError(
                message=f"The uploaded file '{path.name}' appears to be empty or malformed.",
                source="RecordsLoader._read_csv",
                suggested_action="Ensure the first line contains column names.",
            ) from e
        except (pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
            raise DataError(
                message=f"Unable to read CSV {path}: {e}",
                source="RecordsLoader._read_csv",
                suggested_action="Check the file is UTF-8 comma-separated text and not locked.",
            ) from e

    def _validate_header(self, header: Iterable[str]) -> None:
        id_field = self.record_type.ID_FIELD
        alias = self.record_type.model_fields[id_field].alias
        columns = set(header)
        if id_field not in columns and alias not in columns:
            raise DataError(
                message=f"Invalid {self.data_set.value} header: missing identity column {alias}",
                source="RecordsLoader._validate_header",
                suggested_action=f"Add a {alias} column to the {self.data_set.value} data.",
            )

    @staticmethod
    def _normalize_cell(value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        if pd.api.types.is_scalar(value) and pd.isna(value):
            return None
        return value

    def _normalize_row(self, row: Mapping[str, Any]) -> dict[str, Any]:
        return {str(k).strip(): self._normalize_cell(v) for k, v in row.items()}

    def _rows_to_result(self, rows: list[dict[str, Any]]) -> LoadResult:
        issues: list[dict[str, Any]] = []
        records: list[Record] = []

        for idx, row in enumerate(rows, start=2):  # header = line 1
            try:
                records.append(self.record_type.model_validate(row))
            except ValidationError as e:
                id_alias = self.record_type.model_fields[self.record_type.ID_FIELD].alias
                issues.append(
                    {
                        "kind": "schema_error",
                        "line_no": idx,
                        "record_id": row.get(id_alias) or row.get(self.record_type.ID_FIELD),
                        "message": f"{self.record_type.__name__} construction failed: {e}",
                    }
                )

        if issues:
            return LoadResult(
                success=False,
                data_set=self.data_set,
                records=[],
                errors=issues,
                total_rows=len(rows),
                kept_rows=0,
            )

        return LoadResult(
            success=True,
            data_set=self.data_set,
            records=records,
            errors=[],
            total_rows=len(rows),
            kept_rows=len(records),
        )

    def _report_summary(self, origin: str, result: LoadResult) -> None:
        if result.success:
            logger.info(
                "RecordsLoader[%s] OK: kept=%d/%d from %s",
                self.data_set.value,
                result.kept_rows,
                result.total_rows,
                origin,
            )
        else:
            logger.error(
                "RecordsLoader[%s] failed: %d issue(s) across %d row(s) in %s",
                self.data_set.value,
                len(result.errors),
                result.total_rows,
                origin,
            )


def load_records(data_set: DataSet, rows: Iterable[Mapping[str, Any]]) -> list[Record]:
    """
    @brief
    Shortcut for callers that already hold decoded rows.

    @raises
        DataError if the rows cannot all be mapped to records.
    """
    data_set = DataSet(data_set)
    result = RecordsLoader(data_set).load_rows(rows)
    if not result.success:
        first = result.errors[0]
        raise DataError(
            message=f"{len(result.errors)} {data_set.value} row(s) could not be loaded; "
            f"first at line {first['line_no']}: {first['message']}",
            source="records_loader.load_records",
            suggested_action="Fix the reported cells and reload.",
        )
    return result.records


__all__ = ["RecordsLoader", "load_records"]
