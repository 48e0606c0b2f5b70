from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from alchemist.schemas.models import DataSet, Record


@dataclass(slots=True)
class LoadResult:
    """
    Structured result of mapping decoded rows to typed records.

    Fields:
        success: True if every row could be turned into a record.
        data_set: Which dataset the rows belong to.
        records: Typed records in input order (empty if success=False).
        errors: List of issue dicts with per-row context (used for reporting).
                Each item contains at least: kind, line_no, message, record_id (may be None).
        total_rows: Number of data rows observed (excludes header).
        kept_rows: Number of records produced (len(records)).
    """

    success: bool
    data_set: DataSet
    records: list[Record] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)
    total_rows: int = 0
    kept_rows: int = 0
