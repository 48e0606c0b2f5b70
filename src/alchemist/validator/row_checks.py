# src/alchemist/validator/row_checks.py
"""
@brief
Row-level checks for clients, workers and tasks.

@details
Each checker receives one candidate record together with the full collection
of records of the same type (needed for identifier uniqueness) and returns
the list of issues found on that row, in a fixed per-row check order.
Malformed values never raise: they are the subject of an issue.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable, Sequence
from typing import Any

from alchemist.schemas.models import (
    ClientRecord,
    DataSet,
    Origin,
    Record,
    Severity,
    TaskRecord,
    ValidationIssue,
    WorkerRecord,
    record_id,
)

logger = logging.getLogger(__name__)

PRIORITY_MIN = 1
PRIORITY_MAX = 5


# ----------------------------
# AUXILIARY FUNCTIONS
# ----------------------------
def parse_number(value: Any) -> float | None:
    """
    @brief
    Parse a spreadsheet cell into a finite number.

    @details
    Ints and floats pass through; strings are trimmed and parsed with float().
    Blank strings, non-numeric text, booleans, NaN and infinities are
    unparseable and yield None; they are never coerced to zero.

    @params
        value : Any
            Raw cell value.

    @returns
        The parsed number, or None if the value is not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def split_list(value: Any) -> list[str]:
    """Split a comma-separated cell, trimming items and dropping empties."""
    if value is None:
        return []
    return [item.strip() for item in str(value).split(",") if item.strip()]


def is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def row_ref(index: int | None) -> str:
    """Positional reference used inside issue ids (e.g. '#0')."""
    return "N/A" if index is None else f"#{index}"


def make_issue(
    origin: Origin,
    index: int | None,
    row_id: str,
    field: str,
    check: str,
    message: str,
    severity: Severity = Severity.ERROR,
    detail: str | None = None,
) -> ValidationIssue:
    """
    @brief
    Build a ValidationIssue with a deterministic identifier.

    @details
    The id joins origin, row position, field and check name (plus an optional
    detail for checks that fire several times per field), so re-validating an
    unchanged snapshot reproduces every id.
    """
    parts = [origin.value, row_ref(index), field, check]
    if detail is not None:
        parts.append(detail)
    return ValidationIssue(
        id="-".join(parts),
        row_id=row_id,
        field=field,
        message=message,
        severity=severity,
        origin=origin,
    )


def _position(record: Record, collection: Sequence[Record]) -> int:
    for i, candidate in enumerate(collection):
        if candidate is record:
            return i
    raise ValueError("record is not part of the given collection")


def display_id(record: Record, index: int) -> str:
    # Rows with a blank identifier are still addressable by their position.
    return record_id(record) or f"row {index + 1}"


def _check_identity(
    record: Record,
    collection: Sequence[Record],
    index: int,
    origin: Origin,
    label: str,
) -> list[ValidationIssue]:
    """
    @brief
    Identifier presence and uniqueness.

    @details
    A blank identifier is an error. A non-blank identifier that already
    appeared at an earlier position is an error, so k occurrences of the
    same identifier yield exactly k-1 uniqueness errors.
    """
    issues: list[ValidationIssue] = []
    field = record.ID_FIELD
    rid = record_id(record)

    if not rid:
        issues.append(
            make_issue(
                origin,
                index,
                display_id(record, index),
                field,
                "required",
                f"{label} is required.",
            )
        )
        return issues

    first = next((i for i, other in enumerate(collection) if record_id(other) == rid), index)
    if first < index:
        issues.append(
            make_issue(
                origin,
                index,
                rid,
                field,
                "duplicate",
                f"Duplicate {label}: '{rid}' already appears in row {first + 1}.",
            )
        )
    return issues


def _check_required(
    record: Record, index: int, origin: Origin, field: str, label: str
) -> list[ValidationIssue]:
    if is_blank(getattr(record, field)):
        return [
            make_issue(
                origin,
                index,
                display_id(record, index),
                field,
                "required",
                f"{label} is required.",
            )
        ]
    return []


def _check_positive(
    record: Record, index: int, origin: Origin, field: str, label: str
) -> tuple[float | None, list[ValidationIssue]]:
    number = parse_number(getattr(record, field))
    if number is None or number <= 0:
        return number, [
            make_issue(
                origin,
                index,
                display_id(record, index),
                field,
                "positive",
                f"{label} must be a positive number (got {getattr(record, field)!r}).",
            )
        ]
    return number, []


# ----------------------------
# PER-DATASET CHECKERS
# ----------------------------
def check_client(
    record: ClientRecord, clients: Sequence[ClientRecord], index: int | None = None
) -> list[ValidationIssue]:
    """
    @brief
    Validate one client row.

    @details
    Order: ClientID required, ClientID unique, ClientName required,
    PriorityLevel in [1, 5], AttributesJSON (if present) is valid JSON.

    @params
        record : ClientRecord
            Candidate row.
        clients : Sequence[ClientRecord]
            Full clients collection containing `record`.
        index : int | None
            Position of `record` in `clients`; located by identity if omitted.
    """
    origin = Origin.CLIENTS
    if index is None:
        index = _position(record, clients)

    issues = _check_identity(record, clients, index, origin, "ClientID")
    issues += _check_required(record, index, origin, "client_name", "ClientName")

    priority = parse_number(record.priority)
    if priority is None or not (PRIORITY_MIN <= priority <= PRIORITY_MAX):
        issues.append(
            make_issue(
                origin,
                index,
                display_id(record, index),
                "priority",
                "range",
                f"PriorityLevel must be a number between {PRIORITY_MIN} and {PRIORITY_MAX} "
                f"(got {record.priority!r}).",
            )
        )

    if not is_blank(record.attributes_json):
        try:
            json.loads(str(record.attributes_json))
        except json.JSONDecodeError as e:
            issues.append(
                make_issue(
                    origin,
                    index,
                    display_id(record, index),
                    "attributes_json",
                    "json",
                    f"AttributesJSON is not valid JSON: {e.msg}.",
                )
            )
    return issues


def check_worker(
    record: WorkerRecord, workers: Sequence[WorkerRecord], index: int | None = None
) -> list[ValidationIssue]:
    """
    @brief
    Validate one worker row.

    @details
    Order: WorkerID required, WorkerID unique, WorkerName required,
    AvailableSlots >= 0, MaxLoadPerPhase > 0, and finally an overload warning
    when both numbers are valid and AvailableSlots < MaxLoadPerPhase.
    """
    origin = Origin.WORKERS
    if index is None:
        index = _position(record, workers)

    issues = _check_identity(record, workers, index, origin, "WorkerID")
    issues += _check_required(record, index, origin, "worker_name", "WorkerName")

    slots = parse_number(record.available_slots)
    if slots is None or slots < 0:
        issues.append(
            make_issue(
                origin,
                index,
                display_id(record, index),
                "available_slots",
                "non_negative",
                f"AvailableSlots must be a non-negative number (got {record.available_slots!r}).",
            )
        )
        slots = None

    max_load, positive_issues = _check_positive(
        record, index, origin, "max_load_per_phase", "MaxLoadPerPhase"
    )
    issues += positive_issues
    if positive_issues:
        max_load = None

    if slots is not None and max_load is not None and slots < max_load:
        issues.append(
            make_issue(
                origin,
                index,
                display_id(record, index),
                "max_load_per_phase",
                "overload",
                f"AvailableSlots ({slots:g}) is lower than MaxLoadPerPhase ({max_load:g}); "
                "the worker may be overloaded.",
                severity=Severity.WARNING,
            )
        )
    return issues


def check_task(
    record: TaskRecord, tasks: Sequence[TaskRecord], index: int | None = None
) -> list[ValidationIssue]:
    """Validate one task row: TaskID, TaskName, Duration > 0, MaxConcurrent > 0."""
    origin = Origin.TASKS
    if index is None:
        index = _position(record, tasks)

    issues = _check_identity(record, tasks, index, origin, "TaskID")
    issues += _check_required(record, index, origin, "task_name", "TaskName")
    issues += _check_positive(record, index, origin, "duration", "Duration")[1]
    issues += _check_positive(record, index, origin, "max_concurrent", "MaxConcurrent")[1]
    return issues


ROW_CHECKS: dict[DataSet, Callable[..., list[ValidationIssue]]] = {
    DataSet.CLIENTS: check_client,
    DataSet.WORKERS: check_worker,
    DataSet.TASKS: check_task,
}


def check_rows(data_set: DataSet, records: Sequence[Record]) -> list[ValidationIssue]:
    """Run the row checker of `data_set` over every record, in dataset order."""
    checker = ROW_CHECKS[data_set]
    issues: list[ValidationIssue] = []
    for i, record in enumerate(records):
        issues.extend(checker(record, records, i))
    logger.debug(
        "Row checks on %s: %d row(s), %d issue(s)", data_set.value, len(records), len(issues)
    )
    return issues


__all__ = [
    "parse_number",
    "split_list",
    "make_issue",
    "display_id",
    "check_client",
    "check_worker",
    "check_task",
    "check_rows",
    "ROW_CHECKS",
]
