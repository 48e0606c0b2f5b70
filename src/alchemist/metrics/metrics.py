# src/alchemist/metrics/metrics.py
from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from typing import Any

import pandas as pd

from alchemist.schemas.models import (
    ClientRecord,
    Origin,
    Severity,
    TaskRecord,
    ValidationIssue,
    WorkerRecord,
)
from alchemist.schemas.rules import StructuredRule
from alchemist.validator.cross_checks import (
    DEFAULT_SATURATION_RATIO,
    accumulate_group_capacity,
    accumulate_phase_demand,
)

_ISSUE_COLUMNS = ["id", "row_id", "field", "message", "severity", "origin"]
_SATURATION_COLUMNS = ["phase", "demand", "capacity", "ratio", "status"]


def issues_frame(issues: Iterable[ValidationIssue]) -> pd.DataFrame:
    """One row per issue, columns as in ValidationIssue (empty frame keeps the columns)."""
    rows = [i.model_dump(mode="json") for i in issues]
    return pd.DataFrame(rows, columns=_ISSUE_COLUMNS)


def phase_saturation_frame(
    workers: Sequence[WorkerRecord],
    tasks: Sequence[TaskRecord],
    saturation_ratio: float = DEFAULT_SATURATION_RATIO,
) -> pd.DataFrame:
    """
    @brief
    Demand/capacity table per phase, in first-seen phase order.

    @details
    Reuses the accumulators of the phase-saturation check, so the numbers are
    the ones the validator compared. `ratio` is demand/capacity (NaN without
    capacity); `status` is one of ok | high | oversaturated | no_capacity.
    """
    demand, _ = accumulate_phase_demand(tasks)
    capacity = accumulate_group_capacity(workers)

    rows: list[dict[str, Any]] = []
    for phase, total in demand.items():
        supply = capacity.get(phase, 0.0)
        if not supply:
            status, ratio = "no_capacity", float("nan")
        else:
            ratio = total / supply
            if total > supply:
                status = "oversaturated"
            elif total > saturation_ratio * supply:
                status = "high"
            else:
                status = "ok"
        rows.append(
            {"phase": phase, "demand": total, "capacity": supply, "ratio": ratio, "status": status}
        )
    return pd.DataFrame(rows, columns=_SATURATION_COLUMNS)


def collect_metrics(
    issues: Sequence[ValidationIssue],
    clients: Sequence[ClientRecord],
    workers: Sequence[WorkerRecord],
    tasks: Sequence[TaskRecord],
    rules: Sequence[StructuredRule] = (),
    saturation_ratio: float = DEFAULT_SATURATION_RATIO,
) -> dict[str, Any]:
    """
    @brief
    Builds a JSON-serializable summary of one validation run.

    @details
    Record counts, issue counts per origin and severity (every origin and
    severity is present, zero if unused), rule parse outcomes and the
    per-phase saturation table.
    """
    frame = issues_frame(issues)
    counts = frame.groupby(["origin", "severity"]).size()

    by_origin: dict[str, dict[str, int]] = {}
    for origin in Origin:
        by_origin[origin.value] = {
            severity.value: int(counts.get((origin.value, severity.value), 0))
            for severity in Severity
        }

    saturation = phase_saturation_frame(workers, tasks, saturation_ratio)
    # NaN is not valid JSON; phases without capacity report ratio=None.
    saturation_rows = [
        {
            "phase": str(row["phase"]),
            "demand": float(row["demand"]),
            "capacity": float(row["capacity"]),
            "ratio": None if pd.isna(row["ratio"]) else round(float(row["ratio"]), 6),
            "status": str(row["status"]),
        }
        for row in saturation.to_dict(orient="records")
    ]

    parsed = sum(1 for r in rules if r.parsed_successfully)
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "records": {"clients": len(clients), "workers": len(workers), "tasks": len(tasks)},
        "issues": {
            "total": len(frame),
            "errors": int((frame["severity"] == Severity.ERROR.value).sum()),
            "warnings": int((frame["severity"] == Severity.WARNING.value).sum()),
            "by_origin": by_origin,
        },
        "rules": {"total": len(rules), "parsed": parsed, "failed": len(rules) - parsed},
        "phase_saturation": saturation_rows,
    }


__all__ = ["collect_metrics", "issues_frame", "phase_saturation_frame"]
