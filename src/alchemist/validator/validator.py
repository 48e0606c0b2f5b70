# src/alchemist/validator/validator.py
from __future__ import annotations

import json
import logging
from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from alchemist.errors import ExportError
from alchemist.schemas.models import (
    ClientRecord,
    Config,
    DataSet,
    Severity,
    TaskRecord,
    ValidationIssue,
    WorkerRecord,
)
from alchemist.validator.cross_checks import check_cross_dataset
from alchemist.validator.row_checks import check_rows

logger = logging.getLogger(__name__)


# ---------------------------
# VALIDATOR CLASS (instance core)
# ----------------------------
class DatasetValidator:
    """
    @brief
    Full validation pass over one snapshot of the three datasets.

    @details
    Runs the row checks for clients, workers and tasks, then the
    cross-dataset checks (referential integrity, skill coverage, phase
    saturation), and collects every finding into one ordered list.

    Never raises for malformed data: every fault becomes a ValidationIssue
    and validation continues over the remaining fields, rows and datasets.
    An instance holds the results of exactly one run; a new snapshot needs a
    new instance.
    """

    # ---------- Constructor ----------
    def __init__(
        self,
        clients: Sequence[ClientRecord],
        workers: Sequence[WorkerRecord],
        tasks: Sequence[TaskRecord],
        cfg: Config | None = None,
    ) -> None:
        """
        @brief
        Initialize validation context.

        @params
            clients, workers, tasks : Sequence
                Current snapshots of the three datasets.
            cfg : Config | None
                Runtime configuration; defaults apply when omitted.
        """
        self.clients = list(clients)
        self.workers = list(workers)
        self.tasks = list(tasks)
        self.cfg = cfg or Config()

        self.issues: list[ValidationIssue] = []
        self.checks: dict[str, bool] = {}

    # ---------- Public lifecycle API ----------
    def run_all_checks(self) -> list[ValidationIssue]:
        """
        @brief
        Execute the full validation sequence.

        @details
        Order is part of the contract: client rows, worker rows, task rows
        (each in dataset order, then per-row check order), followed by the
        cross-dataset checks in their fixed order.

        @returns
            The ordered list of issues (also kept on `self.issues`).
        """
        # (1) Row-level checks, dataset by dataset
        self._run("Clients", check_rows(DataSet.CLIENTS, self.clients))
        self._run("Workers", check_rows(DataSet.WORKERS, self.workers))
        self._run("Tasks", check_rows(DataSet.TASKS, self.tasks))

        # (2) Checks spanning the datasets
        self._run(
            "CrossDataset",
            check_cross_dataset(
                self.clients,
                self.workers,
                self.tasks,
                saturation_ratio=float(self.cfg.saturation_warning_ratio),
            ),
        )

        logger.info(
            "Validation finished: %d client(s), %d worker(s), %d task(s) → %d issue(s)",
            len(self.clients),
            len(self.workers),
            len(self.tasks),
            len(self.issues),
        )
        return self.issues

    def build_report(self) -> dict[str, Any]:
        """
        @brief
        Assemble validation results into a structured dictionary.

        @details
        The datasets are valid when no error-severity issue was found; with
        `validation.fail_on_warnings` enabled, warnings invalidate them too.
        No files are written at this stage.

        @returns
            A ValidationReport represented as a dictionary.
        """
        errors = [i for i in self.issues if i.severity == Severity.ERROR]
        warnings = [i for i in self.issues if i.severity == Severity.WARNING]

        is_valid = not errors
        if self.cfg.validation.fail_on_warnings:
            is_valid = is_valid and not warnings

        by_origin = Counter(str(i.origin) for i in self.issues)

        return {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "valid": bool(is_valid),
            "errors": [e.model_dump(mode="json") for e in errors],
            "warnings": [w.model_dump(mode="json") for w in warnings],
            "issues": [i.model_dump(mode="json") for i in self.issues],
            "counts": {
                "records": {
                    "clients": len(self.clients),
                    "workers": len(self.workers),
                    "tasks": len(self.tasks),
                },
                "errors": len(errors),
                "warnings": len(warnings),
                "by_origin": dict(by_origin),
            },
            "checks": self.checks,
        }

    def save_report(
        self,
        report: dict[str, Any],
        out_dir: Path | None = None,
        filename: str = "validation_report.json",
    ) -> Path:
        """
        Writes the report atomically to disk.

        Args:
            report: Validation report dictionary.
            out_dir: Target directory (defaults to 'data/output').
            filename: Target filename (default 'validation_report.json').

        Returns:
            Path to the written JSON file.
        """
        target_dir = out_dir or Path("data/output")
        final_path = target_dir / filename
        tmp_path = final_path.with_suffix(".tmp")

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(report, f, indent=2, ensure_ascii=False)
            tmp_path.replace(final_path)
        except OSError as e:
            raise ExportError(
                f"Failed to write validation report: {e}",
                source="DatasetValidator.save_report",
                suggested_action="Check disk permissions and free space.",
            ) from e

        logger.info("Validation report saved: %s", final_path)
        return final_path

    # ---------- Utilities ----------
    def _run(self, check: str, found: list[ValidationIssue]) -> None:
        # A check passes when it produced no error-severity issue.
        self.checks[check] = not any(i.severity == Severity.ERROR for i in found)
        self.issues.extend(found)


# ----------------------------
# THIN FACADES (static script call)
# ----------------------------
def validate_datasets(
    clients: Sequence[ClientRecord],
    workers: Sequence[WorkerRecord],
    tasks: Sequence[TaskRecord],
    cfg: Config | None = None,
) -> list[ValidationIssue]:
    """
    @brief
    Validate the current snapshot of all three datasets.

    @details
    Pure function of its inputs: identical snapshots yield identical issue
    lists, with identical ids, in identical order. Callers re-invoke it after
    every mutation of any dataset.
    """
    return DatasetValidator(clients, workers, tasks, cfg).run_all_checks()


def validate_and_report(
    clients: Sequence[ClientRecord],
    workers: Sequence[WorkerRecord],
    tasks: Sequence[TaskRecord],
    cfg: Config | None = None,
    *,
    write_report: bool = True,
    out_dir: Path | None = None,
    filename: str = "validation_report.json",
) -> dict[str, Any]:
    """
    @brief
    High-level convenience wrapper: validate, build the report, optionally save it.

    @returns
        ValidationReport as a dictionary.
    """
    # (1) Initialize validator instance with input data
    validator = DatasetValidator(clients, workers, tasks, cfg)

    # (2) Execute full validation workflow
    validator.run_all_checks()

    # (3) Build final structured report
    report = validator.build_report()

    # (4) Optionally persist the report to disk
    if write_report:
        validator.save_report(report, out_dir=out_dir, filename=filename)

    return report
