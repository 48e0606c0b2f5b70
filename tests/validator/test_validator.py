# tests/validator/test_validator.py
from __future__ import annotations

import json
from pathlib import Path

import pytest

from alchemist.errors import ExportError
from alchemist.schemas.models import ClientRecord, Config, TaskRecord, WorkerRecord
from alchemist.validator import DatasetValidator, validate_and_report, validate_datasets


# -----------------------------
# HELPER FACTORIES
# -----------------------------
def clean_snapshot() -> tuple[list[ClientRecord], list[WorkerRecord], list[TaskRecord]]:
    """
    @brief
    Snapshot of the three datasets that produces no issue at all.

    @details
    One client requesting the only task, one worker covering its skill,
    and phase P1 loaded at 2/5 of its capacity.
    """
    clients = [
        ClientRecord(
            client_id="C1",
            client_name="Acme",
            priority=2,
            requested_task_ids="T1",
            attributes_json="{}",
        )
    ]
    workers = [
        WorkerRecord(
            worker_id="W1",
            worker_name="Ada",
            skills="coding",
            available_slots=5,
            max_load_per_phase=2,
            worker_group="P1",
        )
    ]
    tasks = [
        TaskRecord(
            task_id="T1",
            task_name="Build",
            duration=2,
            required_skills="coding",
            preferred_phases="P1",
            max_concurrent=1,
        )
    ]
    return clients, workers, tasks


def dirty_snapshot() -> tuple[list[ClientRecord], list[WorkerRecord], list[TaskRecord]]:
    """Snapshot with at least one fault per dataset and per cross-dataset check."""
    clients, workers, tasks = clean_snapshot()
    clients.append(
        ClientRecord(client_id="C2", client_name="", priority=9, requested_task_ids="T9")
    )
    workers.append(
        WorkerRecord(
            worker_id="W1",
            worker_name="Bob",
            available_slots=1,
            max_load_per_phase=3,
            worker_group="P1",
        )
    )
    tasks.append(
        TaskRecord(
            task_id="T2",
            task_name="Audit",
            duration=10,
            required_skills="security",
            preferred_phases="P1",
            max_concurrent=0,
        )
    )
    return clients, workers, tasks


# -----------------------------
# RUN / ORDERING
# -----------------------------
def test_clean_snapshot_has_no_issues():
    clients, workers, tasks = clean_snapshot()
    assert validate_datasets(clients, workers, tasks) == []


def test_issues_are_ordered_by_dataset_then_cross_checks():
    """
    @brief
    Client issues come first, then workers, tasks and cross-dataset checks.
    """
    # --- Arrange ---
    clients, workers, tasks = dirty_snapshot()

    # --- Act ---
    issues = validate_datasets(clients, workers, tasks)

    # --- Assert ---
    origins = [i.origin for i in issues]
    expected = ["clients", "workers", "tasks", "cross-dataset"]
    assert [o for o in expected if o in origins] == expected
    ranks = [expected.index(o) for o in origins]
    assert ranks == sorted(ranks)


def test_validation_is_deterministic():
    """
    @brief
    Re-validating an unchanged snapshot reproduces every issue and id.
    """
    clients, workers, tasks = dirty_snapshot()

    first = validate_datasets(clients, workers, tasks)
    second = validate_datasets(clients, workers, tasks)

    assert [i.model_dump() for i in first] == [i.model_dump() for i in second]
    assert len({i.id for i in first}) == len(first)


def test_missing_requested_task_end_to_end():
    """
    @brief
    Client C1 requesting an unknown T9 yields exactly one referential error.
    """
    # --- Arrange ---
    clients, workers, tasks = clean_snapshot()
    clients[0] = clients[0].model_copy(update={"requested_task_ids": "T9"})

    # --- Act ---
    issues = validate_datasets(clients, workers, tasks)

    # --- Assert ---
    referential = [i for i in issues if i.field == "requested_task_ids"]
    assert len(referential) == 1
    assert referential[0].row_id == "C1"
    assert referential[0].severity == "error"
    assert "T9" in referential[0].message


def test_overloaded_worker_gets_warning_only():
    clients, workers, tasks = clean_snapshot()
    workers[0] = workers[0].model_copy(update={"available_slots": 2, "max_load_per_phase": 5})
    # Keep phase P1 below the saturation threshold of the reduced capacity.
    tasks[0] = tasks[0].model_copy(update={"duration": 1})

    issues = validate_datasets(clients, workers, tasks)

    assert [(i.origin, i.severity) for i in issues] == [("workers", "warning")]


def test_saturation_ratio_comes_from_config():
    clients, workers, tasks = clean_snapshot()
    cfg = Config(saturation_warning_ratio=0.3)

    issues = validate_datasets(clients, workers, tasks, cfg)

    assert [i.id for i in issues] == ["cross-dataset-N/A-preferred_phases-high_saturation-P1"]


def test_empty_datasets_are_valid():
    assert validate_datasets([], [], []) == []


# -----------------------------
# REPORT
# -----------------------------
def test_build_report_counts_and_validity():
    """
    @brief
    The report splits issues by severity and flags each check group.

    @details
    Errors invalidate the snapshot; check groups pass only when they
    raised no error-severity issue.
    """
    # --- Arrange ---
    clients, workers, tasks = dirty_snapshot()
    v = DatasetValidator(clients, workers, tasks)

    # --- Act ---
    issues = v.run_all_checks()
    report = v.build_report()

    # --- Assert ---
    assert report["valid"] is False
    assert report["counts"]["errors"] + report["counts"]["warnings"] == len(issues)
    assert report["counts"]["records"] == {"clients": 2, "workers": 2, "tasks": 2}
    assert sum(report["counts"]["by_origin"].values()) == len(issues)
    assert set(report["checks"]) == {"Clients", "Workers", "Tasks", "CrossDataset"}
    assert report["checks"]["Clients"] is False
    assert all(e["severity"] == "error" for e in report["errors"])
    json.dumps(report)


def test_warnings_alone_keep_snapshot_valid_unless_configured():
    clients, workers, tasks = clean_snapshot()
    workers[0] = workers[0].model_copy(update={"available_slots": 2, "max_load_per_phase": 5})
    tasks[0] = tasks[0].model_copy(update={"duration": 1})

    lenient = validate_and_report(clients, workers, tasks, write_report=False)
    strict = validate_and_report(
        clients,
        workers,
        tasks,
        Config.model_validate({"validation": {"fail_on_warnings": True}}),
        write_report=False,
    )

    assert lenient["valid"] is True
    assert lenient["checks"]["Workers"] is True
    assert strict["valid"] is False


def test_validate_and_report_writes_json(tmp_path: Path):
    # --- Arrange ---
    clients, workers, tasks = dirty_snapshot()

    # --- Act ---
    report = validate_and_report(clients, workers, tasks, out_dir=tmp_path, filename="r.json")

    # --- Assert ---
    out = tmp_path / "r.json"
    assert out.exists()
    assert not (tmp_path / "r.tmp").exists()
    saved = json.loads(out.read_text(encoding="utf-8"))
    assert saved["counts"] == report["counts"]
    assert [i["id"] for i in saved["issues"]] == [i["id"] for i in report["issues"]]


def test_validate_and_report_without_write_creates_no_file(tmp_path: Path):
    clients, workers, tasks = clean_snapshot()
    validate_and_report(clients, workers, tasks, write_report=False, out_dir=tmp_path)
    assert list(tmp_path.iterdir()) == []


def test_save_report_failure_raises_export_error(tmp_path: Path):
    """
    @brief
    An unwritable target directory surfaces as ExportError.
    """
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    v = DatasetValidator([], [], [])
    v.run_all_checks()

    with pytest.raises(ExportError) as exc:
        v.save_report(v.build_report(), out_dir=blocker / "nested")

    assert "validation report" in str(exc.value)
