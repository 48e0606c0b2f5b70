# tests/validator/test_cross_checks.py
from __future__ import annotations

import pytest

from alchemist.schemas.models import ClientRecord, TaskRecord, WorkerRecord
from alchemist.validator.cross_checks import (
    accumulate_group_capacity,
    accumulate_phase_demand,
    check_cross_dataset,
    check_phase_saturation,
    check_referential_integrity,
    check_skill_coverage,
    worker_skill_set,
)


# -----------------------------
# HELPER FACTORIES
# -----------------------------
def client(cid: str, requested: str | None) -> ClientRecord:
    return ClientRecord(client_id=cid, client_name=cid, priority=1, requested_task_ids=requested)


def worker(wid: str, slots=5, group: str | None = "P1", skills: str | None = None) -> WorkerRecord:
    return WorkerRecord(
        worker_id=wid,
        worker_name=wid,
        skills=skills,
        available_slots=slots,
        max_load_per_phase=1,
        worker_group=group,
    )


def task(tid: str, duration=1, phases: str | None = "P1", skills: str | None = None) -> TaskRecord:
    return TaskRecord(
        task_id=tid,
        task_name=tid,
        duration=duration,
        required_skills=skills,
        preferred_phases=phases,
        max_concurrent=1,
    )


# -----------------------------
# REFERENTIAL INTEGRITY
# -----------------------------
def test_missing_requested_task_is_reported_once_per_client():
    """
    @brief
    A missing TaskID repeated in one list produces a single error.

    @details
    Existing ids are silent; the error is attached to the client's
    requested_task_ids field and names the missing id.
    """
    # --- Arrange ---
    clients = [client("C1", "T9, T9 ,T1,")]
    tasks = [task("T1")]

    # --- Act ---
    issues = check_referential_integrity(clients, tasks)

    # --- Assert ---
    assert len(issues) == 1
    issue = issues[0]
    assert issue.severity == "error"
    assert issue.origin == "cross-dataset"
    assert issue.row_id == "C1"
    assert issue.field == "requested_task_ids"
    assert "T9" in issue.message
    assert issue.id == "cross-dataset-#0-requested_task_ids-missing_task-T9"


def test_each_client_gets_its_own_referential_error():
    clients = [client("C1", "T9"), client("C2", "T8,T9")]
    issues = check_referential_integrity(clients, [task("T1")])
    assert [(i.row_id, i.id.rsplit("-", 1)[1]) for i in issues] == [
        ("C1", "T9"),
        ("C2", "T8"),
        ("C2", "T9"),
    ]


def test_blank_request_list_is_not_an_error():
    assert check_referential_integrity([client("C1", None), client("C2", " , ")], []) == []


# -----------------------------
# SKILL COVERAGE
# -----------------------------
def test_worker_skill_set_is_union_of_trimmed_skills():
    workers = [worker("W1", skills="coding, ml"), worker("W2", skills="ml,ops"), worker("W3")]
    assert worker_skill_set(workers) == {"coding", "ml", "ops"}


def test_uncovered_skill_warns_once_per_task_and_skill():
    """
    @brief
    Each distinct required skill without a worker gives one warning.
    """
    # --- Arrange ---
    workers = [worker("W1", skills="coding, ml")]
    tasks = [task("T1", skills="coding,security,security,audit"), task("T2", skills="security")]

    # --- Act ---
    issues = check_skill_coverage(workers, tasks)

    # --- Assert ---
    assert [(i.row_id, i.id.rsplit("-", 1)[1]) for i in issues] == [
        ("T1", "security"),
        ("T1", "audit"),
        ("T2", "security"),
    ]
    assert all(i.severity == "warning" for i in issues)
    assert all(i.field == "required_skills" for i in issues)


def test_task_without_required_skills_is_silent():
    assert check_skill_coverage([], [task("T1", skills=None), task("T2", skills="")]) == []


# -----------------------------
# PHASE SATURATION
# -----------------------------
def test_phase_demand_sums_durations_in_first_seen_order():
    tasks = [
        task("T1", duration=2, phases="P2,P1"),
        task("T2", duration="3", phases=" P1 , P1"),
        task("T3", duration=0, phases="P9"),
        task("T4", duration="x", phases="P8"),
    ]
    demand, issues = accumulate_phase_demand(tasks)
    assert list(demand.items()) == [("P2", 2.0), ("P1", 5.0)]
    assert issues == []


def test_missing_and_effectively_empty_phases_warn():
    tasks = [task("T1", phases=None), task("T2", phases=",, ,")]
    demand, issues = accumulate_phase_demand(tasks)
    assert dict(demand) == {}
    assert [i.id for i in issues] == [
        "cross-dataset-#0-preferred_phases-missing_phases",
        "cross-dataset-#1-preferred_phases-empty_phases",
    ]
    assert all(i.severity == "warning" for i in issues)


def test_group_capacity_skips_unusable_workers():
    workers = [
        worker("W1", slots=4, group="P1"),
        worker("W2", slots="3", group=" P1 "),
        worker("W3", slots="abc", group="P1"),
        worker("W4", slots=-2, group="P1"),
        worker("W5", slots=6, group=""),
        worker("W6", slots=1, group="P2"),
    ]
    assert dict(accumulate_group_capacity(workers)) == {"P1": 7.0, "P2": 1.0}


@pytest.mark.parametrize(
    "demand, expected",
    [
        (7, []),
        (8, []),
        (9, [("high_saturation", "warning")]),
        (10, [("high_saturation", "warning")]),
        (11, [("oversaturated", "error")]),
    ],
)
def test_saturation_thresholds_against_capacity_ten(demand, expected):
    """
    @brief
    Demand T against capacity C = 10 with the default 0.8 ratio.

    @details
    T <= 8 is silent, 8 < T <= 10 warns, T > 10 is an error.
    """
    # --- Arrange ---
    workers = [worker("W1", slots=6), worker("W2", slots=4)]
    tasks = [task("T1", duration=demand)]

    # --- Act ---
    issues = check_phase_saturation(workers, tasks)

    # --- Assert ---
    assert [(i.id.split("-")[-2], i.severity) for i in issues] == expected
    for issue in issues:
        assert issue.row_id == "N/A"
        assert issue.field == "preferred_phases"
        assert "P1" in issue.message


def test_custom_saturation_ratio_moves_warning_threshold():
    workers = [worker("W1", slots=10)]
    tasks = [task("T1", duration=6)]
    assert check_phase_saturation(workers, tasks, saturation_ratio=0.8) == []
    assert len(check_phase_saturation(workers, tasks, saturation_ratio=0.5)) == 1


@pytest.mark.parametrize("workers", [[], [worker("W1", slots=0)], [worker("W1", group="P2")]])
def test_phase_without_capacity_warns(workers):
    issues = check_phase_saturation(workers, [task("T1", duration=3)])
    assert len(issues) == 1
    assert issues[0].severity == "warning"
    assert issues[0].id == "cross-dataset-N/A-preferred_phases-no_capacity-P1"


def test_task_in_several_phases_counts_fully_in_each():
    workers = [worker("W1", slots=4, group="P1"), worker("W2", slots=10, group="P2")]
    issues = check_phase_saturation(workers, [task("T1", duration=5, phases="P1,P2")])
    assert [i.id for i in issues] == ["cross-dataset-N/A-preferred_phases-oversaturated-P1"]


# -----------------------------
# ORDERING
# -----------------------------
def test_cross_dataset_checks_run_in_fixed_order():
    clients = [client("C1", "T9")]
    workers = [worker("W1", slots=1, skills="coding")]
    tasks = [task("T1", duration=3, skills="security")]

    issues = check_cross_dataset(clients, workers, tasks)

    assert [i.id.split("-")[4] for i in issues] == [
        "missing_task",
        "uncovered_skill",
        "oversaturated",
    ]
