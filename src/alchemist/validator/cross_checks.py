# src/alchemist/validator/cross_checks.py
"""
@brief
Checks that span the clients, workers and tasks datasets.

@details
Three checks run in a fixed order over the full snapshot:
    (1) referential integrity: RequestedTaskIDs must resolve to TaskIDs
    (2) skill coverage: every RequiredSkill must be offered by some worker
    (3) phase saturation: per phase, task demand against worker capacity

Phase labels (task PreferredPhases) and worker groups (WorkerGroup) share a
single key space: the capacity of group "P1" is the supply for phase "P1".
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Iterable, Sequence

from alchemist.schemas.models import (
    NOT_APPLICABLE,
    ClientRecord,
    Origin,
    Severity,
    TaskRecord,
    ValidationIssue,
    WorkerRecord,
    record_id,
)
from alchemist.validator.row_checks import (
    display_id,
    is_blank,
    make_issue,
    parse_number,
    split_list,
)

logger = logging.getLogger(__name__)

DEFAULT_SATURATION_RATIO = 0.8

_ORIGIN = Origin.CROSS_DATASET


def _unique(items: Iterable[str]) -> list[str]:
    """De-duplicate while keeping first-occurrence order."""
    return list(OrderedDict.fromkeys(items))


# ----------------------------
# (1) REFERENTIAL INTEGRITY
# ----------------------------
def check_referential_integrity(
    clients: Sequence[ClientRecord], tasks: Sequence[TaskRecord]
) -> list[ValidationIssue]:
    """
    @brief
    Verify that every requested task id resolves to an existing task.

    @details
    One error per distinct missing id per client, attached to the client's
    requested_task_ids field; repeating a missing id in the same list does
    not multiply the error.
    """
    task_ids = {record_id(t) for t in tasks if record_id(t)}
    issues: list[ValidationIssue] = []

    for i, client in enumerate(clients):
        for tid in _unique(split_list(client.requested_task_ids)):
            if tid not in task_ids:
                issues.append(
                    make_issue(
                        _ORIGIN,
                        i,
                        display_id(client, i),
                        "requested_task_ids",
                        "missing_task",
                        f"Requested TaskID '{tid}' does not exist in the tasks dataset.",
                        detail=tid,
                    )
                )
    return issues


# ----------------------------
# (2) SKILL COVERAGE
# ----------------------------
def worker_skill_set(workers: Iterable[WorkerRecord]) -> set[str]:
    """Union of all skills offered by any worker."""
    skills: set[str] = set()
    for worker in workers:
        skills.update(split_list(worker.skills))
    return skills


def check_skill_coverage(
    workers: Sequence[WorkerRecord], tasks: Sequence[TaskRecord]
) -> list[ValidationIssue]:
    """
    @brief
    Warn about required skills that no worker offers.

    @details
    One warning per distinct uncovered skill per task. Tasks without
    required skills produce nothing.
    """
    offered = worker_skill_set(workers)
    issues: list[ValidationIssue] = []

    for j, task in enumerate(tasks):
        for skill in _unique(split_list(task.required_skills)):
            if skill not in offered:
                issues.append(
                    make_issue(
                        _ORIGIN,
                        j,
                        display_id(task, j),
                        "required_skills",
                        "uncovered_skill",
                        f"Required skill '{skill}' is not offered by any worker.",
                        severity=Severity.WARNING,
                        detail=skill,
                    )
                )
    return issues


# ----------------------------
# (3) PHASE SATURATION
# ----------------------------
def accumulate_phase_demand(
    tasks: Sequence[TaskRecord],
) -> tuple[OrderedDict[str, float], list[ValidationIssue]]:
    """
    @brief
    Sum task durations per phase label.

    @details
    Only tasks with a positive duration contribute. A task whose
    PreferredPhases is blank gets a "missing" warning; one whose field is
    non-blank but yields no label after splitting (e.g. ",,") gets an
    "effectively empty" warning. Each label a task declares receives the
    task's full duration once. The returned mapping is ordered by the first
    appearance of each label.

    @returns
        (demand per phase, warnings raised while accumulating)
    """
    demand: OrderedDict[str, float] = OrderedDict()
    issues: list[ValidationIssue] = []

    for j, task in enumerate(tasks):
        duration = parse_number(task.duration)
        if duration is None or duration <= 0:
            continue

        if is_blank(task.preferred_phases):
            issues.append(
                make_issue(
                    _ORIGIN,
                    j,
                    display_id(task, j),
                    "preferred_phases",
                    "missing_phases",
                    "PreferredPhases is missing; the task does not contribute to any phase.",
                    severity=Severity.WARNING,
                )
            )
            continue

        phases = _unique(split_list(task.preferred_phases))
        if not phases:
            issues.append(
                make_issue(
                    _ORIGIN,
                    j,
                    display_id(task, j),
                    "preferred_phases",
                    "empty_phases",
                    f"PreferredPhases {task.preferred_phases!r} contains no phase label.",
                    severity=Severity.WARNING,
                )
            )
            continue

        for phase in phases:
            demand[phase] = demand.get(phase, 0.0) + duration

    return demand, issues


def accumulate_group_capacity(workers: Sequence[WorkerRecord]) -> OrderedDict[str, float]:
    """
    @brief
    Sum AvailableSlots per worker group.

    @details
    Workers with a blank group, or with AvailableSlots that is unparseable
    or negative, are skipped. Ordered by first appearance of each group.
    """
    capacity: OrderedDict[str, float] = OrderedDict()
    for worker in workers:
        slots = parse_number(worker.available_slots)
        if slots is None or slots < 0 or is_blank(worker.worker_group):
            continue
        group = str(worker.worker_group).strip()
        capacity[group] = capacity.get(group, 0.0) + slots
    return capacity


def check_phase_saturation(
    workers: Sequence[WorkerRecord],
    tasks: Sequence[TaskRecord],
    saturation_ratio: float = DEFAULT_SATURATION_RATIO,
) -> list[ValidationIssue]:
    """
    @brief
    Compare per-phase task demand against per-group worker capacity.

    @details
    For each phase with demand T (in first-seen order):
      - no capacity entry, or capacity 0  → warning "no worker capacity defined"
      - T > C                             → error "oversaturated"
      - T > saturation_ratio · C          → warning "highly saturated"
      - otherwise                         → nothing
    """
    demand, issues = accumulate_phase_demand(tasks)
    capacity = accumulate_group_capacity(workers)

    for phase, total in demand.items():
        supply = capacity.get(phase)
        if not supply:
            issues.append(
                make_issue(
                    _ORIGIN,
                    None,
                    NOT_APPLICABLE,
                    "preferred_phases",
                    "no_capacity",
                    f"No worker capacity defined for phase '{phase}' "
                    f"(task demand {total:g}).",
                    severity=Severity.WARNING,
                    detail=phase,
                )
            )
        elif total > supply:
            issues.append(
                make_issue(
                    _ORIGIN,
                    None,
                    NOT_APPLICABLE,
                    "preferred_phases",
                    "oversaturated",
                    f"Phase '{phase}' is oversaturated: task demand {total:g} exceeds "
                    f"worker capacity {supply:g}.",
                    detail=phase,
                )
            )
        elif total > saturation_ratio * supply:
            issues.append(
                make_issue(
                    _ORIGIN,
                    None,
                    NOT_APPLICABLE,
                    "preferred_phases",
                    "high_saturation",
                    f"Phase '{phase}' is highly saturated: task demand {total:g} is above "
                    f"{saturation_ratio:.0%} of worker capacity {supply:g}.",
                    severity=Severity.WARNING,
                    detail=phase,
                )
            )
    return issues


def check_cross_dataset(
    clients: Sequence[ClientRecord],
    workers: Sequence[WorkerRecord],
    tasks: Sequence[TaskRecord],
    saturation_ratio: float = DEFAULT_SATURATION_RATIO,
) -> list[ValidationIssue]:
    """Run referential integrity, skill coverage and phase saturation, in that order."""
    issues = check_referential_integrity(clients, tasks)
    issues += check_skill_coverage(workers, tasks)
    issues += check_phase_saturation(workers, tasks, saturation_ratio)
    logger.debug("Cross-dataset checks: %d issue(s)", len(issues))
    return issues


__all__ = [
    "DEFAULT_SATURATION_RATIO",
    "check_referential_integrity",
    "check_skill_coverage",
    "check_phase_saturation",
    "check_cross_dataset",
    "accumulate_phase_demand",
    "accumulate_group_capacity",
    "worker_skill_set",
]
