# src/alchemist/rules/parser.py
"""
@brief
Pattern-based translation of business-rule sentences into StructuredRule.

@details
The parser is a fixed, ordered table of independent patterns (RULE_PATTERNS).
Every pattern is tried against the lower-cased sentence and contributes zero
or one condition/action; patterns do not short-circuit each other, so one
sentence may produce several elements. The vocabulary is closed: anything
outside these phrasings is a parse failure, reported inside the returned
rule rather than raised.

Table order is the evaluation order, and therefore the order of the
produced conditions and actions:
    1. client_priority        "clients with priority level N"
    2. worker_skill           "workers with skill S"
    3. task_category          "tasks in category 'C'"
    4. assignment_preference  "assign to high priority workers" | "assign to critical tasks"
    5. flag                   "flag as X"
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Union

from alchemist.schemas.models import DataSet
from alchemist.schemas.rules import (
    ActionType,
    ConditionType,
    Operator,
    PreferenceTarget,
    RuleAction,
    RuleCondition,
    StructuredRule,
)

logger = logging.getLogger(__name__)

PARSE_ERROR_MESSAGE = (
    "Could not understand the rule. Please try a simpler format, e.g., "
    "'clients with priority level 1 assign to critical tasks'."
)

RuleElement = Union[RuleCondition, RuleAction]


@dataclass(frozen=True)
class RulePattern:
    """
    @brief
    One entry of the parser's strategy table.

    @details
    `emit` receives the lower-cased sentence and returns the element the
    pattern recognises, or None when it does not fire.
    """

    name: str
    emit: Callable[[str], RuleElement | None]

    def __call__(self, text: str) -> RuleElement | None:
        return self.emit(text)


# ----------------------------
# CONDITIONS
# ----------------------------
_CLIENT_PRIORITY_RE = re.compile(r"(clients|client) (with|have) priority ?level (\d+)")
_WORKER_SKILL_RE = re.compile(r"(workers|worker) (with|has) skill (.+?)(?:,|\.|$)")
_TASK_CATEGORY_RE = re.compile(r"(tasks|task) (in category|are) '(.+?)'")


def _client_priority(text: str) -> RuleCondition | None:
    match = _CLIENT_PRIORITY_RE.search(text)
    if not match:
        return None
    return RuleCondition(
        type=ConditionType.FIELD_COMPARISON,
        data_set=DataSet.CLIENTS,
        field="priority",
        operator=Operator.EQUALS,
        value=int(match.group(3)),
    )


def _worker_skill(text: str) -> RuleCondition | None:
    match = _WORKER_SKILL_RE.search(text)
    if not match or not match.group(3).strip():
        return None
    return RuleCondition(
        type=ConditionType.FIELD_COMPARISON,
        data_set=DataSet.WORKERS,
        field="skills",
        operator=Operator.CONTAINS,
        value=match.group(3).strip(),
    )


def _task_category(text: str) -> RuleCondition | None:
    match = _TASK_CATEGORY_RE.search(text)
    if not match or not match.group(3).strip():
        return None
    return RuleCondition(
        type=ConditionType.FIELD_COMPARISON,
        data_set=DataSet.TASKS,
        field="category",
        operator=Operator.EQUALS,
        value=match.group(3).strip(),
    )


# ----------------------------
# ACTIONS
# ----------------------------
# Checked in order; only the first phrase found produces an action.
_ASSIGNMENT_PREFERENCES: tuple[tuple[str, PreferenceTarget, str, Any], ...] = (
    ("assign to high priority workers", PreferenceTarget.WORKERS, "priority", "high"),
    ("assign to critical tasks", PreferenceTarget.TASKS, "category", "Critical"),
)

_FLAG_RE = re.compile(r"flag as (.+?)(,|$|\.|\b)")


def _assignment_preference(text: str) -> RuleAction | None:
    for phrase, target, field, value in _ASSIGNMENT_PREFERENCES:
        if phrase in text:
            return RuleAction(
                type=ActionType.ASSIGNMENT_PREFERENCE,
                preference_target=target,
                field=field,
                value=value,
            )
    return None


def _flag(text: str) -> RuleAction | None:
    match = _FLAG_RE.search(text)
    if not match or not match.group(1).strip():
        return None
    return RuleAction(type=ActionType.FLAG, message=f"Flagged as: {match.group(1).strip()}")


RULE_PATTERNS: tuple[RulePattern, ...] = (
    RulePattern("client_priority", _client_priority),
    RulePattern("worker_skill", _worker_skill),
    RulePattern("task_category", _task_category),
    RulePattern("assignment_preference", _assignment_preference),
    RulePattern("flag", _flag),
)


# ----------------------------
# PUBLIC API
# ----------------------------
def parse_rule(
    text: Any,
    patterns: Sequence[RulePattern] = RULE_PATTERNS,
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
) -> StructuredRule:
    """
    @brief
    Parse one business-rule sentence.

    @details
    Always returns a StructuredRule; it never raises for unrecognised input.
    The rule succeeds iff at least one condition or action was produced,
    otherwise it carries PARSE_ERROR_MESSAGE and empty element lists.

    @params
        text : Any
            The sentence. Non-string input is converted with str(); None is "".
        patterns : Sequence[RulePattern]
            Strategy table to apply, in order (defaults to RULE_PATTERNS).
        id_factory : Callable[[], str]
            Source of the fresh rule identifier.

    @returns
        StructuredRule with the original text preserved verbatim.
    """
    original = "" if text is None else text if isinstance(text, str) else str(text)
    lowered = original.lower()

    conditions: list[RuleCondition] = []
    actions: list[RuleAction] = []
    for pattern in patterns:
        element = pattern(lowered)
        if element is None:
            continue
        logger.debug("Rule pattern %s matched: %r", pattern.name, original)
        if isinstance(element, RuleCondition):
            conditions.append(element)
        else:
            actions.append(element)

    if conditions or actions:
        return StructuredRule(
            id=id_factory(),
            original_text=original,
            conditions=tuple(conditions),
            actions=tuple(actions),
            parsed_successfully=True,
        )

    logger.info("Rule not understood: %r", original)
    return StructuredRule(
        id=id_factory(),
        original_text=original,
        parsed_successfully=False,
        parse_error=PARSE_ERROR_MESSAGE,
    )


__all__ = ["PARSE_ERROR_MESSAGE", "RULE_PATTERNS", "RulePattern", "parse_rule"]
