# src/alchemist/schemas/rules.py
"""
@brief
Pydantic models for structured business rules.

@details
A StructuredRule is the machine-checkable form of one natural-language rule
sentence: an ordered list of conditions and an ordered list of actions.
Rules are immutable once created; editing a rule means removing it and
parsing the new text into a fresh rule.

All rule models serialise with camelCase keys (`originalText`, `dataSet`, ...),
which is the shape persisted in the rule configuration JSON.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from alchemist.schemas.models import DataSet, Weight


class ConditionType(str, Enum):
    FIELD_COMPARISON = "fieldComparison"
    RELATIONSHIP = "relationship"


class Operator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    CONTAINS = "contains"
    HAS_SKILL = "hasSkill"


class RelationshipType(str, Enum):
    REFERENCES = "references"
    HAS = "has"


class ActionType(str, Enum):
    ASSIGNMENT_PREFERENCE = "assignmentPreference"
    FLAG = "flag"
    DEFAULT = "default"


class PreferenceTarget(str, Enum):
    WORKERS = "workers"
    TASKS = "tasks"


class _RuleModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        use_enum_values=True,
        alias_generator=to_camel,
    )


class RuleCondition(_RuleModel):
    """
    @brief
    One condition of a structured rule.

    @details
    fieldComparison conditions compare `field` of `data_set` rows against
    `value` with `operator`. relationship conditions link `data_set` to
    `target_data_set`/`target_field` through `relationship_type`
    (e.g. RequestedTaskIDs REFERENCES TaskID, Worker HAS Skill).
    """

    type: ConditionType
    data_set: DataSet
    field: str | None = None
    operator: Operator | None = None
    value: Any = None
    target_data_set: DataSet | None = None
    target_field: str | None = None
    relationship_type: RelationshipType | None = None


class RuleAction(_RuleModel):
    """One action of a structured rule; `message` is used by flag actions."""

    type: ActionType
    data_set: DataSet | None = None
    field: str | None = None
    value: Any = None
    message: str | None = None
    preference_target: PreferenceTarget | None = None


class StructuredRule(_RuleModel):
    """
    @brief
    Parsed representation of one natural-language business rule.

    @details
    Either the parse produced at least one condition or action and
    `parsed_successfully` is True, or it produced nothing, the flag is False
    and `parse_error` explains why. No other combination is accepted.
    """

    id: str = Field(..., description="Fresh identifier per parse")
    original_text: str = Field(..., description="Input sentence, verbatim")
    conditions: tuple[RuleCondition, ...] = ()
    actions: tuple[RuleAction, ...] = ()
    priority: int | None = None
    parsed_successfully: bool
    parse_error: str | None = None

    @model_validator(mode="after")
    def _check_parse_outcome(self) -> StructuredRule:
        produced = bool(self.conditions or self.actions)
        if self.parsed_successfully:
            if not produced or self.parse_error:
                raise ValueError(
                    "a successfully parsed rule needs a condition or action and no parse_error"
                )
        elif produced or not self.parse_error:
            raise ValueError(
                "a failed rule must have no conditions/actions and a non-empty parse_error"
            )
        return self

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RuleConfig(BaseModel):
    """
    @brief
    Persisted rule configuration.

    @details
    Serialises as {"rules": [...], "prioritizationWeights": {...}} with every
    weight in 0..100.
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    rules: list[StructuredRule] = Field(default_factory=list)
    prioritization_weights: dict[str, Weight] = Field(default_factory=dict)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = [
    "ConditionType",
    "Operator",
    "RelationshipType",
    "ActionType",
    "PreferenceTarget",
    "RuleCondition",
    "RuleAction",
    "StructuredRule",
    "RuleConfig",
]
