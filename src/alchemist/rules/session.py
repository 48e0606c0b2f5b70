# src/alchemist/rules/session.py
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from alchemist.errors import ConfigError, RuleNotFoundError
from alchemist.rules.parser import parse_rule
from alchemist.schemas.models import DEFAULT_PRIORITIZATION_WEIGHTS, Config
from alchemist.schemas.rules import RuleConfig, StructuredRule

logger = logging.getLogger(__name__)

WEIGHT_MIN = 0
WEIGHT_MAX = 100


class RuleSession:
    """
    @brief
    Caller-owned state of one rule-editing session.

    @details
    Holds the ordered rule collection and the prioritization weights that
    accumulate while a user works. The parser and the validator stay
    stateless; everything that changes over a session lives here and is
    passed around explicitly.

    Rules are never mutated: editing a rule removes it and parses the new
    text into a fresh rule (new id) at the same position.
    """

    def __init__(
        self,
        weights: Mapping[str, int] | None = None,
        parser: Callable[[str], StructuredRule] = parse_rule,
    ) -> None:
        self._rules: list[StructuredRule] = []
        self._weights: dict[str, int] = {}
        self._parser = parser
        for name, value in (weights or DEFAULT_PRIORITIZATION_WEIGHTS).items():
            self.set_weight(name, value)

    @classmethod
    def from_config(cls, cfg: Config) -> RuleSession:
        """Start a session with the prioritization weights configured in config.yaml."""
        return cls(weights=cfg.prioritization_weights)

    @classmethod
    def from_rule_config(cls, rule_config: RuleConfig) -> RuleSession:
        """Resume a session from a persisted rule configuration."""
        session = cls(weights=rule_config.prioritization_weights)
        session._rules = list(rule_config.rules)
        return session

    # ---------- Rules ----------
    @property
    def rules(self) -> tuple[StructuredRule, ...]:
        return tuple(self._rules)

    def successful_rules(self) -> tuple[StructuredRule, ...]:
        return tuple(r for r in self._rules if r.parsed_successfully)

    def add_rule(self, text: str) -> StructuredRule:
        """
        @brief
        Parse `text` and append the resulting rule.

        @details
        Failed parses are kept as well (with their parse_error) so the caller
        can show them; they never contribute conditions or actions.
        """
        rule = self._parser(text)
        self._rules.append(rule)
        logger.info(
            "Rule added (%s): %r",
            "parsed" if rule.parsed_successfully else "not understood",
            rule.original_text,
        )
        return rule

    def remove_rule(self, rule_id: str) -> StructuredRule:
        index = self._index_of(rule_id)
        return self._rules.pop(index)

    def edit_rule(self, rule_id: str, text: str) -> StructuredRule:
        """Replace a rule by the parse of `text`, keeping its position."""
        index = self._index_of(rule_id)
        rule = self._parser(text)
        self._rules[index] = rule
        logger.info("Rule %s replaced by %s", rule_id, rule.id)
        return rule

    def _index_of(self, rule_id: str) -> int:
        for i, rule in enumerate(self._rules):
            if rule.id == rule_id:
                return i
        raise RuleNotFoundError(
            f"No rule with id {rule_id!r} in this session",
            source="RuleSession",
            suggested_action="List session.rules to find valid rule ids.",
        )

    # ---------- Weights ----------
    @property
    def weights(self) -> dict[str, int]:
        return dict(self._weights)

    def set_weight(self, name: str, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(
                f"Prioritization weight {name!r} must be an integer, got {value!r}",
                source="RuleSession.set_weight",
                suggested_action=f"Use an integer between {WEIGHT_MIN} and {WEIGHT_MAX}.",
            )
        if not WEIGHT_MIN <= value <= WEIGHT_MAX:
            raise ConfigError(
                f"Prioritization weight {name!r} out of range: {value}",
                source="RuleSession.set_weight",
                suggested_action=f"Use an integer between {WEIGHT_MIN} and {WEIGHT_MAX}.",
            )
        self._weights[name] = value

    # ---------- Persistence shape ----------
    def to_config(self) -> RuleConfig:
        return RuleConfig(rules=list(self._rules), prioritization_weights=self.weights)


__all__ = ["RuleSession"]
