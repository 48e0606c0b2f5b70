# tests/export/test_rules_export.py
from __future__ import annotations

import json
from pathlib import Path

import pytest

from alchemist.errors import DataError
from alchemist.export.rules_export import load_rule_config, write_rule_config
from alchemist.rules import RuleSession


@pytest.fixture()
def session() -> RuleSession:
    s = RuleSession(weights={"priorityLevel": 70, "fairness": 30})
    s.add_rule("Clients with priority level 1 assign to critical tasks")
    s.add_rule("workers with skill python, flag as senior")
    s.add_rule("the sky is blue")
    return s


def test_written_file_uses_camel_case_shape(tmp_path: Path, session: RuleSession):
    """
    @brief
    rules.json holds the rules and the prioritization weights.

    @details
    Keys are camelCase and unset optional fields are omitted.
    """
    # --- Act ---
    path = write_rule_config(session.to_config(), tmp_path / "rules.json")

    # --- Assert ---
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["prioritizationWeights"] == {"priorityLevel": 70, "fairness": 30}
    first = data["rules"][0]
    assert first["originalText"] == "Clients with priority level 1 assign to critical tasks"
    assert first["parsedSuccessfully"] is True
    assert first["conditions"][0] == {
        "type": "fieldComparison",
        "dataSet": "clients",
        "field": "priority",
        "operator": "equals",
        "value": 1,
    }
    assert first["actions"][0]["preferenceTarget"] == "tasks"
    assert "parseError" not in first
    assert data["rules"][2]["parseError"]


def test_write_then_load_restores_session(tmp_path: Path, session: RuleSession):
    path = write_rule_config(session.to_config(), tmp_path / "rules.json")

    restored = RuleSession.from_rule_config(load_rule_config(path))

    assert restored.rules == session.rules
    assert restored.weights == session.weights


def test_load_missing_file_raises(tmp_path: Path):
    with pytest.raises(DataError, match="not found"):
        load_rule_config(tmp_path / "rules.json")


@pytest.mark.parametrize(
    "payload",
    [
        "{not json",
        json.dumps({"rules": [], "prioritizationWeights": {"fairness": 150}}),
        json.dumps({"rules": [{"id": "r1", "originalText": "x", "parsedSuccessfully": True}]}),
    ],
)
def test_load_invalid_content_raises(tmp_path: Path, payload: str):
    path = tmp_path / "rules.json"
    path.write_text(payload, encoding="utf-8")
    with pytest.raises(DataError):
        load_rule_config(path)
