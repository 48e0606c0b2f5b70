import pytest
from pydantic import ValidationError

from alchemist.schemas.models import (
    ClientRecord,
    Config,
    Origin,
    Severity,
    TaskRecord,
    ValidationIssue,
    WorkerRecord,
    record_id,
)
from alchemist.schemas.rules import RuleConfig, StructuredRule


def test_client_record_accepts_spreadsheet_headers():
    c = ClientRecord.model_validate(
        {
            "ClientID": "C1",
            "ClientName": "Acme",
            "PriorityLevel": "3",
            "RequestedTaskIDs": "T1,T2",
            "GroupTag": "A",
            "AttributesJSON": "{}",
        }
    )
    assert c.client_id == "C1"
    assert c.priority == "3"  # raw value kept for the validator
    assert c.requested_task_ids == "T1,T2"


def test_record_accepts_attribute_names_and_coerces_numeric_ids():
    w = WorkerRecord(worker_id=17, worker_name="Ada", available_slots=3)
    assert w.worker_id == "17"
    assert w.available_slots == 3


def test_unknown_columns_are_kept():
    t = TaskRecord.model_validate({"TaskID": "T1", "id": 0, "Owner": "ops"})
    dumped = t.model_dump(by_alias=True)
    assert dumped["Owner"] == "ops"
    assert dumped["id"] == 0


def test_record_id_accessor_per_variant():
    assert record_id(ClientRecord(client_id=" C1 ")) == "C1"
    assert record_id(WorkerRecord(worker_id="W1")) == "W1"
    assert record_id(TaskRecord()) == ""


def test_validation_issue_is_frozen_and_stores_plain_values():
    issue = ValidationIssue(
        id="clients-#0-client_id-required",
        row_id="row 1",
        field="client_id",
        message="ClientID is required.",
        severity=Severity.ERROR,
        origin=Origin.CLIENTS,
    )
    assert issue.severity == "error"
    assert issue.origin == "clients"
    assert issue.is_error is True
    with pytest.raises(ValidationError):
        issue.message = "changed"


def test_config_defaults():
    cfg = Config()
    assert cfg.saturation_warning_ratio == pytest.approx(0.8)
    assert all(0 <= v <= 100 for v in cfg.prioritization_weights.values())
    assert cfg.validation.fail_on_warnings is False
    assert cfg.io_policy.write_artifacts is True


def test_config_rejects_out_of_range_weight():
    with pytest.raises(ValidationError):
        Config(prioritization_weights={"fairness": 101})


def test_structured_rule_rejects_inconsistent_outcome():
    # Failed parse must not carry elements; success must not carry an error.
    with pytest.raises(ValidationError):
        StructuredRule(id="r1", original_text="x", parsed_successfully=False)
    with pytest.raises(ValidationError):
        StructuredRule(id="r1", original_text="x", parsed_successfully=True)


def test_rule_config_schema_uses_camel_case():
    schema = RuleConfig.model_json_schema(by_alias=True)
    assert "prioritizationWeights" in schema["properties"]
