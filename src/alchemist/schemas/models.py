# src/alchemist/schemas/models.py
"""
@brief
Pydantic data models for the Data Alchemist validation engine.

@details
Defines the canonical model types:
    - ClientRecord / WorkerRecord / TaskRecord: one row of each input dataset
    - ValidationIssue: one finding produced by the validation engine
    - Config: runtime configuration (from config.yaml)

Row records are deliberately lenient: numeric columns keep the raw cell value
(int, float or str) so that an unparseable value reaches the validator and is
reported there instead of failing at construction time. Column names from the
spreadsheets (ClientID, PriorityLevel, ...) are accepted as aliases.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, ClassVar, Union

from pydantic import BaseModel, ConfigDict, Field

NOT_APPLICABLE = "N/A"

# Raw spreadsheet cell for a numeric column; parsed later by the row checks.
RawNumber = Union[int, float, str, None]
Weight = Annotated[int, Field(ge=0, le=100)]


class DataSet(str, Enum):
    CLIENTS = "clients"
    WORKERS = "workers"
    TASKS = "tasks"


class Origin(str, Enum):
    CLIENTS = "clients"
    WORKERS = "workers"
    TASKS = "tasks"
    CROSS_DATASET = "cross-dataset"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class _StrictBaseModel(BaseModel):
    """
    @brief
    Base model enforcing strict defaults for configuration contracts.

    @details
    Forbids unknown fields and preserves exact naming rules.
    """

    model_config = ConfigDict(
        extra="forbid",  # Reject unknown fields
        populate_by_name=True,  # Allow population by field name
        use_enum_values=True,
    )


class _RowModel(BaseModel):
    """
    @brief
    Base model for spreadsheet rows.

    @details
    Unknown columns are kept (they are exported back unchanged), numbers in
    identifier/text columns are coerced to strings, and both the spreadsheet
    header and the attribute name populate a field.
    """

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    DATA_SET: ClassVar[DataSet]
    ID_FIELD: ClassVar[str]


class ClientRecord(_RowModel):
    """
    @brief
    One row of the clients dataset.

    @params
        client_id : str
            Unique, non-empty identifier.
        priority : RawNumber
            Priority level, valid range 1..5 inclusive.
        requested_task_ids : str
            Comma-separated TaskIDs; each must reference an existing task.
        attributes_json : str
            Free-form attributes, expected to be valid JSON text.
    """

    DATA_SET: ClassVar[DataSet] = DataSet.CLIENTS
    ID_FIELD: ClassVar[str] = "client_id"

    client_id: str | None = Field(None, alias="ClientID")
    client_name: str | None = Field(None, alias="ClientName")
    priority: RawNumber = Field(None, alias="PriorityLevel")
    requested_task_ids: str | None = Field(None, alias="RequestedTaskIDs")
    group_tag: str | None = Field(None, alias="GroupTag")
    attributes_json: str | None = Field(None, alias="AttributesJSON")


class WorkerRecord(_RowModel):
    """
    @brief
    One row of the workers dataset.

    @details
    `worker_group` doubles as the phase-capacity bucket key: the capacity of a
    group is compared against the demand of the task phase with the same label.
    """

    DATA_SET: ClassVar[DataSet] = DataSet.WORKERS
    ID_FIELD: ClassVar[str] = "worker_id"

    worker_id: str | None = Field(None, alias="WorkerID")
    worker_name: str | None = Field(None, alias="WorkerName")
    skills: str | None = Field(None, alias="Skills")
    available_slots: RawNumber = Field(None, alias="AvailableSlots")
    max_load_per_phase: RawNumber = Field(None, alias="MaxLoadPerPhase")
    worker_group: str | None = Field(None, alias="WorkerGroup")
    qualification_level: RawNumber = Field(None, alias="QualificationLevel")


class TaskRecord(_RowModel):
    """One row of the tasks dataset."""

    DATA_SET: ClassVar[DataSet] = DataSet.TASKS
    ID_FIELD: ClassVar[str] = "task_id"

    task_id: str | None = Field(None, alias="TaskID")
    task_name: str | None = Field(None, alias="TaskName")
    category: str | None = Field(None, alias="Category")
    duration: RawNumber = Field(None, alias="Duration")
    required_skills: str | None = Field(None, alias="RequiredSkills")
    preferred_phases: str | None = Field(None, alias="PreferredPhases")
    max_concurrent: RawNumber = Field(None, alias="MaxConcurrent")


Record = Union[ClientRecord, WorkerRecord, TaskRecord]

RECORD_TYPES: dict[DataSet, type[_RowModel]] = {
    DataSet.CLIENTS: ClientRecord,
    DataSet.WORKERS: WorkerRecord,
    DataSet.TASKS: TaskRecord,
}


def record_id(record: Record) -> str:
    """
    @brief
    Return the trimmed identifier of a record of any dataset.

    @details
    Each record type names its own identity field (ClientID, WorkerID, TaskID);
    this accessor hides that difference. Missing identifiers map to "".
    """
    value = getattr(record, record.ID_FIELD, None)
    if value is None:
        return ""
    return str(value).strip()


class ValidationIssue(BaseModel):
    """
    @brief
    One finding reported by the validation engine.

    @details
    `id` is derived from origin, row position, field and check name, so the
    same fault yields the same id on every run. `row_id` is the identifier of
    the offending row, or "N/A" for dataset-wide faults.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: str = Field(..., description="Deterministic issue identifier")
    row_id: str = Field(..., description="Row identifier or 'N/A'")
    field: str = Field(..., description="Offending field name")
    message: str = Field(..., description="Human-readable description")
    severity: Severity
    origin: Origin

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR


# ------------------------------------------------------------
# Runtime configuration
# ------------------------------------------------------------
DEFAULT_PRIORITIZATION_WEIGHTS: dict[str, int] = {
    "priorityLevel": 50,
    "requestedTaskFulfillment": 50,
    "fairness": 50,
    "workloadBalance": 50,
}


class IOPolicy(BaseModel):
    """
    @brief
    Controls runtime behavior for artifact writing.
    """

    write_artifacts: bool = Field(
        True,
        description="If False, disables writing rules.json, metrics.json and cleaned CSVs.",
    )


class ValidationConfig(BaseModel):
    """
    @brief
    Controls behavior of validation subsystem.

    @details
    Determines whether to write a report and whether warnings
    should make the datasets count as invalid.
    """

    write_report: bool = True
    fail_on_warnings: bool = False


class Config(_StrictBaseModel):
    """
    @brief
    Represents the full runtime configuration loaded from config.yaml.
    """

    saturation_warning_ratio: float = Field(
        0.8,
        gt=0.0,
        le=1.0,
        description="Demand/capacity ratio above which a phase is reported as highly saturated",
    )
    prioritization_weights: dict[str, Weight] = Field(
        default_factory=lambda: dict(DEFAULT_PRIORITIZATION_WEIGHTS),
        description="Initial prioritization weights (0..100) for a rule session",
    )

    clients_csv: str | None = None
    workers_csv: str | None = None
    tasks_csv: str | None = None
    rules_txt: str | None = None
    output_dir: str | None = "data/output"

    io_policy: IOPolicy = Field(default_factory=IOPolicy.model_construct)
    validation: ValidationConfig = Field(default_factory=ValidationConfig.model_construct)


__all__ = [
    "NOT_APPLICABLE",
    "DataSet",
    "Origin",
    "Severity",
    "ClientRecord",
    "WorkerRecord",
    "TaskRecord",
    "Record",
    "RECORD_TYPES",
    "record_id",
    "ValidationIssue",
    "Config",
    "ValidationConfig",
    "IOPolicy",
]
