# scripts/gen_schemas.py
"""
Generate JSON Schemas for Data Alchemist data models.

This script exports JSON Schema files for:
    - ClientRecord, WorkerRecord, TaskRecord (input rows)
    - ValidationIssue (validator output)
    - RuleConfig (persisted rules + prioritization weights)
    - Config (config.yaml)

Output directory: schemas/
"""

import json
from pathlib import Path

from alchemist.schemas.models import (
    ClientRecord,
    Config,
    TaskRecord,
    ValidationIssue,
    WorkerRecord,
)
from alchemist.schemas.rules import RuleConfig


def export_schema(model_cls, name: str, out_dir: Path, by_alias: bool = True) -> Path:
    """
    @brief
    Exports the JSON schema of a given Pydantic model.

    @details
    Writes "<name>.schema.json" (UTF-8, indented, trailing newline) into
    `out_dir`, creating the directory if needed. Row and rule schemas use the
    spreadsheet/camelCase aliases, which are the names found in files.

    @returns
        Path of the written schema file.
    """
    out_dir.mkdir(parents=True, exist_ok=True)

    schema_path = (out_dir / f"{name}.schema.json").resolve()
    schema = model_cls.model_json_schema(by_alias=by_alias)

    with schema_path.open("w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
        f.write("\n")

    try:
        rel = schema_path.relative_to(Path.cwd())
    except ValueError:
        rel = schema_path
    print(f"✅  Generated {rel}")
    return schema_path


def main() -> None:
    out_dir = Path("schemas").resolve()

    export_schema(ClientRecord, "client", out_dir)
    export_schema(WorkerRecord, "worker", out_dir)
    export_schema(TaskRecord, "task", out_dir)
    export_schema(ValidationIssue, "validation_issue", out_dir)
    export_schema(RuleConfig, "rule_config", out_dir)
    export_schema(Config, "config", out_dir, by_alias=False)


if __name__ == "__main__":
    main()
