# scripts/run.py
from __future__ import annotations

import argparse
import logging
import sys
import time
import traceback
from pathlib import Path
from typing import Any

from alchemist.dataloader.config_loader import ConfigLoader
from alchemist.dataloader.records_loader import RecordsLoader
from alchemist.errors import AlchemistError, DataError
from alchemist.export.dataset_export import write_dataset_csv
from alchemist.export.rules_export import write_rule_config
from alchemist.metrics.logger import write_metrics
from alchemist.metrics.metrics import collect_metrics
from alchemist.rules.session import RuleSession
from alchemist.schemas.models import Config, DataSet
from alchemist.validator import DatasetValidator


def _setup_logging() -> None:
    """
    @brief
    Initializes global logging configuration.

    @details
    Sets the default logging level to INFO and defines a simple console format.
    """
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    @brief
    Parses command-line arguments for the validation pipeline.

    @details
    Dataset and rule paths fall back to the values in config.yaml when not
    given on the command line.
    """
    parser = argparse.ArgumentParser(
        prog="alchemist-run",
        description="Validate clients/workers/tasks data and parse business rules: "
        "load → validate → parse rules → metrics → export",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config YAML (default: built-in defaults)",
    )
    parser.add_argument("--clients", type=str, default=None, help="Path to clients CSV")
    parser.add_argument("--workers", type=str, default=None, help="Path to workers CSV")
    parser.add_argument("--tasks", type=str, default=None, help="Path to tasks CSV")
    parser.add_argument(
        "--rules",
        type=str,
        default=None,
        help="Text file with one business rule per line (blank lines and # comments ignored)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory for artifacts (default: output_dir from config)",
    )
    return parser.parse_args(argv)


def _resolve(cli_value: str | None, cfg_value: str | None, name: str) -> Path:
    value = cli_value or cfg_value
    if not value:
        raise DataError(
            message=f"No {name} input given",
            source="scripts.run",
            suggested_action=f"Pass --{name} or set {name}_csv in config.yaml.",
        )
    return Path(value)


def _read_rule_lines(path: Path) -> list[str]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DataError(
            message=f"Unable to read rules file {path}: {e}",
            source="scripts.run",
            suggested_action="Check the --rules path.",
        ) from e
    lines = (ln.strip() for ln in text.splitlines())
    return [ln for ln in lines if ln and not ln.startswith("#")]


def run_pipeline(
    cfg: Config,
    inputs: dict[DataSet, Path],
    output_dir: Path,
    rules_path: Path | None = None,
) -> dict[str, Any]:
    """
    @brief
    Executes the full validation pipeline.

    @details
    (1) Load the three datasets into typed records.
    (2) Validate them and write validation_report.json.
    (3) Parse the business rules into a session and write rules.json.
    (4) Collect metrics; export cleaned CSV copies.

    @returns
        Dictionary with the validity flag, issue counts and artifact paths.

    @raises
        AlchemistError
            On configuration, input or export failures.
    """
    t0 = time.perf_counter()
    output_dir.mkdir(parents=True, exist_ok=True)

    # (1) Load datasets
    records: dict[DataSet, list[Any]] = {}
    for data_set in DataSet:
        logging.info("Loading %s: %s", data_set.value, inputs[data_set])
        result = RecordsLoader(data_set).load_csv(inputs[data_set])
        if not result.success:
            raise DataError(
                message=f"{data_set.value} load failed: {result.errors[0]['message']}",
                source="scripts.run",
                suggested_action="Fix the reported rows and rerun the pipeline.",
            )
        records[data_set] = result.records

    clients = records[DataSet.CLIENTS]
    workers = records[DataSet.WORKERS]
    tasks = records[DataSet.TASKS]

    # (2) Validate
    logging.info("Validating datasets…")
    validator = DatasetValidator(clients, workers, tasks, cfg)
    issues = validator.run_all_checks()
    report = validator.build_report()
    if cfg.validation.write_report:
        validator.save_report(report, out_dir=output_dir)
    valid = bool(report["valid"])
    if not valid:
        logging.warning(
            "Validation failed: %d error(s), %d warning(s)",
            report["counts"]["errors"],
            report["counts"]["warnings"],
        )

    # (3) Rules
    session = RuleSession.from_config(cfg)
    if rules_path is not None:
        for line in _read_rule_lines(rules_path):
            session.add_rule(line)

    artifacts: dict[str, Path | None] = {
        "validation_report": (
            output_dir / "validation_report.json" if cfg.validation.write_report else None
        ),
        "rules": None,
        "metrics": None,
        "clients_csv": None,
        "workers_csv": None,
        "tasks_csv": None,
    }

    # (4) Metrics and exports
    if cfg.io_policy.write_artifacts:
        artifacts["rules"] = write_rule_config(session.to_config(), output_dir / "rules.json")

        summary = collect_metrics(
            issues,
            clients,
            workers,
            tasks,
            session.rules,
            saturation_ratio=cfg.saturation_warning_ratio,
        )
        artifacts["metrics"] = write_metrics(summary, out_dir=output_dir)

        for data_set, rows in records.items():
            artifacts[f"{data_set.value}_csv"] = write_dataset_csv(
                rows, output_dir / f"{data_set.value}_clean.csv"
            )

    dt = time.perf_counter() - t0
    logging.info("Pipeline finished in %.2f s", dt)

    return {
        "valid": valid,
        "errors": report["counts"]["errors"],
        "warnings": report["counts"]["warnings"],
        "rules": len(session.rules),
        "rules_parsed": len(session.successful_rules()),
        "artifacts": artifacts,
    }


def main(argv: list[str] | None = None) -> int:
    """
    @brief
    CLI entry point for the validation pipeline.

    @details
    Exit codes:
      0 – datasets valid
      1 – invalid datasets or controlled failure (config/data/export)
      2 – unexpected crash
    """
    _setup_logging()
    args = _parse_args(argv)

    try:
        cfg = ConfigLoader().load_or_default(Path(args.config) if args.config else None)
        inputs = {
            DataSet.CLIENTS: _resolve(args.clients, cfg.clients_csv, "clients"),
            DataSet.WORKERS: _resolve(args.workers, cfg.workers_csv, "workers"),
            DataSet.TASKS: _resolve(args.tasks, cfg.tasks_csv, "tasks"),
        }
        rules_value = args.rules or cfg.rules_txt
        output_dir = Path(args.output or cfg.output_dir or "data/output")

        result = run_pipeline(
            cfg, inputs, output_dir, Path(rules_value) if rules_value else None
        )
        written = [name for name, path in result["artifacts"].items() if path]
        logging.info("Artifacts in %s: %s", output_dir.as_posix(), ", ".join(written) or "none")
        return 0 if result["valid"] else 1

    except AlchemistError as e:
        logging.error(str(e))
        return 1
    except Exception:
        logging.error("Unexpected error occurred:")
        traceback.print_exc()
        return 2


if __name__ == "__main__":
    sys.exit(main())
