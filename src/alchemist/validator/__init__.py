from alchemist.validator.validator import DatasetValidator, validate_and_report, validate_datasets

__all__ = ["DatasetValidator", "validate_and_report", "validate_datasets"]
