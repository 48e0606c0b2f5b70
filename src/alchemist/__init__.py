"""Data Alchemist: consistency checks and rule extraction for client/worker/task datasets."""

from alchemist.rules.parser import parse_rule
from alchemist.validator.validator import validate_datasets

__version__ = "0.1.0"

__all__ = ["parse_rule", "validate_datasets", "__version__"]
