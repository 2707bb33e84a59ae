"""Schema and outcome data structures."""

from .rule import Rule, Schema, ValidatorRef
from .outcome import FailedRule, Failure, Outcome, Success

__all__ = [
    "Rule",
    "Schema",
    "ValidatorRef",
    "FailedRule",
    "Failure",
    "Outcome",
    "Success",
]
