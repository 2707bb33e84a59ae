"""
json_validation - declarative rule-tree validation of named inputs.

A schema is an ordered tree of rules. Each rule names a registered predicate,
its parameters (literals or ``{input}`` placeholders), optional sub-rules that
run only when it passes, and two failure policies: ``funnel`` (do not report
the failure) and ``blocking`` (skip the remaining sibling rules).
"""

__version__ = "0.1.0"

from .binder import ParameterBinder, StrictParameterBinder
from .exceptions import (
    ConfigurationError,
    EvaluationPendingError,
    JsonValidationError,
    PredicateContractError,
    RuleConfigurationError,
    SchemaLoadError,
    SessionStateError,
    UnboundParameterError,
    UnknownValidatorError,
)
from .loader import load_example_schema, load_inputs, load_schema, load_schema_from_string
from .models import FailedRule, Failure, Outcome, Rule, Schema, Success, ValidatorRef
from .registry import Capability, CapabilityKind, ValidatorRegistry, with_timeout
from .session import SessionState, ValidationSession, validate, validate_async
from .validators import create_default_registry, register_builtin_validators

__all__ = [
    "__version__",
    "Capability",
    "CapabilityKind",
    "ConfigurationError",
    "EvaluationPendingError",
    "FailedRule",
    "Failure",
    "JsonValidationError",
    "Outcome",
    "ParameterBinder",
    "PredicateContractError",
    "Rule",
    "RuleConfigurationError",
    "Schema",
    "SchemaLoadError",
    "SessionState",
    "SessionStateError",
    "StrictParameterBinder",
    "Success",
    "UnboundParameterError",
    "UnknownValidatorError",
    "ValidationSession",
    "ValidatorRef",
    "ValidatorRegistry",
    "create_default_registry",
    "load_example_schema",
    "load_inputs",
    "load_schema",
    "load_schema_from_string",
    "register_builtin_validators",
    "validate",
    "validate_async",
]
