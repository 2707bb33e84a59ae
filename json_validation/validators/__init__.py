"""
Built-in predicates
-------------------

String and number checks registered under the ``StringValidator`` and
``NumberValidator`` namespaces.
"""

from ..registry import ValidatorRegistry
from .number_validator import NUMBER_NAMESPACE, register_number_validators
from .string_validator import STRING_NAMESPACE, register_string_validators

__all__ = [
    "NUMBER_NAMESPACE",
    "STRING_NAMESPACE",
    "create_default_registry",
    "register_builtin_validators",
    "register_number_validators",
    "register_string_validators",
]


def register_builtin_validators(registry: ValidatorRegistry) -> ValidatorRegistry:
    register_string_validators(registry)
    register_number_validators(registry)
    return registry


def create_default_registry() -> ValidatorRegistry:
    """Return a new registry holding the built-in predicates."""
    return register_builtin_validators(ValidatorRegistry())
