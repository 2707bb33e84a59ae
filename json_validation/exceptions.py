# Copyright 2026 TIER IV, inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Custom exceptions for the json_validation engine.

Failed rules are never raised. They are accumulated by the session and
reported through the Failure outcome.
"""


class JsonValidationError(Exception):
    """Base exception for rule engine errors."""
    pass


class ConfigurationError(JsonValidationError):
    """Exception raised when a schema, registry or binding is misconfigured."""
    pass


class UnknownValidatorError(ConfigurationError):
    """Exception raised when a rule references an unregistered validator."""

    def __init__(self, namespace: str, name: str, available=None):
        self.namespace = namespace
        self.name = name
        message = f"Unknown validator '{namespace}.{name}'"
        if available is not None:
            message += f". Registered validators: {sorted(available)}"
        super().__init__(message)


class RuleConfigurationError(ConfigurationError):
    """Exception raised for malformed rules, at their first evaluation."""
    pass


class UnboundParameterError(ConfigurationError):
    """Exception raised by the strict binder for placeholders without a binding."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No input bound for parameter placeholder '{{{name}}}'")


class SchemaLoadError(ConfigurationError):
    """Exception raised when a schema or input document cannot be loaded."""
    pass


class PredicateContractError(JsonValidationError):
    """Exception raised when a deferred predicate settles more than once."""
    pass


class SessionStateError(JsonValidationError):
    """Exception raised when a session is driven outside its lifecycle."""
    pass


class EvaluationPendingError(JsonValidationError):
    """Exception raised when a synchronous validation is left waiting on a deferred predicate."""
    pass
