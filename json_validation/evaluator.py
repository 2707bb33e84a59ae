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

"""
Rule evaluator
--------------

Evaluates one rule in two phases:

1. start: bind the parameters, resolve the predicate, invoke it. The
   outcome arrives through ``on_settled(passed)``, immediately for plain
   predicates, possibly later for deferred ones.
2. apply: branch on the outcome. A pass opens the rule's sub-rules as a
   nested sibling list; a failure is recorded unless the rule is a funnel,
   and blocks the rest of the current list if the rule is blocking.

The evaluator owns no state. Everything it mutates belongs to the session.
"""

import logging
from typing import Any, Callable, Mapping, Optional

from .binder import ParameterBinder
from .exceptions import RuleConfigurationError, UnknownValidatorError
from .models.rule import Rule, ValidatorRef
from .registry import ValidatorRegistry
from .source_location import SourceLocation, format_source

logger = logging.getLogger(__name__)

Locator = Callable[[Rule], SourceLocation]


class RuleEvaluator:
    def __init__(self, registry: ValidatorRegistry, binder: Optional[ParameterBinder] = None):
        self.registry = registry
        self.binder = binder or ParameterBinder()

    def start(
        self,
        rule: Rule,
        bindings: Mapping[str, Any],
        on_settled: Callable[[bool], None],
        locate: Optional[Locator] = None,
    ) -> None:
        """Invoke the rule's predicate; ``on_settled`` receives its verdict."""
        reference = self.reference(rule, locate)
        params = self.binder.resolve(rule.params, bindings)

        try:
            capability = self.registry.resolve(reference.namespace, reference.name)
        except UnknownValidatorError as e:
            logger.error(f"Failed to resolve validator for rule {rule.path or '<root>'}: {e}{self._where(rule, locate)}")
            raise

        logger.debug(f"Evaluating {rule.path} with {capability.kind.value} validator '{reference}'")
        capability.invoke(params, lambda: on_settled(True), lambda: on_settled(False))

    def apply(self, rule: Rule, passed: bool, frame, session) -> None:
        """Route a settled verdict into the session state."""
        if passed:
            logger.debug(f"Rule {rule.path} passed")
            if not rule.is_leaf:
                session.open_list(rule.rules)
            return

        if rule.funnel:
            logger.debug(f"Rule {rule.path} failed as a funnel; skipping its sub-rules")
        else:
            logger.debug(f"Rule {rule.path} failed")
            session.record_failure(rule)

        if rule.blocking:
            frame.block()

    def reference(self, rule: Rule, locate: Optional[Locator] = None) -> ValidatorRef:
        """Parse the rule's validator reference, reporting authoring defects."""
        if rule.defect:
            raise RuleConfigurationError(
                f"Malformed rule {rule.path or '<root>'}: {rule.defect}{self._where(rule, locate)}"
            )
        try:
            return ValidatorRef.parse(rule.validator)
        except ValueError as e:
            raise RuleConfigurationError(
                f"Malformed rule {rule.path or '<root>'}: {e}{self._where(rule, locate)}"
            ) from e

    @staticmethod
    def _where(rule: Rule, locate: Optional[Locator]) -> str:
        if locate is None:
            return ""
        return format_source(locate(rule))
