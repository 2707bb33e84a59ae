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

"""Evaluation sessions.

A session owns the mutable state of one validation: a stack of sibling-list
frames, the failed-rule accumulator and the rule waiting on its predicate.
Rules are evaluated strictly one at a time in declared order. When a deferred
predicate has not settled by the time it returns, the session suspends; the
predicate's continuation later resumes it from the same point.

A deferred predicate that never settles stalls its session forever. Wrap
such predicates with :func:`json_validation.registry.with_timeout` where that
matters.
"""

import asyncio
import logging
import threading
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Optional, Sequence

from .binder import ParameterBinder
from .evaluator import RuleEvaluator
from .exceptions import EvaluationPendingError, PredicateContractError, SessionStateError
from .models.outcome import FailedRule, Failure, Outcome, Success
from .models.rule import Rule, Schema
from .registry import ValidatorRegistry

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[Outcome], None]
ErrorCallback = Callable[[BaseException], None]


class SessionState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUSPENDED = "suspended"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ERRORED = "errored"


class SiblingList:
    """Cursor over one list of sibling rules with its own blocking flag."""

    __slots__ = ("rules", "cursor", "blocked", "depth")

    def __init__(self, rules: Sequence[Rule], depth: int = 0):
        self.rules = rules
        self.cursor = 0
        self.blocked = False
        self.depth = depth

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self.rules)

    @property
    def remaining(self) -> int:
        return max(len(self.rules) - self.cursor, 0)

    def next_rule(self) -> Rule:
        rule = self.rules[self.cursor]
        self.cursor += 1
        return rule

    def block(self) -> None:
        self.blocked = True


class _Awaiting:
    """The rule whose predicate has been invoked but has not settled yet."""

    __slots__ = ("rule", "frame", "settled")

    def __init__(self, rule: Rule, frame: SiblingList):
        self.rule = rule
        self.frame = frame
        self.settled = False


class ValidationSession:
    """Validates one set of input bindings against a schema, once."""

    def __init__(
        self,
        schema: Any,
        bindings: Optional[Mapping[str, Any]] = None,
        registry: Optional[ValidatorRegistry] = None,
        binder: Optional[ParameterBinder] = None,
    ):
        self.schema = Schema.coerce(schema)
        self.bindings = MappingProxyType(dict(bindings or {}))
        if registry is None:
            from .validators import create_default_registry
            registry = create_default_registry()
        self.registry = registry
        self._evaluator = RuleEvaluator(registry, binder)

        self._lock = threading.RLock()
        self._frames: List[SiblingList] = []
        self._failures: List[FailedRule] = []
        self._awaiting: Optional[_Awaiting] = None
        self._driving = False
        self._state = SessionState.PENDING
        self._outcome: Optional[Outcome] = None

        self._on_success: Optional[OutcomeCallback] = None
        self._on_failure: Optional[OutcomeCallback] = None
        self._on_error: Optional[ErrorCallback] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def outcome(self) -> Optional[Outcome]:
        return self._outcome

    def get_failed_rules(self) -> List[Any]:
        """Error payloads of the failed rules, in discovery order."""
        return [failure.error for failure in self._failures]

    def get_failures(self) -> List[FailedRule]:
        """Failed rules with their owning Rule objects, in discovery order."""
        return list(self._failures)

    def validate(
        self,
        on_success: Optional[OutcomeCallback] = None,
        on_failure: Optional[OutcomeCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Optional[Outcome]:
        """Run the schema against the bindings.

        Returns the outcome if evaluation completed, or None if it is suspended
        on a deferred predicate. ``on_success`` / ``on_failure`` receive the
        outcome whenever evaluation completes. Errors raised while evaluating
        (unknown validators, malformed rules, predicate exceptions) propagate,
        unless ``on_error`` is given, in which case they are delivered there.
        """
        with self._lock:
            if self._state != SessionState.PENDING:
                raise SessionStateError(f"Session already started (state: {self._state.value})")

            self._on_success = on_success
            self._on_failure = on_failure
            self._on_error = on_error

            logger.debug(f"Validating {len(self.schema)} top-level rules against inputs {sorted(self.bindings)}")
            self._state = SessionState.RUNNING
            self.open_list(self.schema.rules)
            self._drive()
            return self._outcome

    # State mutations used by the evaluator

    def open_list(self, rules: Sequence[Rule]) -> None:
        depth = self._frames[-1].depth + 1 if self._frames else 0
        self._frames.append(SiblingList(rules, depth))

    def record_failure(self, rule: Rule) -> None:
        self._failures.append(FailedRule(rule=rule, error=rule.error))

    # State machine

    def _drive(self) -> None:
        self._driving = True
        try:
            completed = self._run()
        except Exception as e:
            self._state = SessionState.ERRORED
            self._frames.clear()
            self._awaiting = None
            if self._on_error is None:
                raise
            self._on_error(e)
            return
        finally:
            self._driving = False

        if completed:
            self._notify()

    def _run(self) -> bool:
        """Evaluate rules until the schema is exhausted (True) or a predicate is pending (False)."""
        while self._awaiting is None:
            if not self._frames:
                self._complete()
                return True

            frame = self._frames[-1]
            if frame.blocked or frame.exhausted:
                self._close(frame)
                continue

            rule = frame.next_rule()
            awaiting = _Awaiting(rule, frame)
            self._awaiting = awaiting
            self._evaluator.start(
                rule,
                self.bindings,
                lambda passed: self._settle(awaiting, passed),
                self.schema.locate,
            )

        self._state = SessionState.SUSPENDED
        logger.debug(f"Suspended on deferred validator of rule {self._awaiting.rule.path}")
        return False

    def _settle(self, awaiting: _Awaiting, passed: bool) -> None:
        with self._lock:
            if awaiting.settled:
                raise PredicateContractError(
                    f"Validator of rule {awaiting.rule.path} settled more than once"
                )
            awaiting.settled = True
            if awaiting is not self._awaiting:
                raise PredicateContractError(
                    f"Validator of rule {awaiting.rule.path} settled after its session "
                    f"stopped (state: {self._state.value})"
                )

            self._awaiting = None
            self._evaluator.apply(awaiting.rule, passed, awaiting.frame, self)

            # Settling synchronously inside the predicate call: the running loop continues.
            if not self._driving:
                self._state = SessionState.RUNNING
                self._drive()

    def _close(self, frame: SiblingList) -> None:
        self._frames.pop()
        if frame.blocked and frame.remaining:
            logger.debug(f"Blocked: skipping {frame.remaining} remaining rule(s) at depth {frame.depth}")

    def _complete(self) -> None:
        failures = tuple(self._failures)
        errors = tuple(failure.error for failure in failures)

        if failures:
            self._outcome = Failure(errors=errors, failures=failures)
            self._state = SessionState.FAILED
            logger.debug(f"Validation failed with {len(failures)} failed rule(s)")
        else:
            self._outcome = Success()
            self._state = SessionState.SUCCEEDED
            logger.debug("Validation succeeded")

    def _notify(self) -> None:
        callback = self._on_success if self._state == SessionState.SUCCEEDED else self._on_failure
        if callback is not None:
            callback(self._outcome)


def validate(
    schema: Any,
    bindings: Optional[Mapping[str, Any]] = None,
    registry: Optional[ValidatorRegistry] = None,
    binder: Optional[ParameterBinder] = None,
) -> Outcome:
    """Validate synchronously.

    Deferred predicates are fine as long as they settle before they return.

    Raises:
        EvaluationPendingError: If a deferred predicate is still pending.
    """
    session = ValidationSession(schema, bindings, registry=registry, binder=binder)
    outcome = session.validate()
    if outcome is None:
        raise EvaluationPendingError(
            f"Validation is waiting on a deferred validator (state: {session.state.value}); "
            f"use validate_async() or ValidationSession.validate() with callbacks"
        )
    return outcome


async def validate_async(
    schema: Any,
    bindings: Optional[Mapping[str, Any]] = None,
    registry: Optional[ValidatorRegistry] = None,
    binder: Optional[ParameterBinder] = None,
    timeout: Optional[float] = None,
) -> Outcome:
    """Validate, awaiting deferred predicates on the running event loop.

    Continuations may be fired from any thread.

    Raises:
        asyncio.TimeoutError: If ``timeout`` elapses first.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def _deliver(outcome: Outcome) -> None:
        loop.call_soon_threadsafe(_set_result, future, outcome)

    def _raise(exc: BaseException) -> None:
        loop.call_soon_threadsafe(_set_exception, future, exc)

    session = ValidationSession(schema, bindings, registry=registry, binder=binder)
    session.validate(_deliver, _deliver, _raise)

    if timeout is None:
        return await future
    return await asyncio.wait_for(future, timeout)


def _set_result(future: asyncio.Future, outcome: Outcome) -> None:
    if not future.done():
        future.set_result(outcome)


def _set_exception(future: asyncio.Future, exc: BaseException) -> None:
    if not future.done():
        future.set_exception(exc)
