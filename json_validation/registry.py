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
Validator registry
------------------

Maps ``(namespace, name)`` to a predicate capability. Each capability states
at registration time whether it is immediate (returns a boolean) or deferred
(receives ``on_pass`` / ``on_fail`` continuations as trailing arguments and
calls exactly one of them, now or later).
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .exceptions import UnknownValidatorError

logger = logging.getLogger(__name__)

Continuation = Callable[[], None]


class CapabilityKind(str, Enum):
    IMMEDIATE = "immediate"
    DEFERRED = "deferred"


@dataclass(frozen=True)
class Capability:
    """A registered predicate and its calling convention."""

    namespace: str
    name: str
    func: Callable[..., Any]
    kind: CapabilityKind = CapabilityKind.IMMEDIATE

    @property
    def deferred(self) -> bool:
        return self.kind == CapabilityKind.DEFERRED

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    def invoke(self, params: Sequence[Any], on_pass: Continuation, on_fail: Continuation) -> None:
        """Run the predicate and call exactly one continuation with its outcome.

        Immediate predicates settle before this returns. Deferred predicates
        settle whenever they call a continuation, which may be later.
        """
        if self.deferred:
            self.func(*params, on_pass, on_fail)
            return

        if self.func(*params):
            on_pass()
        else:
            on_fail()


class ValidatorRegistry:
    """Registry of predicate capabilities keyed by (namespace, name)."""

    def __init__(self):
        self._capabilities: Dict[Tuple[str, str], Capability] = {}

    def register(
        self,
        namespace: str,
        name: str,
        func: Callable[..., Any],
        deferred: bool = False,
    ) -> Capability:
        """Register ``func`` under ``namespace.name``, replacing any previous entry."""
        if not callable(func):
            raise TypeError(f"Validator '{namespace}.{name}' must be callable, got {type(func).__name__}")

        key = (namespace, name)
        if key in self._capabilities:
            logger.warning(f"Replacing registered validator '{namespace}.{name}'")

        kind = CapabilityKind.DEFERRED if deferred else CapabilityKind.IMMEDIATE
        capability = Capability(namespace=namespace, name=name, func=func, kind=kind)
        self._capabilities[key] = capability
        logger.debug(f"Registered {kind.value} validator '{namespace}.{name}'")
        return capability

    def add(self, capability: Capability) -> Capability:
        """Register an already built capability (e.g. one wrapped by :func:`with_timeout`)."""
        self._capabilities[(capability.namespace, capability.name)] = capability
        return capability

    def validator(
        self,
        namespace: str,
        name: Optional[str] = None,
        deferred: bool = False,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """
        Decorator to register a predicate. The name defaults to the function name.
        """
        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.register(namespace, name or func.__name__, func, deferred=deferred)
            return func
        return decorator

    def resolve(self, namespace: str, name: str) -> Capability:
        capability = self._capabilities.get((namespace, name))
        if capability is None:
            raise UnknownValidatorError(namespace, name, self.names())
        return capability

    def capabilities(self) -> List[Capability]:
        return list(self._capabilities.values())

    def names(self) -> List[str]:
        return [f"{namespace}.{name}" for namespace, name in self._capabilities]

    def __contains__(self, key) -> bool:
        if isinstance(key, str):
            namespace, _, name = key.rpartition(".")
            key = (namespace, name)
        return tuple(key) in self._capabilities

    def __len__(self) -> int:
        return len(self._capabilities)


def with_timeout(capability: Capability, seconds: float) -> Capability:
    """Wrap a deferred capability so it fails if it has not settled within ``seconds``.

    Continuations arriving after the timeout (or after the first settlement)
    are dropped.
    """
    if not capability.deferred:
        raise ValueError(f"Only deferred validators can time out: '{capability.qualified_name}'")
    if seconds <= 0:
        raise ValueError(f"Timeout must be positive, got {seconds}")

    inner = capability.func

    def timed(*args):
        *params, on_pass, on_fail = args
        lock = threading.Lock()
        settled = []

        def settle(continuation: Continuation, label: str) -> Continuation:
            def fire() -> None:
                with lock:
                    if settled:
                        logger.debug(
                            f"Dropping late '{label}' from '{capability.qualified_name}' "
                            f"(already settled by '{settled[0]}')"
                        )
                        return
                    settled.append(label)
                    timer.cancel()
                continuation()
            return fire

        def expire() -> None:
            logger.warning(f"Validator '{capability.qualified_name}' did not settle within {seconds}s")
            settle(on_fail, "timeout")()

        timer = threading.Timer(seconds, expire)
        timer.daemon = True
        timer.start()
        inner(*params, settle(on_pass, "pass"), settle(on_fail, "fail"))

    return Capability(
        namespace=capability.namespace,
        name=capability.name,
        func=timed,
        kind=CapabilityKind.DEFERRED,
    )
