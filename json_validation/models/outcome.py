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

"""Validation outcomes."""

from dataclasses import dataclass
from typing import Any, Tuple

from .rule import Rule


@dataclass(frozen=True, eq=False)
class FailedRule:
    """A failed, non-funnel rule and the error payload it surfaced."""

    rule: Rule
    error: Any

    def to_dict(self) -> dict:
        return {
            "validator": self.rule.validator,
            "path": self.rule.path,
            "error": self.error,
        }


@dataclass(frozen=True, eq=False)
class Outcome:
    """Result of one validation.

    ``errors`` holds the error payloads in discovery order; ``failures`` holds
    the same entries with their owning rules, for debugging.
    """

    errors: Tuple[Any, ...] = ()
    failures: Tuple[FailedRule, ...] = ()

    @property
    def passed(self) -> bool:
        return not self.failures

    def __bool__(self) -> bool:
        return self.passed


class Success(Outcome):
    """Every evaluated rule passed, or its failure was funneled."""

    def __repr__(self) -> str:
        return "Success()"


class Failure(Outcome):
    """At least one non-funnel rule failed."""

    def __repr__(self) -> str:
        return f"Failure({list(self.errors)!r})"
