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

"""String predicates.

Unbound inputs arrive as None and are treated as the empty string, so that
``notEmpty`` rejects a missing field and ``emptyOrEmail`` accepts one.
"""

import re
from typing import Any, Sequence
from urllib.parse import urlparse

from ..registry import ValidatorRegistry

STRING_NAMESPACE = "StringValidator"

EMAIL_PATTERN = re.compile(
    r'^[_a-z0-9-]+([.+][_a-z0-9-]+)*@[a-z0-9-]+(\.[a-z0-9-]+)*(\.[a-z]{2,})$',
    re.IGNORECASE,
)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def email(value: Any) -> bool:
    return EMAIL_PATTERN.match(_text(value)) is not None


def empty(value: Any) -> bool:
    return _text(value) == ""


def not_empty(value: Any) -> bool:
    return not empty(value)


def url(value: Any) -> bool:
    parsed = urlparse(_text(value))
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def empty_or_email(value: Any) -> bool:
    return empty(value) or email(value)


def empty_or_url(value: Any) -> bool:
    return empty(value) or url(value)


def equals(value: Any, expected: Any) -> bool:
    return value == expected


def in_list(value: Any, options: Sequence[Any]) -> bool:
    return value in (options or ())


def max_length(value: Any, length: int) -> bool:
    return len(_text(value)) <= length


def min_length(value: Any, length: int) -> bool:
    return len(_text(value)) >= length


def register_string_validators(registry: ValidatorRegistry) -> None:
    for name, func in (
        ("email", email),
        ("empty", empty),
        ("notEmpty", not_empty),
        ("url", url),
        ("emptyOrEmail", empty_or_email),
        ("emptyOrUrl", empty_or_url),
        ("equals", equals),
        ("inList", in_list),
        ("maxLength", max_length),
        ("minLength", min_length),
    ):
        registry.register(STRING_NAMESPACE, name, func)
