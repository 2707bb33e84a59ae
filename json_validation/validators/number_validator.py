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

"""Number predicates. Form inputs are often strings, so values are parsed first."""

from typing import Any, Optional, Sequence, Union

from ..registry import ValidatorRegistry

NUMBER_NAMESPACE = "NumberValidator"

Number = Union[int, float]


def _to_number(value: Any) -> Optional[Number]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        text = str(value).strip()
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


def numeric(value: Any) -> bool:
    return _to_number(value) is not None


def between(value: Any, minimum: Number, maximum: Number) -> bool:
    number = _to_number(value)
    return number is not None and minimum <= number <= maximum


def in_list(value: Any, options: Sequence[Number]) -> bool:
    number = _to_number(value)
    return number is not None and number in (options or ())


def register_number_validators(registry: ValidatorRegistry) -> None:
    registry.register(NUMBER_NAMESPACE, "numeric", numeric)
    registry.register(NUMBER_NAMESPACE, "between", between)
    registry.register(NUMBER_NAMESPACE, "inList", in_list)
