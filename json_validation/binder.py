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

import logging
import re
from typing import Any, List, Mapping, Optional, Sequence

from .exceptions import UnboundParameterError

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r'^\{([a-zA-Z0-9\-._]+)\}$')


def placeholder_name(token: Any) -> Optional[str]:
    """Return the input name of a ``{name}`` token, or None for literals."""
    if not isinstance(token, str):
        return None
    match = PLACEHOLDER_PATTERN.match(token)
    return match.group(1) if match else None


def is_placeholder(token: Any) -> bool:
    return placeholder_name(token) is not None


class ParameterBinder:
    """Resolves placeholder tokens in a rule's parameters against input bindings.

    A token that is exactly ``{name}`` is replaced by ``bindings[name]``, or by
    None when the input is not bound, so optional inputs can be checked by
    predicates that accept None. Every other token (numbers, booleans, lists,
    plain strings, strings that merely contain braces) passes through as is.
    """

    def resolve(self, params: Sequence[Any], bindings: Mapping[str, Any]) -> List[Any]:
        """Return a fresh list of resolved parameters; ``params`` is left untouched."""
        resolved = []
        for token in params or ():
            name = placeholder_name(token)
            if name is None:
                resolved.append(token)
            elif name in bindings:
                resolved.append(bindings[name])
            else:
                resolved.append(self._unbound(name))
        return resolved

    def _unbound(self, name: str) -> Any:
        logger.debug(f"Unbound parameter placeholder '{{{name}}}' resolved to None")
        return None


class StrictParameterBinder(ParameterBinder):
    """Binder that refuses placeholders without a bound input."""

    def _unbound(self, name: str) -> Any:
        raise UnboundParameterError(name)
