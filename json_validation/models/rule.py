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

"""Rule and schema data structures.

A schema is an ordered list of rules, given as Rule objects or as mappings of
the form::

    {
        "validator": ["StringValidator", "notEmpty"],
        "params": ["{email}"],
        "funnel": false,
        "blocking": false,
        "rules": [...],
        "error": {"input": "email", "message": "Please enter your email."}
    }

Building a Schema never rejects a malformed rule. Authoring defects are kept
on the Rule and reported when that rule is first evaluated.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple

from ..exceptions import SchemaLoadError
from ..source_location import SourceLocation, SourceMap, join_path, lookup_source


@dataclass(frozen=True)
class ValidatorRef:
    """Reference to a registered predicate."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}.{self.name}"

    @classmethod
    def parse(cls, raw: Any) -> "ValidatorRef":
        """Parse ``["Namespace", "name"]`` or ``"Namespace.name"``.

        Raises:
            ValueError: If ``raw`` is missing or not in one of the two forms.
        """
        if raw is None:
            raise ValueError("rule has no 'validator'")

        if isinstance(raw, str):
            namespace, sep, name = raw.rpartition(".")
            parts = [namespace, name] if sep else [raw]
        elif isinstance(raw, (list, tuple)):
            parts = list(raw)
        else:
            raise ValueError(
                f"'validator' must be a [namespace, name] pair or a 'namespace.name' string, "
                f"got {type(raw).__name__}"
            )

        if len(parts) != 2 or not all(isinstance(p, str) and p.strip() for p in parts):
            raise ValueError(f"'validator' must name a namespace and a validator, got {raw!r}")

        return cls(parts[0].strip(), parts[1].strip())


@dataclass(frozen=True, eq=False)
class Rule:
    """One node of the schema tree. Compared by identity."""

    validator: Any = None
    params: Tuple[Any, ...] = ()
    rules: Tuple["Rule", ...] = ()
    funnel: bool = False
    blocking: bool = False
    error: Any = None
    path: str = ""
    # Authoring defect found while building the rule; raised on first evaluation.
    defect: Optional[str] = None

    @property
    def is_leaf(self) -> bool:
        return not self.rules

    @classmethod
    def build(cls, item: Any, path: str = "") -> "Rule":
        """Place an existing Rule at ``path``, or build one from a mapping."""
        if isinstance(item, Rule):
            return item.placed(path)
        return cls.from_dict(item, path)

    def placed(self, path: str) -> "Rule":
        """Copy of this rule (and its sub-rules) relocated to ``path``."""
        return replace(
            self,
            path=path,
            params=tuple(self.params or ()),
            rules=tuple(
                Rule.build(item, join_path(join_path(path, "rules"), index))
                for index, item in enumerate(self.rules or ())
            ),
        )

    @classmethod
    def from_dict(cls, data: Any, path: str = "") -> "Rule":
        """Build a rule (and its sub-rules) from a mapping."""
        if not isinstance(data, dict):
            return cls(path=path, defect=f"rule must be a mapping, got {type(data).__name__}")

        defects: List[str] = []

        params = data.get("params")
        if params is None:
            params = ()
        elif isinstance(params, (list, tuple)):
            params = tuple(params)
        else:
            defects.append(f"'params' must be a list, got {type(params).__name__}")
            params = ()

        raw_rules = data.get("rules", data.get("sub_rules"))
        sub_rules: Tuple[Rule, ...] = ()
        if raw_rules is not None:
            if isinstance(raw_rules, (list, tuple)):
                key = "rules" if "rules" in data else "sub_rules"
                sub_rules = tuple(
                    cls.build(item, join_path(join_path(path, key), index))
                    for index, item in enumerate(raw_rules)
                )
            else:
                defects.append(f"'rules' must be a list, got {type(raw_rules).__name__}")

        funnel = _flag(data, "funnel", defects)
        # 'failsafe' is the legacy name of 'blocking'
        blocking = _flag(data, "blocking", defects) or _flag(data, "failsafe", defects)

        return cls(
            validator=data.get("validator"),
            params=params,
            rules=sub_rules,
            funnel=funnel,
            blocking=blocking,
            error=data.get("error"),
            path=path,
            defect="; ".join(defects) if defects else None,
        )


def _flag(data: dict, key: str, defects: List[str]) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        defects.append(f"'{key}' must be a boolean, got {value!r}")
        return False
    return value


@dataclass(frozen=True)
class Schema:
    """An ordered, reusable sequence of top-level rules."""

    rules: Tuple[Rule, ...] = ()
    file_path: Optional[Path] = None
    source_map: Optional[SourceMap] = field(default=None, repr=False, compare=False)

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    @classmethod
    def from_list(
        cls,
        data: Any,
        file_path: Optional[Path] = None,
        source_map: Optional[SourceMap] = None,
        base_path: str = "",
    ) -> "Schema":
        """Build a schema from a list of rule mappings (``None`` is an empty schema).

        ``base_path`` is the location of the list inside its document.
        """
        if data is None:
            data = []
        if not isinstance(data, (list, tuple)):
            where = f" in {file_path}" if file_path else ""
            raise SchemaLoadError(
                f"Schema root must be a list of rules{where}, got {type(data).__name__}"
            )

        rules = tuple(Rule.build(item, join_path(base_path, index)) for index, item in enumerate(data))
        return cls(rules=rules, file_path=file_path, source_map=source_map)

    @classmethod
    def coerce(cls, schema: Any) -> "Schema":
        if isinstance(schema, Schema):
            return schema
        return cls.from_list(schema)

    def locate(self, rule: Rule) -> SourceLocation:
        return lookup_source(self.source_map, rule.path, self.file_path)
