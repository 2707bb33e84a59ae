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

"""Reporting of validation outcomes."""

import json
from typing import Any, Dict, List, Optional

from .models.outcome import FailedRule, Outcome
from .models.rule import Schema

REPORT_FORMATS = ("human", "json", "github-actions")


def _message(error: Any) -> str:
    if isinstance(error, dict) and "message" in error:
        field = error.get("input")
        return f"{field}: {error['message']}" if field is not None else str(error["message"])
    if error is None:
        return "validation failed"
    if isinstance(error, (dict, list)):
        return json.dumps(error, sort_keys=True, default=str)
    return str(error)


class ValidationReport:
    """Outcome of one validation, with source locations of the failed rules."""

    def __init__(self, outcome: Outcome, schema: Optional[Schema] = None):
        self.outcome = outcome
        self.schema = schema

    @property
    def passed(self) -> bool:
        return self.outcome.passed

    def _location(self, failure: FailedRule) -> Dict[str, Any]:
        if self.schema is None:
            return {"yaml_path": failure.rule.path}
        loc = self.schema.locate(failure.rule)
        location: Dict[str, Any] = {"yaml_path": loc.yaml_path}
        if loc.line is not None:
            location["line"] = loc.line
        if loc.column is not None:
            location["column"] = loc.column
        return location

    def entries(self) -> List[Dict[str, Any]]:
        entries = []
        for failure in self.outcome.failures:
            entry = {"message": _message(failure.error), "error": failure.error}
            entry.update(self._location(failure))
            entries.append(entry)
        return entries

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": str(self.schema.file_path) if self.schema and self.schema.file_path else None,
            "passed": self.passed,
            "errors": self.entries(),
        }

    def render(self, fmt: str = "human") -> str:
        if fmt == "json":
            return json.dumps(self.to_dict(), indent=2, default=str)

        schema_file = self.schema.file_path if self.schema and self.schema.file_path else None
        lines = []
        if fmt == "github-actions":
            for entry in self.entries():
                prefix = f"::error file={schema_file},line={entry.get('line', 1)}" if schema_file else "::error"
                lines.append(f"{prefix}::{entry['message']}")
            return "\n".join(lines)

        if fmt != "human":
            raise ValueError(f"Unknown report format '{fmt}'. Expected one of {REPORT_FORMATS}")

        if self.passed:
            return "Validation succeeded."
        header = f"{schema_file}:" if schema_file else "Validation failed:"
        lines.append(header)
        for entry in self.entries():
            line_info = f":{entry['line']}" if "line" in entry else ""
            lines.append(f"  ERROR{line_info}: {entry['message']} ({entry['yaml_path']})")
        return "\n".join(lines)
