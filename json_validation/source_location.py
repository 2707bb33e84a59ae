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

"""Locations of rules inside schema documents, for diagnostics."""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

SourceMap = Dict[str, Dict[str, int]]


@dataclass(frozen=True)
class SourceLocation:
    file_path: Optional[Path] = None
    yaml_path: Optional[str] = None
    line: Optional[int] = None  # 1-based
    column: Optional[int] = None  # 1-based


def json_pointer_escape(token: str) -> str:
    # JSON Pointer escaping: "~" -> "~0", "/" -> "~1"
    return token.replace("~", "~0").replace("/", "~1")


def join_path(base: Optional[str], token) -> str:
    token = json_pointer_escape(str(token))
    if not base:
        return f"/{token}"
    return f"{base}/{token}"


def lookup_source(
    source_map: Optional[SourceMap],
    yaml_path: Optional[str],
    file_path: Optional[Path] = None,
) -> SourceLocation:
    if not source_map or not yaml_path:
        return SourceLocation(file_path=file_path, yaml_path=yaml_path)

    entry = source_map.get(yaml_path)
    if not entry:
        return SourceLocation(file_path=file_path, yaml_path=yaml_path)

    return SourceLocation(
        file_path=file_path,
        yaml_path=yaml_path,
        line=entry.get("line"),
        column=entry.get("column"),
    )


def format_source(loc: Optional[SourceLocation]) -> str:
    if not loc:
        return ""

    parts = []
    if loc.file_path is not None:
        if loc.line is not None and loc.column is not None:
            parts.append(f"source= {loc.file_path}:{loc.line}:{loc.column} ")
        elif loc.line is not None:
            parts.append(f"source= {loc.file_path}:{loc.line} ")
        else:
            parts.append(f"source= {loc.file_path} ")
    elif loc.line is not None:
        parts.append(f"line= {loc.line} ")

    if loc.yaml_path:
        parts.append(f"yaml_path={loc.yaml_path}")

    if not parts:
        return ""

    return " (" + " ".join(parts) + ")"
