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

"""Schema and input document loading.

Schema documents are YAML or JSON. The root is either a list of rules, or a
mapping of schema names to rule lists (select one with ``name``). Loading
never checks rule structure; that happens when each rule is evaluated.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from .exceptions import SchemaLoadError
from .models.rule import Schema
from .source_location import SourceMap, join_path

logger = logging.getLogger(__name__)

EXAMPLE_SCHEMAS_PATH = Path(__file__).parent / "examples" / "schemas.yaml"


def build_source_map(content: str) -> SourceMap:
    """Build a mapping from JSON-pointer-like paths to 1-based line/column.

    This uses PyYAML's node tree (yaml.compose) so we can track locations without
    changing the parsed data shapes returned by safe_load.
    """
    source_map: SourceMap = {}

    try:
        root = yaml.compose(content, Loader=yaml.SafeLoader)
    except yaml.YAMLError:
        # Parsing errors are reported by safe_load.
        return source_map

    if root is None:
        return source_map

    def _record(path: str, node) -> None:
        mark = getattr(node, "start_mark", None)
        if mark is None:
            return
        # PyYAML uses 0-based line/column
        source_map[path] = {"line": int(mark.line) + 1, "column": int(mark.column) + 1}

    def _walk(node, path: str) -> None:
        _record(path, node)

        if isinstance(node, yaml.nodes.MappingNode):
            for key_node, value_node in node.value:
                key = getattr(key_node, "value", None)
                if key is None:
                    continue
                _walk(value_node, join_path(path, key))
        elif isinstance(node, yaml.nodes.SequenceNode):
            for idx, item_node in enumerate(node.value):
                _walk(item_node, join_path(path, idx))

    _walk(root, "")
    return source_map


def _parse(content: str, origin: str, as_json: bool = False) -> Tuple[Any, SourceMap]:
    if as_json:
        try:
            return json.loads(content), {}
        except json.JSONDecodeError as exc:
            raise SchemaLoadError(f"Failed to parse JSON {origin}: {exc}") from exc

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise SchemaLoadError(f"Failed to parse YAML {origin}: {exc}") from exc
    return data, build_source_map(content)


def _read(file_path: Union[str, Path]) -> Tuple[Path, str]:
    path = Path(file_path)
    if not path.exists():
        raise SchemaLoadError(f"File not found: {path}")
    if not path.is_file():
        raise SchemaLoadError(f"Path is not a file: {path}")
    try:
        return path, path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaLoadError(f"Failed to read file {path}: {exc}") from exc


def _select(data: Any, name: Optional[str], origin: str) -> Tuple[Any, str]:
    """Pick the rule list out of a document; returns (rules, base path)."""
    if name is None:
        if isinstance(data, dict):
            raise SchemaLoadError(
                f"{origin} holds named schemas {sorted(data)}; choose one by name"
            )
        return data, ""

    if not isinstance(data, dict):
        raise SchemaLoadError(f"{origin} does not hold named schemas; cannot select '{name}'")
    if name not in data:
        raise SchemaLoadError(f"Schema '{name}' not found in {origin}. Available schemas: {sorted(data)}")
    return data[name], join_path("", name)


def schema_from_data(
    data: Any,
    name: Optional[str] = None,
    file_path: Optional[Path] = None,
    source_map: Optional[SourceMap] = None,
    origin: str = "schema document",
) -> Schema:
    rules, base_path = _select(data, name, origin)
    return Schema.from_list(rules, file_path=file_path, source_map=source_map, base_path=base_path)


def load_schema(file_path: Union[str, Path], name: Optional[str] = None) -> Schema:
    """Load a schema from a YAML or JSON file.

    Raises:
        SchemaLoadError: If the file cannot be read or parsed, or holds no rule list.
    """
    path, content = _read(file_path)
    logger.debug(f"Loading schema file: {path}")
    data, source_map = _parse(content, str(path), as_json=path.suffix.lower() == ".json")
    return schema_from_data(data, name, file_path=path, source_map=source_map, origin=str(path))


def load_schema_from_string(content: str, name: Optional[str] = None) -> Schema:
    """Load a schema from YAML (or JSON) text."""
    data, source_map = _parse(content, "content")
    return schema_from_data(data, name, source_map=source_map)


def list_schema_names(file_path: Union[str, Path]) -> list:
    path, content = _read(file_path)
    data, _ = _parse(content, str(path), as_json=path.suffix.lower() == ".json")
    return sorted(data) if isinstance(data, dict) else []


def load_example_schema(name: str) -> Schema:
    """Load one of the bundled example schemas (simple, funnel, blocking, nested, full)."""
    return load_schema(EXAMPLE_SCHEMAS_PATH, name)


def load_inputs(file_path: Union[str, Path]) -> Dict[str, Any]:
    """Load input bindings from a YAML or JSON mapping."""
    path, content = _read(file_path)
    logger.debug(f"Loading inputs file: {path}")
    data, _ = _parse(content, str(path), as_json=path.suffix.lower() == ".json")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SchemaLoadError(f"Inputs in {path} must be a mapping, got {type(data).__name__}")
    return data
