#!/usr/bin/env python3
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

"""CLI entry point for validating inputs against a rule schema."""

import argparse
import asyncio
import importlib
import sys
from typing import Any, Dict, List

import yaml

from .binder import ParameterBinder, StrictParameterBinder
from .config import EngineConfig, engine_config
from .exceptions import ConfigurationError, JsonValidationError
from .loader import EXAMPLE_SCHEMAS_PATH, load_inputs, load_schema
from .registry import ValidatorRegistry, with_timeout
from .report import REPORT_FORMATS, ValidationReport
from .session import validate_async
from .validators import create_default_registry

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_CONFIG_ERROR = 2


def parse_assignment(text: str) -> tuple:
    """Parse ``key=value``; the value is read as a YAML scalar (``250`` -> int)."""
    key, sep, value = text.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got '{text}'")
    try:
        parsed = yaml.safe_load(value) if value else ""
    except yaml.YAMLError:
        parsed = value
    return key.strip(), parsed


def load_validator_modules(registry: ValidatorRegistry, module_names: List[str]) -> None:
    """Import each module and call its ``register(registry)`` hook."""
    for module_name in module_names:
        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise ConfigurationError(f"Failed to import validators module '{module_name}': {e}") from e

        register = getattr(module, "register", None)
        if not callable(register):
            raise ConfigurationError(
                f"Validators module '{module_name}' has no register(registry) function"
            )
        register(registry)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="json_validation",
        description="Validate input values against a rule schema",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        'schema',
        nargs='?',
        default=None,
        help=f'Schema file (YAML or JSON). Default: bundled examples ({EXAMPLE_SCHEMAS_PATH.name})',
    )
    parser.add_argument(
        '--name',
        default=None,
        help='Schema to use when the file holds named schemas',
    )
    parser.add_argument(
        '--inputs',
        default=None,
        help='YAML or JSON file with the input values',
    )
    parser.add_argument(
        '--set',
        dest='assignments',
        action='append',
        type=parse_assignment,
        default=[],
        metavar='KEY=VALUE',
        help='Input value (repeatable; overrides --inputs)',
    )
    parser.add_argument(
        '--validators',
        dest='validator_modules',
        action='append',
        default=[],
        metavar='MODULE',
        help='Module whose register(registry) adds validators (repeatable)',
    )
    parser.add_argument(
        '--format',
        choices=list(REPORT_FORMATS),
        default='human',
        help='Output format (default: human)',
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        default=None,
        help='Fail on placeholders without a bound input',
    )
    parser.add_argument(
        '--log-level',
        default=None,
        help='Logging level (default: from JSON_VALIDATION_LOG_LEVEL)',
    )
    return parser


def run(args: argparse.Namespace, config: EngineConfig) -> int:
    schema_path = args.schema or EXAMPLE_SCHEMAS_PATH
    schema = load_schema(schema_path, args.name)

    inputs: Dict[str, Any] = load_inputs(args.inputs) if args.inputs else {}
    inputs.update(dict(args.assignments))

    strict = config.strict_bindings if args.strict is None else args.strict
    binder = StrictParameterBinder() if strict else ParameterBinder()

    registry = create_default_registry()
    load_validator_modules(registry, args.validator_modules)
    if config.deferred_timeout > 0:
        for capability in registry.capabilities():
            if capability.deferred:
                registry.add(with_timeout(capability, config.deferred_timeout))

    outcome = asyncio.run(validate_async(schema, inputs, registry=registry, binder=binder))
    report = ValidationReport(outcome, schema)

    rendered = report.render(args.format)
    if rendered:
        print(rendered)
    return EXIT_OK if report.passed else EXIT_INVALID


def main(argv: List[str] | None = None) -> None:
    """Main entry point for the validation CLI."""
    args = build_parser().parse_args(argv)

    config = EngineConfig.from_env() if argv is not None else engine_config
    if args.log_level:
        config.log_level = args.log_level
    logger = config.set_logging()

    try:
        code = run(args, config)
    except ConfigurationError as e:
        logger.error(str(e))
        code = EXIT_CONFIG_ERROR
    except JsonValidationError as e:
        logger.error(f"Validation could not complete: {e}")
        code = EXIT_CONFIG_ERROR
    sys.exit(code)


if __name__ == '__main__':
    main()
