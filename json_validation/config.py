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

"""Configuration management for the rule engine."""

import os
import logging
from dataclasses import dataclass

from .utils.logging_utils import configure_split_stream_logging


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class EngineConfig:
    """Configuration class for the rule engine and its CLI."""
    log_level: str = "INFO"
    print_level: str = "ERROR"
    strict_bindings: bool = False
    # seconds; 0 disables the deferred predicate timeout
    deferred_timeout: float = 0.0

    @classmethod
    def from_env(cls) -> 'EngineConfig':
        """Create configuration from environment variables."""
        return cls(
            log_level=os.getenv('JSON_VALIDATION_LOG_LEVEL', 'INFO'),
            print_level=os.getenv('JSON_VALIDATION_PRINT_LEVEL', 'ERROR'),
            strict_bindings=_env_flag('JSON_VALIDATION_STRICT_BINDINGS', 'false'),
            deferred_timeout=float(os.getenv('JSON_VALIDATION_DEFERRED_TIMEOUT', '0')),
        )

    def set_logging(self) -> logging.Logger:
        """Setup logging based on configuration."""
        level = getattr(logging, self.log_level.upper(), logging.INFO)
        stderr_level = getattr(logging, self.print_level.upper(), logging.ERROR)

        formatter = logging.Formatter('%(name)s - %(levelname)s - %(message)s')
        return configure_split_stream_logging(
            level=level,
            stderr_level=stderr_level,
            formatter=formatter,
            logger_name='json_validation',
        )


# Global configuration instance
engine_config = EngineConfig.from_env()
