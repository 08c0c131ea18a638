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

"""Runtime configuration for validate-json-schema."""

import logging
import os
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from .utils.logging_utils import LOG_FORMAT, configure_split_stream_logging, resolve_level


APP_NAME = "validate-json-schema"

# Remote schema fetches are bounded by this transport timeout only.
FETCH_TIMEOUT_SECONDS = 30.0

ENV_PREFIX = "VALIDATE_JSON_SCHEMA_"


def user_cache_root() -> Path:
    """Return the platform's per-user cache directory."""
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Caches"
    if sys.platform.startswith("win"):
        local_app_data = os.getenv("LOCALAPPDATA")
        if local_app_data:
            return Path(local_app_data)
        return Path.home() / "AppData" / "Local"
    xdg_cache = os.getenv("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache)
    return Path.home() / ".cache"


def default_cache_dir() -> Path:
    return user_cache_root() / APP_NAME / "schemas"


@dataclass
class ValidatorConfig:
    """Configuration class for validation runs."""
    cache_dir: Path = field(default_factory=default_cache_dir)
    log_level: str = "WARNING"
    print_level: str = "WARNING"
    fetch_timeout: float = FETCH_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> 'ValidatorConfig':
        """Create configuration from environment variables."""
        cache_dir = os.getenv(f'{ENV_PREFIX}CACHE_DIR')
        return cls(
            cache_dir=Path(cache_dir).expanduser() if cache_dir else default_cache_dir(),
            log_level=os.getenv(f'{ENV_PREFIX}LOG_LEVEL', 'WARNING'),
            print_level=os.getenv(f'{ENV_PREFIX}PRINT_LEVEL', 'WARNING'),
        )

    def with_overrides(
        self,
        cache_dir: Optional[Path] = None,
        log_level: Optional[str] = None,
    ) -> 'ValidatorConfig':
        """Return a copy with command-line overrides applied."""
        updated = self
        if cache_dir is not None:
            updated = replace(updated, cache_dir=Path(cache_dir).expanduser())
        if log_level is not None:
            updated = replace(updated, log_level=log_level)
        return updated

    def set_logging(self) -> logging.Logger:
        """Setup logging based on configuration."""
        level = resolve_level(self.log_level)
        stderr_level = resolve_level(self.print_level)

        formatter = logging.Formatter(LOG_FORMAT)
        configure_split_stream_logging(level=level, stderr_level=stderr_level, formatter=formatter)

        return logging.getLogger('validate_json_schema')
