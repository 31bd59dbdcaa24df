"""
Copyright 2025 DNAi inc.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

import os
from dataclasses import dataclass

DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_EXTRACT_DIR = "."

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def normalize_log_level(value: str | None) -> str:
    v = (value or DEFAULT_LOG_LEVEL).strip().upper()
    if v == "WARN":
        return "WARNING"
    if v in _LOG_LEVELS:
        return v
    return DEFAULT_LOG_LEVEL


@dataclass(frozen=True)
class AppConfig:
    log_level: str
    extract_dir: str


def get_config() -> AppConfig:
    extract_dir = os.path.expanduser(os.getenv("ZIPTOOLS_EXTRACT_DIR", DEFAULT_EXTRACT_DIR))

    return AppConfig(
        log_level=normalize_log_level(os.getenv("ZIPTOOLS_LOG_LEVEL")),
        extract_dir=extract_dir or DEFAULT_EXTRACT_DIR,
    )
