# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Environment-driven settings.

ACTIONDOM_LOG_LEVEL   root log level (default INFO)
ACTIONDOM_LOG_JSON    "1"/"true"/"yes" for JSON log lines (default off)
ACTIONDOM_SCOPE       declared analysis scope: file | workspace | page (default file)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .document import AnalysisScope
from .errors import ConfigError

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"", "0", "false", "no", "off"})
_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}", variable=name)


@dataclass(frozen=True, slots=True)
class Settings:
    log_level: str = "INFO"
    log_json: bool = False
    scope: AnalysisScope = AnalysisScope.FILE

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ

        level = env.get("ACTIONDOM_LOG_LEVEL", "INFO").strip().upper() or "INFO"
        if level not in _LEVELS:
            raise ConfigError(f"ACTIONDOM_LOG_LEVEL must be one of {sorted(_LEVELS)}", variable="ACTIONDOM_LOG_LEVEL")

        log_json = _parse_bool("ACTIONDOM_LOG_JSON", env.get("ACTIONDOM_LOG_JSON", ""))

        raw_scope = env.get("ACTIONDOM_SCOPE", "").strip().lower() or AnalysisScope.FILE.value
        try:
            scope = AnalysisScope(raw_scope)
        except ValueError:
            raise ConfigError(
                f"ACTIONDOM_SCOPE must be one of {[s.value for s in AnalysisScope]}, got {raw_scope!r}",
                variable="ACTIONDOM_SCOPE",
            ) from None

        return cls(log_level=level, log_json=log_json, scope=scope)
