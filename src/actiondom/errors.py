# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""actiondom exception hierarchy.

All actiondom-specific errors inherit from ActionDomError, allowing callers
to catch the base class for any failure or specific subclasses for targeted
handling.  The merge engine itself is total and raises none of these.
"""

from __future__ import annotations


class ActionDomError(Exception):
    """Base exception for all actiondom errors."""


class ExtractError(ActionDomError):
    """A file extract payload could not be loaded."""

    def __init__(self, message: str, *, source: str = "") -> None:
        super().__init__(message)
        self.source = source


class FragmentError(ActionDomError):
    """Invalid arena operation while building a DOM fragment."""


class ConfigError(ActionDomError):
    """Invalid configuration value."""

    def __init__(self, message: str, *, variable: str = "") -> None:
        super().__init__(message)
        self.variable = variable
