# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""actiondom: cross-file action/DOM model for static accessibility analysis.

Normalizes per-file extracts from heterogeneous UI frameworks into one
document model:
- dom: merged forest of structural elements (arena + index)
- actions: imperative behaviour (event bindings, ARIA mutations, focus moves,
  portals, propagation control) joined to the elements they target
"""

from __future__ import annotations

from dataclasses import dataclass

__version__ = "0.4.0"


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Where a node came from. Provenance only, never identity."""

    file: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


UNKNOWN_LOCATION = SourceLocation(file="unknown", line=1, column=1)


def is_valid_location(location: object) -> bool:
    """True when *location* is a usable SourceLocation."""
    if not isinstance(location, SourceLocation):
        return False
    if not isinstance(location.file, str) or not location.file:
        return False
    if not isinstance(location.line, int) or location.line < 1:
        return False
    return isinstance(location.column, int) and location.column >= 0


def normalize_location(location: object) -> SourceLocation:
    """Return *location* unchanged, or the sentinel when it is malformed."""
    if is_valid_location(location):
        return location  # type: ignore[return-value]
    return UNKNOWN_LOCATION


@dataclass(frozen=True, slots=True)
class ElementReference:
    """Unresolved pointer from an action node to the element(s) it targets.

    ``binding`` is a framework name (template ref, variable) compared by
    equality only.
    """

    selector: str | None = None
    id: str | None = None
    binding: str | None = None

    def __post_init__(self) -> None:
        if not (self.selector or self.id or self.binding):
            raise ValueError("ElementReference needs at least one of selector, id, binding")

    def __str__(self) -> str:
        if self.id:
            return f"#{self.id}"
        if self.selector:
            return self.selector
        return f"@{self.binding}"
