# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Per-file action model: action nodes extracted from one source file.

An action node is a unit of imperative UI behaviour (event binding,
attribute/ARIA mutation, focus transfer, portal render, propagation control)
pointing at its target through an unresolved ElementReference.

Metadata is a tagged union: each action type has its own payload class with
typed fields plus an ``extra`` mapping for keys the extractor added that this
package does not know about.  Nothing here interprets the payload.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Union

from . import ElementReference, SourceLocation

# ── Enums ───────────────────────────────────────────────────────────


class ActionType(StrEnum):
    """Action node variants."""

    EVENT_HANDLER = "eventHandler"
    DOM_MANIPULATION = "domManipulation"
    ARIA_STATE_CHANGE = "ariaStateChange"
    FOCUS_CHANGE = "focusChange"
    PORTAL = "portal"
    EVENT_PROPAGATION = "eventPropagation"


class Timing(StrEnum):
    """When the action runs relative to the triggering code."""

    IMMEDIATE = "immediate"
    DEFERRED = "deferred"
    DELAYED = "delayed"  # setTimeout / requestAnimationFrame
    CONDITIONAL = "conditional"


KEYBOARD_EVENTS = frozenset({"keydown", "keypress", "keyup"})

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def _frozen(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    if not mapping:
        return _EMPTY
    return MappingProxyType(dict(mapping))


# ── Per-variant metadata ────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class EventHandlerMeta:
    framework: str | None = None
    synthetic: bool = False  # React synthetic event
    capture: bool = False
    extra: Mapping[str, Any] = field(default_factory=lambda: _EMPTY, hash=False)


@dataclass(frozen=True, slots=True)
class DomManipulationMeta:
    framework: str | None = None
    method: str | None = None  # setAttribute, classList.add, removeChild, ...
    attribute: str | None = None
    value: Any = None
    extra: Mapping[str, Any] = field(default_factory=lambda: _EMPTY, hash=False)


@dataclass(frozen=True, slots=True)
class AriaStateChangeMeta:
    framework: str | None = None
    attribute: str | None = None  # aria-expanded, aria-selected, ...
    value: Any = None
    extra: Mapping[str, Any] = field(default_factory=lambda: _EMPTY, hash=False)


@dataclass(frozen=True, slots=True)
class FocusChangeMeta:
    framework: str | None = None
    method: str | None = None  # focus | blur
    has_cleanup: bool = False  # focus restored on teardown (effect cleanup, onDestroy)
    extra: Mapping[str, Any] = field(default_factory=lambda: _EMPTY, hash=False)


@dataclass(frozen=True, slots=True)
class PortalMeta:
    framework: str | None = None
    container: str | None = None  # render target, e.g. "document.body"
    extra: Mapping[str, Any] = field(default_factory=lambda: _EMPTY, hash=False)


@dataclass(frozen=True, slots=True)
class EventPropagationMeta:
    framework: str | None = None
    method: str | None = None  # stopPropagation | stopImmediatePropagation | preventDefault
    extra: Mapping[str, Any] = field(default_factory=lambda: _EMPTY, hash=False)


ActionMetadata = Union[
    EventHandlerMeta,
    DomManipulationMeta,
    AriaStateChangeMeta,
    FocusChangeMeta,
    PortalMeta,
    EventPropagationMeta,
]

METADATA_TYPES: dict[ActionType, type] = {
    ActionType.EVENT_HANDLER: EventHandlerMeta,
    ActionType.DOM_MANIPULATION: DomManipulationMeta,
    ActionType.ARIA_STATE_CHANGE: AriaStateChangeMeta,
    ActionType.FOCUS_CHANGE: FocusChangeMeta,
    ActionType.PORTAL: PortalMeta,
    ActionType.EVENT_PROPAGATION: EventPropagationMeta,
}

# Extractor key spellings (camelCase from the JS/TS extractors) → field name
_KEY_ALIASES = {"hasCleanup": "has_cleanup"}


def metadata_from_mapping(action_type: ActionType | str, raw: Mapping[str, Any] | None) -> ActionMetadata:
    """Build the typed payload for *action_type* from a free-form mapping.

    Known keys become typed fields; everything else lands in ``extra``.
    """
    meta_cls = METADATA_TYPES[ActionType(action_type)]
    known = {name for name in meta_cls.__dataclass_fields__ if name != "extra"}
    kwargs: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in (raw or {}).items():
        name = _KEY_ALIASES.get(key, key)
        if name in known:
            kwargs[name] = value
        else:
            extra[key] = value
    if "synthetic" in kwargs:
        kwargs["synthetic"] = bool(kwargs["synthetic"])
    if "capture" in kwargs:
        kwargs["capture"] = bool(kwargs["capture"])
    if "has_cleanup" in kwargs:
        kwargs["has_cleanup"] = bool(kwargs["has_cleanup"])
    return meta_cls(**kwargs, extra=_frozen(extra))


# ── Action node ─────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True, eq=False)
class ActionNode:
    """One extracted action.

    Identity is object identity: two nodes with equal fields (even equal
    locations) are independent entities.
    """

    action_type: ActionType
    element: ElementReference
    location: SourceLocation | None = None
    event: str | None = None
    handler: str | None = None  # source fragment of the handler
    timing: Timing | None = None
    metadata: ActionMetadata | None = None

    def __post_init__(self) -> None:
        action_type = ActionType(self.action_type)
        object.__setattr__(self, "action_type", action_type)
        if self.timing is not None:
            object.__setattr__(self, "timing", Timing(self.timing))
        expected = METADATA_TYPES[action_type]
        if self.metadata is None:
            object.__setattr__(self, "metadata", expected())
        elif not isinstance(self.metadata, expected):
            raise ValueError(
                f"{action_type} action needs {expected.__name__} metadata, got {type(self.metadata).__name__}"
            )

    @property
    def is_event_handler(self) -> bool:
        return self.action_type is ActionType.EVENT_HANDLER

    @property
    def is_click_handler(self) -> bool:
        return self.is_event_handler and self.event == "click"

    @property
    def is_keyboard_handler(self) -> bool:
        return self.is_event_handler and self.event in KEYBOARD_EVENTS

    @property
    def file(self) -> str | None:
        return self.location.file if self.location is not None else None


# ── Action model ────────────────────────────────────────────────────


class ActionModel:
    """Ordered, read-only collection of action nodes from one file or fragment."""

    __slots__ = ("_nodes", "source_file")

    def __init__(self, nodes: Iterable[ActionNode] = (), source_file: str = "unknown") -> None:
        self._nodes: tuple[ActionNode, ...] = tuple(nodes)
        self.source_file = source_file

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[ActionNode]:
        return iter(self._nodes)

    def __repr__(self) -> str:
        return f"ActionModel(source_file={self.source_file!r}, nodes={len(self._nodes)})"

    def all(self) -> list[ActionNode]:
        return list(self._nodes)

    def find_by_event(self, event: str) -> list[ActionNode]:
        """Actions bound to *event*, whatever their type."""
        return [n for n in self._nodes if n.event == event]

    def find_by_selector(self, selector: str) -> list[ActionNode]:
        """Actions whose reference spells *selector* exactly.

        ``#x`` also matches references that carry ``id="x"``.
        """
        ref_id = selector[1:] if selector.startswith("#") else None
        return [
            n
            for n in self._nodes
            if n.element.selector == selector or (ref_id is not None and n.element.id == ref_id)
        ]

    def find_by_binding(self, binding: str) -> list[ActionNode]:
        return [n for n in self._nodes if n.element.binding == binding]

    def find_by_action_type(self, action_type: ActionType | str) -> list[ActionNode]:
        wanted = ActionType(action_type)
        return [n for n in self._nodes if n.action_type is wanted]

    def find_event_handlers(self, event: str) -> list[ActionNode]:
        return [n for n in self._nodes if n.is_event_handler and n.event == event]

    def event_handlers(self) -> list[ActionNode]:
        return self.find_by_action_type(ActionType.EVENT_HANDLER)

    def focus_actions(self) -> list[ActionNode]:
        return self.find_by_action_type(ActionType.FOCUS_CHANGE)

    def aria_actions(self) -> list[ActionNode]:
        return self.find_by_action_type(ActionType.ARIA_STATE_CHANGE)

    @classmethod
    def concat(cls, models: Iterable[ActionModel], source_file: str = "merged") -> ActionModel:
        """One model holding every node of *models*, in order."""
        return cls((node for model in models for node in model), source_file=source_file)
