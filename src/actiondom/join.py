# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Join index: which action nodes target which merged elements.

Built once per merge by resolving every action's ElementReference against
the forest's elements in document order.  Pair membership is expressed with
stable keys (origin file, part, local position and what the action is) so two
merges of the same extracts in different file orders compare equal, and
merges of different actions do not.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from types import MappingProxyType

from .actions import ActionNode, ActionType
from .dom import DOMElement, NodeOrigin
from .resolver import ElementIndex


@dataclass(frozen=True, slots=True)
class ActionKey:
    """Stable identity of an action: extract file + position inside its action model.

    ``action_type`` and ``event`` keep keys of different actions apart when
    they sit at the same position of same-named extracts in two merges.
    """

    file: str
    position: int
    action_type: ActionType
    event: str | None = None
    part: int = 0

    @classmethod
    def of(cls, node: ActionNode, file: str, position: int, part: int = 0) -> ActionKey:
        return cls(file=file, position=position, action_type=node.action_type, event=node.event, part=part)


@dataclass(frozen=True, slots=True)
class JoinedAction:
    action: ActionNode
    key: ActionKey


class JoinIndex:
    """Resolved (element, action) pairs.  Read-only after construction."""

    def __init__(self, actions: Sequence[JoinedAction], elements: Sequence[DOMElement]) -> None:
        self._actions: tuple[JoinedAction, ...] = tuple(actions)
        self._position = {id(j.action): i for i, j in enumerate(self._actions)}
        index = ElementIndex(elements)
        targets: list[tuple[DOMElement, ...]] = []
        by_element: dict[int, list[ActionNode]] = {}
        for joined in self._actions:
            matches = tuple(index.resolve(joined.action.element))
            targets.append(matches)
            for element in matches:
                by_element.setdefault(element.node_id, []).append(joined.action)
        self._targets: tuple[tuple[DOMElement, ...], ...] = tuple(targets)
        self._by_element = MappingProxyType({k: tuple(v) for k, v in by_element.items()})

    def __len__(self) -> int:
        """Number of (element, action) pairs."""
        return sum(len(t) for t in self._targets)

    @property
    def actions(self) -> tuple[ActionNode, ...]:
        return tuple(j.action for j in self._actions)

    def actions_for(self, element: DOMElement) -> tuple[ActionNode, ...]:
        return self._by_element.get(element.node_id, ())

    def targets_of(self, action: ActionNode) -> tuple[DOMElement, ...]:
        position = self._position.get(id(action))
        if position is None:
            return ()
        return self._targets[position]

    def orphaned(self) -> list[ActionNode]:
        """Actions whose reference matched no element."""
        return [j.action for j, t in zip(self._actions, self._targets, strict=True) if not t]

    def ambiguous(self) -> list[ActionNode]:
        """Actions joined to more than one element."""
        return [j.action for j, t in zip(self._actions, self._targets, strict=True) if len(t) > 1]

    def pairs(self) -> frozenset[tuple[NodeOrigin | None, ActionKey]]:
        """Order-independent membership view of the index."""
        return frozenset(
            (element.origin, joined.key)
            for joined, matches in zip(self._actions, self._targets, strict=True)
            for element in matches
        )
