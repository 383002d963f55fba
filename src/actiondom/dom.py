# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""DOM fragments stored as an arena of elements addressed by integer id.

Parents are non-owning ids, never object pointers, so fragments and merged
forests serialize and rebuild without reference cycles.  The only way to
attach a node is ``DomFragment.add_element`` / ``add_text``, which set the
child's ``parent_id`` and extend the parent's ``child_ids`` in one step.

Element objects are immutable snapshots.  While a fragment is being built,
adding a child replaces the parent's snapshot, so hold on to ids and look
elements up with ``fragment.get(node_id)``.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from . import SourceLocation
from .errors import FragmentError

logger = logging.getLogger("actiondom.dom")

_EMPTY: Mapping[str, Any] = MappingProxyType({})

_MAX_TREE_DEPTH = 500


class NodeType(StrEnum):
    ELEMENT = "element"
    TEXT = "text"


TEXT_TAG = "#text"


@dataclass(frozen=True, slots=True)
class NodeOrigin:
    """Stable identity of a node across merges: source file + id inside that file's fragment.

    ``part`` numbers extracts that share one file name (a SFC template and
    its script, say) in arrival order.
    """

    file: str
    local_id: int
    part: int = 0


@dataclass(frozen=True, slots=True, eq=False)
class DOMElement:
    """One structural node.

    ``metadata`` carries framework annotations (directive names, binding
    kind, ``binding`` name for ref-based lookups) and is passed through as-is.
    """

    node_id: int
    tag_name: str
    node_type: NodeType = NodeType.ELEMENT
    attributes: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    text_content: str = ""
    parent_id: int | None = None
    child_ids: tuple[int, ...] = ()
    location: SourceLocation | None = None
    metadata: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    origin: NodeOrigin | None = None

    @property
    def is_element(self) -> bool:
        return self.node_type is NodeType.ELEMENT

    @property
    def tag(self) -> str:
        """Lowercased tag name."""
        return self.tag_name.lower()

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.attributes.get(name, default)

    def __repr__(self) -> str:
        if not self.is_element:
            return f"<text #{self.node_id} {self.text_content[:20]!r}>"
        ident = f" id={self.attributes['id']!r}" if "id" in self.attributes else ""
        return f"<{self.tag_name} #{self.node_id}{ident}>"


# ── Read-only arena view ────────────────────────────────────────────


class ArenaView:
    """Navigation over an arena of DOMElement snapshots (shared by fragments and forests)."""

    _nodes: Sequence[DOMElement]

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, node_id: int) -> DOMElement:
        try:
            return self._nodes[node_id]
        except IndexError:
            raise FragmentError(f"unknown node id {node_id}") from None

    def owns(self, element: DOMElement) -> bool:
        """True when *element* is the current snapshot stored in this arena."""
        return 0 <= element.node_id < len(self._nodes) and self._nodes[element.node_id] is element

    def parent(self, element: DOMElement) -> DOMElement | None:
        if element.parent_id is None:
            return None
        return self._nodes[element.parent_id]

    def children(self, element: DOMElement) -> list[DOMElement]:
        return [self._nodes[i] for i in element.child_ids]

    def element_children(self, element: DOMElement) -> list[DOMElement]:
        return [c for c in self.children(element) if c.is_element]

    @property
    def root_ids(self) -> tuple[int, ...]:
        return tuple(n.node_id for n in self._nodes if n.parent_id is None)

    @property
    def roots(self) -> list[DOMElement]:
        return [self._nodes[i] for i in self.root_ids]

    def iter_preorder(self, start: DOMElement | None = None) -> Iterator[DOMElement]:
        """Yield nodes depth-first, parents before children, siblings in order."""
        stack = [start.node_id] if start is not None else list(reversed(self.root_ids))
        while stack:
            node = self._nodes[stack.pop()]
            yield node
            stack.extend(reversed(node.child_ids))

    def iter_elements(self, start: DOMElement | None = None) -> Iterator[DOMElement]:
        return (n for n in self.iter_preorder(start) if n.is_element)

    def text(self, element: DOMElement) -> str:
        """Own text plus all descendant text, whitespace-collapsed."""
        parts = [n.text_content for n in self.iter_preorder(element) if n.text_content]
        return " ".join(" ".join(parts).split())

    def ancestors(self, element: DOMElement) -> Iterator[DOMElement]:
        current = self.parent(element)
        while current is not None:
            yield current
            current = self.parent(current)

    def check_integrity(self) -> list[str]:
        """Return every parent/children divergence (empty list when consistent)."""
        problems: list[str] = []
        for node in self._nodes:
            if node.parent_id is not None:
                if not 0 <= node.parent_id < len(self._nodes):
                    problems.append(f"node {node.node_id}: dangling parent {node.parent_id}")
                    continue
                count = self._nodes[node.parent_id].child_ids.count(node.node_id)
                if count != 1:
                    problems.append(f"node {node.node_id}: listed {count}x by parent {node.parent_id}")
            for child_id in node.child_ids:
                if not 0 <= child_id < len(self._nodes):
                    problems.append(f"node {node.node_id}: dangling child {child_id}")
                elif self._nodes[child_id].parent_id != node.node_id:
                    problems.append(f"node {child_id}: parent_id disagrees with parent {node.node_id}")
        return problems


# ── Fragment builder ────────────────────────────────────────────────


class DomFragment(ArenaView):
    """Per-file DOM: one tree or a list of trees, built node by node."""

    def __init__(self, file: str = "unknown") -> None:
        self.file = file
        self._nodes: list[DOMElement] = []

    def __repr__(self) -> str:
        return f"DomFragment(file={self.file!r}, nodes={len(self._nodes)}, roots={len(self.root_ids)})"

    def _attach(self, node: DOMElement) -> int:
        if node.parent_id is not None:
            if not 0 <= node.parent_id < len(self._nodes):
                raise FragmentError(f"unknown parent id {node.parent_id}")
            parent = self._nodes[node.parent_id]
            if not parent.is_element:
                raise FragmentError(f"text node {node.parent_id} cannot have children")
        self._nodes.append(node)
        if node.parent_id is not None:
            parent = self._nodes[node.parent_id]
            self._nodes[node.parent_id] = dataclasses.replace(parent, child_ids=parent.child_ids + (node.node_id,))
        return node.node_id

    def add_element(
        self,
        tag_name: str,
        attributes: Mapping[str, str] | None = None,
        *,
        parent: int | None = None,
        text: str = "",
        location: SourceLocation | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> int:
        """Append an element under *parent* (or as a new root) and return its id."""
        if not tag_name:
            raise FragmentError("element needs a tag name")
        attrs = {str(k): "" if v is None else str(v) for k, v in (attributes or {}).items()}
        return self._attach(
            DOMElement(
                node_id=len(self._nodes),
                tag_name=tag_name,
                attributes=MappingProxyType(attrs),
                text_content=text,
                parent_id=parent,
                location=location,
                metadata=MappingProxyType(dict(metadata)) if metadata else _EMPTY,
            )
        )

    def add_text(self, text: str, *, parent: int | None = None, location: SourceLocation | None = None) -> int:
        return self._attach(
            DOMElement(
                node_id=len(self._nodes),
                tag_name=TEXT_TAG,
                node_type=NodeType.TEXT,
                text_content=text,
                parent_id=parent,
                location=location,
            )
        )

    @property
    def nodes(self) -> tuple[DOMElement, ...]:
        return tuple(self._nodes)

    @classmethod
    def from_tree(cls, tree: Mapping[str, Any] | Sequence[Mapping[str, Any]], file: str = "unknown") -> DomFragment:
        """Build a fragment from nested mappings.

        Element: ``{"tag", "attributes"?, "text"?, "children"?, "location"?, "metadata"?}``.
        Text node: ``{"text": "..."}`` without ``tag``.
        """
        fragment = cls(file)
        trees = [tree] if isinstance(tree, Mapping) else list(tree)
        for root in trees:
            fragment._add_tree(root, None, 0)
        return fragment

    def _add_tree(self, node: Mapping[str, Any], parent: int | None, depth: int) -> None:
        if depth > _MAX_TREE_DEPTH:
            raise FragmentError(f"tree deeper than {_MAX_TREE_DEPTH} levels")
        location = node.get("location")
        if isinstance(location, Mapping):
            location = SourceLocation(
                file=location.get("file", ""), line=location.get("line", 0), column=location.get("column", -1)
            )
        if "tag" not in node:
            self.add_text(str(node.get("text", "")), parent=parent, location=location)
            return
        node_id = self.add_element(
            node["tag"],
            node.get("attributes"),
            parent=parent,
            text=node.get("text", ""),
            location=location,
            metadata=node.get("metadata"),
        )
        for child in node.get("children", ()):
            self._add_tree(child, node_id, depth + 1)
