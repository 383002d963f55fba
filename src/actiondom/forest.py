# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""DOM forest assembly: many per-file fragments → one arena.

Fragments are copied in arrival order with their node ids shifted by an
offset, so structure inside each fragment is preserved and no fragment ever
points into another.  Roots keep arrival order.  Nothing is dropped and no
synthetic wrapper is created: when several fragments declare a root
``<html>``, the first is the canonical root and the others stay as extra
top-level members, reported through ``html_roots``.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from . import UNKNOWN_LOCATION, normalize_location
from .dom import ArenaView, DOMElement, DomFragment, NodeOrigin

logger = logging.getLogger("actiondom.forest")


@dataclass(frozen=True, slots=True)
class FragmentSpan:
    """Where one input fragment landed inside the forest arena."""

    index: int
    file: str
    start: int
    stop: int

    @property
    def node_ids(self) -> range:
        return range(self.start, self.stop)


class DomForest(ArenaView):
    """Immutable merged forest.

    ``all_elements`` is the pre-order flattening of element nodes over all
    roots; text nodes are reachable through ``children`` only.
    """

    def __init__(
        self,
        nodes: Sequence[DOMElement],
        spans: Sequence[FragmentSpan],
        relocated: int = 0,
    ) -> None:
        self._nodes: tuple[DOMElement, ...] = tuple(nodes)
        self.spans: tuple[FragmentSpan, ...] = tuple(spans)
        self.relocated = relocated
        self.html_roots: tuple[DOMElement, ...] = tuple(
            n for n in self._nodes if n.parent_id is None and n.is_element and n.tag == "html"
        )
        self.all_elements: tuple[DOMElement, ...] = tuple(self.iter_elements())

    def __repr__(self) -> str:
        return (
            f"DomForest(fragments={len(self.spans)}, nodes={len(self._nodes)}, "
            f"elements={len(self.all_elements)}, html_roots={len(self.html_roots)})"
        )

    @property
    def nodes(self) -> tuple[DOMElement, ...]:
        return self._nodes

    @property
    def canonical_root(self) -> DOMElement | None:
        """First root-level ``<html>`` by arrival order, if any."""
        return self.html_roots[0] if self.html_roots else None

    @property
    def has_multiple_html_roots(self) -> bool:
        return len(self.html_roots) > 1

    def span_of(self, element: DOMElement) -> FragmentSpan:
        for span in self.spans:
            if span.start <= element.node_id < span.stop:
                return span
        raise ValueError(f"{element!r} is not part of this forest")

    def fragment_elements(self, index: int) -> list[DOMElement]:
        span = self.spans[index]
        return [self._nodes[i] for i in span.node_ids if self._nodes[i].is_element]


def _copy_fragment(fragment: DomFragment, file: str, part: int, offset: int) -> tuple[list[DOMElement], int]:
    copied: list[DOMElement] = []
    relocated = 0
    for node in fragment.nodes:
        location = normalize_location(node.location)
        if location is UNKNOWN_LOCATION and node.location is not UNKNOWN_LOCATION:
            relocated += 1
        copied.append(
            dataclasses.replace(
                node,
                node_id=node.node_id + offset,
                parent_id=None if node.parent_id is None else node.parent_id + offset,
                child_ids=tuple(c + offset for c in node.child_ids),
                location=location,
                origin=NodeOrigin(file=file, local_id=node.node_id, part=part),
            )
        )
    return copied, relocated


def assemble_forest(
    fragments: Sequence[DomFragment],
    files: Sequence[str] | None = None,
    parts: Sequence[int] | None = None,
) -> DomForest | None:
    """Join *fragments* (arrival order) into one forest; None when there are no nodes.

    *files* names the extract each fragment came from (defaults to ``fragment.file``).
    *parts* gives each fragment's part number within its file (defaults to 0).
    """
    nodes: list[DOMElement] = []
    spans: list[FragmentSpan] = []
    relocated = 0
    for index, fragment in enumerate(fragments):
        file = files[index] if files is not None else fragment.file
        start = len(nodes)
        part = parts[index] if parts is not None else 0
        copied, moved = _copy_fragment(fragment, file, part, start)
        nodes.extend(copied)
        relocated += moved
        spans.append(FragmentSpan(index=index, file=file, start=start, stop=len(nodes)))

    if not nodes:
        return None

    forest = DomForest(nodes, spans, relocated=relocated)
    if forest.has_multiple_html_roots:
        logger.warning(
            "%d root-level <html> elements across fragments; keeping %s as canonical",
            len(forest.html_roots),
            forest.canonical_root.location,
        )
    if relocated:
        logger.debug("Replaced %d malformed element locations with %s", relocated, UNKNOWN_LOCATION)
    return forest
