# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Resolve an ElementReference against a set of DOM elements.

Rules, first applicable wins:
  1. ``ref.id``                      → ``id`` attribute equality
  2. selector ``#x``                 → same, with the stripped id
  3. selector ``.x``                 → ``x`` in whitespace-split ``class``
  4. selector ``[name]`` / ``[name="v"]`` → attribute present (and equal)
  5. any other selector              → tag name, case-insensitive
  6. nothing matched, ``ref.binding`` set → ``metadata["binding"]`` equality

Zero and many matches are normal outcomes.  Results keep candidate order, so
callers passing elements in document order get document order back.
"""

from __future__ import annotations

import re
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum

from . import ElementReference
from .dom import DOMElement

_ATTR_SELECTOR = re.compile(
    r"""^\[\s*(?P<name>[^\s=\]"']+)\s*(?:=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\]\s"']+))\s*)?\]$"""
)


class SelectorKind(StrEnum):
    ID = "id"
    CLASS = "class"
    ATTRIBUTE = "attribute"
    TAG = "tag"


@dataclass(frozen=True, slots=True)
class ParsedSelector:
    kind: SelectorKind
    name: str  # id, class token, attribute name or tag name
    value: str | None = None  # attribute value, when given


def parse_selector(selector: str) -> ParsedSelector:
    """Classify a selector string by its shape (rules 2-5)."""
    selector = selector.strip()
    if selector.startswith("#"):
        return ParsedSelector(SelectorKind.ID, selector[1:])
    if selector.startswith("."):
        return ParsedSelector(SelectorKind.CLASS, selector[1:])
    m = _ATTR_SELECTOR.match(selector)
    if m:
        value = m.group("dq")
        if value is None:
            value = m.group("sq")
        if value is None:
            value = m.group("bare")
        return ParsedSelector(SelectorKind.ATTRIBUTE, m.group("name"), value)
    return ParsedSelector(SelectorKind.TAG, selector.lower())


def class_tokens(element: DOMElement) -> list[str]:
    return element.attributes.get("class", "").split()


def matches_selector(element: DOMElement, parsed: ParsedSelector) -> bool:
    if not element.is_element:
        return False
    if parsed.kind is SelectorKind.ID:
        return element.attributes.get("id") == parsed.name
    if parsed.kind is SelectorKind.CLASS:
        return parsed.name in class_tokens(element)
    if parsed.kind is SelectorKind.ATTRIBUTE:
        if parsed.name not in element.attributes:
            return False
        return parsed.value is None or element.attributes[parsed.name] == parsed.value
    return element.tag == parsed.name


def matches_binding(element: DOMElement, binding: str) -> bool:
    return element.is_element and element.metadata.get("binding") == binding


def resolve(ref: ElementReference, candidates: Iterable[DOMElement]) -> list[DOMElement]:
    """Elements of *candidates* that *ref* points at, in candidate order."""
    candidates = list(candidates)
    matches: list[DOMElement] = []
    if ref.id:
        wanted = ParsedSelector(SelectorKind.ID, ref.id)
        matches = [e for e in candidates if matches_selector(e, wanted)]
    elif ref.selector:
        parsed = parse_selector(ref.selector)
        matches = [e for e in candidates if matches_selector(e, parsed)]
    if not matches and ref.binding:
        matches = [e for e in candidates if matches_binding(e, ref.binding)]
    return matches


# ── Precomputed lookup ──────────────────────────────────────────────


class ElementIndex:
    """Lookup tables over a fixed candidate list; ``resolve`` gives the same
    answers as the module-level ``resolve`` on that list, in the same order.
    """

    def __init__(self, candidates: Sequence[DOMElement]) -> None:
        self._candidates = [e for e in candidates if e.is_element]
        self._by_id: dict[str, list[DOMElement]] = defaultdict(list)
        self._by_class: dict[str, list[DOMElement]] = defaultdict(list)
        self._by_tag: dict[str, list[DOMElement]] = defaultdict(list)
        self._by_binding: dict[str, list[DOMElement]] = defaultdict(list)
        for element in self._candidates:
            if "id" in element.attributes:
                self._by_id[element.attributes["id"]].append(element)
            # dict.fromkeys: "a a" must not list the element twice
            for token in dict.fromkeys(class_tokens(element)):
                self._by_class[token].append(element)
            self._by_tag[element.tag].append(element)
            binding = element.metadata.get("binding")
            if isinstance(binding, str):
                self._by_binding[binding].append(element)

    def __len__(self) -> int:
        return len(self._candidates)

    def by_id(self, element_id: str) -> list[DOMElement]:
        return list(self._by_id.get(element_id, ()))

    def select(self, parsed: ParsedSelector) -> list[DOMElement]:
        if parsed.kind is SelectorKind.ID:
            return self.by_id(parsed.name)
        if parsed.kind is SelectorKind.CLASS:
            return list(self._by_class.get(parsed.name, ()))
        if parsed.kind is SelectorKind.TAG:
            return list(self._by_tag.get(parsed.name, ()))
        return [e for e in self._candidates if matches_selector(e, parsed)]

    def resolve(self, ref: ElementReference) -> list[DOMElement]:
        matches: list[DOMElement] = []
        if ref.id:
            matches = self.by_id(ref.id)
        elif ref.selector:
            matches = self.select(parse_selector(ref.selector))
        if not matches and ref.binding:
            matches = list(self._by_binding.get(ref.binding, ()))
        return matches
