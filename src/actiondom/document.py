# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Document model: the merged, read-only view detectors query.

Owns the merged DOM forest (None when no structural elements were supplied),
the per-file action models and the join index.  Everything detectors read is
derived from those three:

- ElementContext: handlers, CSS rules, interactivity flags for one element
- DocumentContext: structural completeness (html/head/body, external CSS)
- is_full_page / effective_scope: scope widening from structural evidence

A new merge produces a new DocumentModel; nothing here mutates after
construction, so instances can be shared between detector threads.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from .actions import ActionModel, ActionNode
from .dom import DOMElement
from .forest import DomForest
from .interactive import (
    LANDMARK_ROLES,
    accessible_label,
    has_interactive_role,
    is_focusable,
    is_natively_interactive,
    role_of,
)
from .join import JoinIndex
from .resolver import matches_selector, parse_selector

logger = logging.getLogger("actiondom.document")

# Element metadata keys that mark an element as flagged by an upstream pass
ISSUE_METADATA_KEYS = ("issues", "flagged")

# Element metadata key set by extractors on component-scoped styles
# (Vue/Svelte SFC <style>), whose computed values are opaque here
COMPONENT_STYLE_KEY = "component_style"

_ARIA_REFERENCE_ATTRS = ("aria-labelledby", "aria-describedby", "aria-controls")


class AnalysisScope(StrEnum):
    """Caller-declared analysis scope."""

    FILE = "file"
    WORKSPACE = "workspace"
    PAGE = "page"


# ── Derived views ───────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class CssDeclaration:
    property: str
    value: str


class CssRuleProvider(Protocol):
    """External CSS collaborator; cascade resolution is not done here."""

    def rules_for(self, element: DOMElement) -> Sequence[CssDeclaration]: ...


@dataclass(frozen=True, slots=True)
class ElementContext:
    element: DOMElement
    js_handlers: tuple[ActionNode, ...]
    css_rules: tuple[CssDeclaration, ...]
    interactive: bool
    has_click_handler: bool
    has_keyboard_handler: bool
    focusable: bool
    role: str | None
    label: str | None

    @property
    def click_without_keyboard(self) -> bool:
        return self.has_click_handler and not self.has_keyboard_handler


@dataclass(frozen=True, slots=True)
class DocumentContext:
    has_html_tag: bool = False
    has_head_tag: bool = False
    has_body_tag: bool = False
    has_external_css: bool = False
    html_root_count: int = 0


def _is_stylesheet_link(element: DOMElement) -> bool:
    rel = element.attributes.get("rel", "").lower().split()
    return element.tag == "link" and "stylesheet" in rel


def extract_document_context(elements: Iterable[DOMElement], html_root_count: int = 0) -> DocumentContext:
    """Single pass over merged elements collecting structural facts."""
    has_html = has_head = has_body = has_css = False
    for element in elements:
        tag = element.tag
        if tag == "html":
            has_html = True
        elif tag == "head":
            has_head = True
        elif tag == "body":
            has_body = True
        if not has_css and (
            tag == "style" or _is_stylesheet_link(element) or bool(element.metadata.get(COMPONENT_STYLE_KEY))
        ):
            has_css = True
    return DocumentContext(
        has_html_tag=has_html,
        has_head_tag=has_head,
        has_body_tag=has_body,
        has_external_css=has_css,
        html_root_count=html_root_count,
    )


def _has_issue_metadata(element: DOMElement) -> bool:
    return any(element.metadata.get(key) for key in ISSUE_METADATA_KEYS)


def _same_node(a: DOMElement, b: DOMElement) -> bool:
    return (
        a.node_type is b.node_type
        and a.tag_name == b.tag_name
        and a.text_content == b.text_content
        and len(a.child_ids) == len(b.child_ids)
        and dict(a.attributes) == dict(b.attributes)
    )


# ── Document model ──────────────────────────────────────────────────


class DocumentModel:
    """Merged document.  Build with ``actiondom.merge.merge``."""

    def __init__(
        self,
        *,
        dom: DomForest | None,
        action_models: Sequence[ActionModel],
        join_index: JoinIndex,
        scope: AnalysisScope = AnalysisScope.FILE,
        css: Sequence[CssRuleProvider] = (),
    ) -> None:
        self.dom = dom
        self.action_models: tuple[ActionModel, ...] = tuple(action_models)
        self.scope = AnalysisScope(scope)
        self._join = join_index
        self._css: tuple[CssRuleProvider, ...] = tuple(css)
        self._by_origin = {e.origin: e for e in self.get_all_elements() if e.origin is not None}
        self._document_context = extract_document_context(
            self.get_all_elements(), len(dom.html_roots) if dom is not None else 0
        )

    def __repr__(self) -> str:
        return (
            f"DocumentModel(scope={self.scope}, elements={len(self.get_all_elements())}, "
            f"actions={len(self._join.actions)}, pairs={len(self._join)})"
        )

    # ── Elements ────────────────────────────────────────────────

    def get_all_elements(self) -> tuple[DOMElement, ...]:
        """Every element node, document order (fragment arrival order, then pre-order)."""
        if self.dom is None:
            return ()
        return self.dom.all_elements

    def _own(self, element: DOMElement) -> DOMElement:
        if self.dom is not None and self.dom.owns(element):
            return element
        # Same extracts merged again: match by origin, then by content
        own = self._by_origin.get(element.origin) if element.origin is not None else None
        if own is None or not _same_node(own, element):
            raise ValueError(f"{element!r} does not belong to this document")
        return own

    def get_element_context(self, element: DOMElement) -> ElementContext:
        element = self._own(element)
        handlers = self._join.actions_for(element)
        css_rules = tuple(rule for provider in self._css for rule in provider.rules_for(element))
        label_text = self.dom.text(element) if self.dom is not None else ""
        return ElementContext(
            element=element,
            js_handlers=handlers,
            css_rules=css_rules,
            interactive=is_natively_interactive(element) or has_interactive_role(element) or bool(handlers),
            has_click_handler=any(h.is_click_handler for h in handlers),
            has_keyboard_handler=any(h.is_keyboard_handler for h in handlers),
            focusable=is_focusable(element),
            role=role_of(element),
            label=accessible_label(element, label_text),
        )

    def get_interactive_elements(self) -> list[ElementContext]:
        contexts = (self.get_element_context(e) for e in self.get_all_elements())
        return [ctx for ctx in contexts if ctx.interactive]

    def get_elements_with_issues(self) -> list[ElementContext]:
        """Elements an upstream pass flagged through metadata; nothing is judged here."""
        return [self.get_element_context(e) for e in self.get_all_elements() if _has_issue_metadata(e)]

    # ── Document-level facts ────────────────────────────────────

    def get_document_context(self) -> DocumentContext:
        return self._document_context

    @property
    def degraded(self) -> bool:
        """True when no extract supplied DOM; only action queries are meaningful."""
        return self.dom is None

    @property
    def is_full_page(self) -> bool:
        """Structural evidence of a full page, regardless of declared scope."""
        ctx = self._document_context
        return ctx.has_html_tag or ctx.has_body_tag

    @property
    def effective_scope(self) -> AnalysisScope:
        """Declared scope, widened to PAGE when the sources already form a full page."""
        return AnalysisScope.PAGE if self.is_full_page else self.scope

    # ── Actions ─────────────────────────────────────────────────

    @property
    def all_actions(self) -> tuple[ActionNode, ...]:
        return self._join.actions

    @property
    def join_index(self) -> JoinIndex:
        return self._join

    def actions_for(self, element: DOMElement) -> tuple[ActionNode, ...]:
        return self._join.actions_for(self._own(element))

    def targets_of(self, action: ActionNode) -> tuple[DOMElement, ...]:
        return self._join.targets_of(action)

    def orphaned_actions(self) -> list[ActionNode]:
        """Actions whose reference resolved to nothing ("orphaned handlers")."""
        return self._join.orphaned()

    def ambiguous_actions(self) -> list[ActionNode]:
        return self._join.ambiguous()

    # ── Queries ─────────────────────────────────────────────────

    def get_element_by_id(self, element_id: str) -> DOMElement | None:
        for element in self.get_all_elements():
            if element.attributes.get("id") == element_id:
                return element
        return None

    def query_selector_all(self, selector: str) -> list[DOMElement]:
        parsed = parse_selector(selector)
        return [e for e in self.get_all_elements() if matches_selector(e, parsed)]

    def query_selector(self, selector: str) -> DOMElement | None:
        matches = self.query_selector_all(selector)
        return matches[0] if matches else None

    def parent_of(self, element: DOMElement) -> DOMElement | None:
        element = self._own(element)
        return self.dom.parent(element) if self.dom is not None else None

    def children_of(self, element: DOMElement) -> list[DOMElement]:
        element = self._own(element)
        return self.dom.children(element) if self.dom is not None else []

    def landmark_of(self, element: DOMElement) -> str | None:
        """Role of the nearest landmark ancestor (or the element itself)."""
        element = self._own(element)
        if self.dom is None:
            return None
        for node in (element, *self.dom.ancestors(element)):
            role = role_of(node)
            if role in LANDMARK_ROLES:
                return role
        return None

    # ── Fragments ───────────────────────────────────────────────

    @property
    def fragment_count(self) -> int:
        return len(self.dom.spans) if self.dom is not None else 0

    @property
    def html_roots(self) -> tuple[DOMElement, ...]:
        return self.dom.html_roots if self.dom is not None else ()

    @property
    def has_multiple_html_roots(self) -> bool:
        return len(self.html_roots) > 1

    def is_fragment_complete(self, index: int) -> bool:
        """True when every ARIA id reference in fragment *index* resolves inside it."""
        if self.dom is None or not 0 <= index < len(self.dom.spans):
            return False
        elements = self.dom.fragment_elements(index)
        ids = {e.attributes["id"] for e in elements if "id" in e.attributes}
        for element in elements:
            for attr in _ARIA_REFERENCE_ATTRS:
                for ref_id in element.attributes.get(attr, "").split():
                    if ref_id not in ids:
                        return False
        return True
