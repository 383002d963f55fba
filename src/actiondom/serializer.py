# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""DocumentModel serialization: JSON summary, text report and HTML.

Three output formats:
- JSON: structured summary for programmatic consumption
- Text: compact human report (the CLI's default)
- HTML: an element subtree serialized back to markup
"""

from __future__ import annotations

import json
from html import escape
from typing import Any

from . import UNKNOWN_LOCATION, SourceLocation
from .actions import ActionNode
from .document import DocumentModel, ElementContext
from .dom import ArenaView, DOMElement
from .interactive import affordance_of

_VOID_TAGS = frozenset({"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "wbr"})


def _location(location: SourceLocation | None) -> str | None:
    if location is None or location == UNKNOWN_LOCATION:
        return None
    return str(location)


def _action_summary(action: ActionNode) -> dict[str, Any]:
    return {
        "action_type": action.action_type.value,
        "element": str(action.element),
        **({"event": action.event} if action.event else {}),
        **({"handler": action.handler} if action.handler else {}),
        **({"location": loc} if (loc := _location(action.location)) else {}),
    }


def _element_summary(document: DocumentModel, ctx: ElementContext) -> dict[str, Any]:
    element = ctx.element
    return {
        "tag": element.tag,
        **({"id": element.attributes["id"]} if "id" in element.attributes else {}),
        "role": ctx.role,
        "label": ctx.label,
        "affordance": affordance_of(element),
        "landmark": document.landmark_of(element),
        "focusable": ctx.focusable,
        "click": ctx.has_click_handler,
        "keyboard": ctx.has_keyboard_handler,
        "handlers": len(ctx.js_handlers),
        **({"location": loc} if (loc := _location(element.location)) else {}),
    }


def to_dict(document: DocumentModel) -> dict[str, Any]:
    """Summarize a DocumentModel as plain JSON-compatible data."""
    doc_ctx = document.get_document_context()
    return {
        "scope": document.scope.value,
        "effective_scope": document.effective_scope.value,
        "is_full_page": document.is_full_page,
        "degraded": document.degraded,
        "document": {
            "has_html_tag": doc_ctx.has_html_tag,
            "has_head_tag": doc_ctx.has_head_tag,
            "has_body_tag": doc_ctx.has_body_tag,
            "has_external_css": doc_ctx.has_external_css,
            "html_roots": doc_ctx.html_root_count,
        },
        "interactive": [_element_summary(document, ctx) for ctx in document.get_interactive_elements()],
        "orphaned_actions": [_action_summary(a) for a in document.orphaned_actions()],
        "meta": {
            "fragments": document.fragment_count,
            "elements": len(document.get_all_elements()),
            "actions": len(document.all_actions),
            "joins": len(document.join_index),
            "ambiguous_actions": len(document.ambiguous_actions()),
        },
    }


def to_json(document: DocumentModel, indent: int = 2) -> str:
    return json.dumps(to_dict(document), ensure_ascii=False, indent=indent)


def to_text(document: DocumentModel) -> str:
    """Human-readable report.

    Format:
        Scope: page (declared: file) | full page
        Elements: 12 | Actions: 5 | Joins: 4 | Fragments: 3

        ## Interactive
        button#go "Go" [click, keyboard]
        div "Menu" [click] (no keyboard handler)

        ## Orphaned actions
        eventHandler click -> #missing (menu.js:9:1)
    """
    lines: list[str] = []
    scope_line = f"Scope: {document.effective_scope}"
    if document.effective_scope != document.scope:
        scope_line += f" (declared: {document.scope})"
    if document.is_full_page:
        scope_line += " | full page"
    lines.append(scope_line)
    lines.append(
        f"Elements: {len(document.get_all_elements())} | Actions: {len(document.all_actions)} "
        f"| Joins: {len(document.join_index)} | Fragments: {document.fragment_count}"
    )
    if document.has_multiple_html_roots:
        lines.append(f"Warning: {len(document.html_roots)} root-level <html> elements")
    lines.append("")

    interactive = document.get_interactive_elements()
    if interactive:
        lines.append("## Interactive")
        for ctx in interactive:
            element = ctx.element
            name = element.tag + (f"#{element.attributes['id']}" if "id" in element.attributes else "")
            if ctx.label:
                name += f' "{ctx.label}"'
            flags = [f for f, on in (("click", ctx.has_click_handler), ("keyboard", ctx.has_keyboard_handler)) if on]
            line = f"{name} [{', '.join(flags)}]" if flags else name
            if ctx.click_without_keyboard:
                line += " (no keyboard handler)"
            lines.append(line)
        lines.append("")

    orphaned = document.orphaned_actions()
    if orphaned:
        lines.append("## Orphaned actions")
        for action in orphaned:
            line = f"{action.action_type}"
            if action.event:
                line += f" {action.event}"
            line += f" -> {action.element}"
            if loc := _location(action.location):
                line += f" ({loc})"
            lines.append(line)
        lines.append("")

    return "\n".join(lines).rstrip("\n")


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------


def _attrs(element: DOMElement) -> str:
    return "".join(f' {name}="{escape(value, quote=True)}"' for name, value in element.attributes.items())


def _element_html(view: ArenaView, element: DOMElement, depth: int) -> str:
    pad = "  " * depth
    if not element.is_element:
        return pad + escape(element.text_content.strip(), quote=False)

    children = view.children(element)
    if element.tag in _VOID_TAGS and not children:
        return f"{pad}<{element.tag_name}{_attrs(element)} />"
    if not children:
        text = escape(element.text_content, quote=False)
        return f"{pad}<{element.tag_name}{_attrs(element)}>{text}</{element.tag_name}>"
    inner = "\n".join(_element_html(view, child, depth + 1) for child in children)
    return f"{pad}<{element.tag_name}{_attrs(element)}>\n{inner}\n{pad}</{element.tag_name}>"


def to_html(view: ArenaView, element: DOMElement | None = None) -> str:
    """Serialize *element*'s subtree (or every root, in order) as indented HTML."""
    targets = [element] if element is not None else view.roots
    return "\n".join(_element_html(view, node, 0) for node in targets)
