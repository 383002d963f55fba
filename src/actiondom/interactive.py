# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Static interactivity signals for a single element.

Native interactivity: tag semantics (a[href], button, form controls, ...)
ARIA interactivity: explicit widget roles (button, tab, menuitem, ...)
Focusability: tabindex >= 0 or a focusable native control

These are pure functions of one element's tag and attributes; joined event
handlers are the document model's business.
"""

from __future__ import annotations

from .dom import DOMElement

# ── Role → Affordance mapping ──────────────────────────────────────────

AFFORDANCE_MAP: dict[str, str] = {
    # click
    "button": "click",
    "link": "click",
    "menuitem": "click",
    "menuitemcheckbox": "click",
    "menuitemradio": "click",
    "tab": "click",
    "treeitem": "click",
    "option": "click",
    "gridcell": "click",
    # type
    "textbox": "type",
    "searchbox": "type",
    "spinbutton": "type",
    # select
    "combobox": "select",
    "listbox": "select",
    # toggles are activated with click()
    "checkbox": "click",
    "switch": "click",
    "radio": "click",
    "slider": "click",
    "scrollbar": "click",
}

# Roles that are interactive widgets
INTERACTIVE_ROLES = frozenset(AFFORDANCE_MAP.keys())

# Roles considered landmark/region containers
LANDMARK_ROLES = frozenset(
    {
        "banner",
        "navigation",
        "main",
        "contentinfo",
        "complementary",
        "search",
        "form",
        "region",
    }
)

# Tag → implicit ARIA role
IMPLICIT_ROLES: dict[str, str] = {
    "button": "button",
    "a": "link",
    "input": "textbox",
    "textarea": "textbox",
    "select": "combobox",
    "img": "img",
    "nav": "navigation",
    "main": "main",
    "header": "banner",
    "footer": "contentinfo",
    "aside": "complementary",
    "section": "region",
    "article": "article",
    "form": "form",
    "table": "table",
    "ul": "list",
    "ol": "list",
    "li": "listitem",
    "dialog": "dialog",
    "h1": "heading",
    "h2": "heading",
    "h3": "heading",
    "h4": "heading",
    "h5": "heading",
    "h6": "heading",
}

# input[type] → implicit role, where it differs from textbox
_INPUT_ROLES: dict[str, str] = {
    "button": "button",
    "submit": "button",
    "reset": "button",
    "image": "button",
    "checkbox": "checkbox",
    "radio": "radio",
    "range": "slider",
    "number": "spinbutton",
    "search": "searchbox",
}

_NATIVE_CONTROLS = frozenset({"button", "input", "select", "textarea", "summary"})
_FOCUSABLE_TAGS = frozenset({"a", "button", "input", "select", "textarea"})
_LABEL_FALLBACK_TAGS = frozenset({"input", "button"})


def _is_disabled(element: DOMElement) -> bool:
    value = element.attributes.get("disabled")
    return value is not None and value.lower() != "false"


def parse_tabindex(element: DOMElement) -> int | None:
    raw = element.attributes.get("tabindex")
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def is_natively_interactive(element: DOMElement) -> bool:
    """Tag semantics alone make the element operable."""
    if not element.is_element:
        return False
    tag = element.tag
    if tag in ("a", "area"):
        return "href" in element.attributes
    if tag == "input":
        return element.attributes.get("type", "").lower() != "hidden"
    if tag in _NATIVE_CONTROLS:
        return True
    if tag in ("audio", "video"):
        return "controls" in element.attributes
    return False


def explicit_role(element: DOMElement) -> str | None:
    """First token of the ``role`` attribute, lowercased."""
    tokens = element.attributes.get("role", "").split()
    return tokens[0].lower() if tokens else None


def has_interactive_role(element: DOMElement) -> bool:
    return element.is_element and explicit_role(element) in INTERACTIVE_ROLES


def implicit_role(element: DOMElement) -> str | None:
    tag = element.tag
    if tag == "input":
        return _INPUT_ROLES.get(element.attributes.get("type", "").lower(), "textbox")
    if tag == "a" and "href" not in element.attributes:
        return None
    return IMPLICIT_ROLES.get(tag)


def role_of(element: DOMElement) -> str | None:
    """Explicit role if present, else the implicit role of the tag."""
    if not element.is_element:
        return None
    return explicit_role(element) or implicit_role(element)


def is_focusable(element: DOMElement) -> bool:
    """tabindex >= 0, or a focusable control (links need href; disabled controls are skipped).

    An unparseable tabindex is ignored, as browsers do.
    """
    if not element.is_element:
        return False
    tabindex = parse_tabindex(element)
    if tabindex is not None:
        return tabindex >= 0
    tag = element.tag
    if tag not in _FOCUSABLE_TAGS:
        return False
    if tag == "a":
        return "href" in element.attributes
    return not _is_disabled(element)


def affordance_of(element: DOMElement) -> str | None:
    role = role_of(element)
    return AFFORDANCE_MAP.get(role) if role else None


def accessible_label(element: DOMElement, text: str = "") -> str | None:
    """Computed label: aria-label, aria-labelledby placeholder, text, alt, value.

    *text* is the element's descendant text; the caller owns tree access.
    """
    attrs = element.attributes
    if attrs.get("aria-label", "").strip():
        return attrs["aria-label"].strip()
    if attrs.get("aria-labelledby", "").strip():
        return f"[labelledby: {attrs['aria-labelledby'].strip()}]"
    if text.strip():
        return text.strip()
    tag = element.tag
    if tag == "img":
        return attrs.get("alt") or None
    if tag in _LABEL_FALLBACK_TAGS:
        return attrs.get("value") or attrs.get("placeholder") or None
    return attrs.get("title") or None
