# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""HTML source → DomFragment, via lxml.

Stands in for a browser when building DOM fragments for tests and for the
CLI's ``html`` extracts.  lxml always builds a full ``html/head/body``
document; wrappers the source never wrote are dropped again so that a bare
``<p>hi</p>`` stays a bare fragment and does not look like a full page.
A wrapper counts as written only as a real start tag, not inside a comment,
a script or style body, or an attribute value.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

import lxml.html
from lxml import etree

from . import SourceLocation
from .dom import DomFragment
from .errors import FragmentError

logger = logging.getLogger("actiondom.html_fragment")

_WRAPPER_TAGS = ("html", "head", "body")

# Attributes whose value is a framework binding name (Vue ref="...", data-ref)
DEFAULT_BINDING_ATTRIBUTES = ("ref", "data-ref")


# Markup tokens that can hide a "<body" lookalike: comments, raw-text
# elements with their content, and start tags with quoted attribute values.
_MARKUP_TOKEN = re.compile(
    r"""
    <!--.*?(?:-->|\Z)
    | <(?P<raw>script|style|textarea|title)\b(?:[^>"']|"[^"]*"|'[^']*')*>.*?(?:</(?P=raw)\s*>|\Z)
    | <(?P<tag>[a-zA-Z][^\s/>]*)(?:[^>"']|"[^"]*"|'[^']*')*>
    """,
    re.IGNORECASE | re.DOTALL | re.VERBOSE,
)


def _declared_wrappers(html: str) -> set[str]:
    """Wrapper tags written as real start tags in *html*."""
    declared = set()
    for match in _MARKUP_TOKEN.finditer(html):
        tag = (match.group("tag") or "").lower()
        if tag in _WRAPPER_TAGS:
            declared.add(tag)
    return declared


class _Converter:
    def __init__(self, fragment: DomFragment, implied: set[str], binding_attributes: Sequence[str]) -> None:
        self.fragment = fragment
        self.implied = implied
        self.binding_attributes = binding_attributes

    def _location(self, el: lxml.html.HtmlElement) -> SourceLocation | None:
        if not el.sourceline:
            return None
        # lxml tracks lines only; column 0 means "not tracked"
        return SourceLocation(file=self.fragment.file, line=el.sourceline, column=0)

    def _text(self, text: str | None, parent: int | None) -> None:
        if text and text.strip():
            self.fragment.add_text(text, parent=parent)

    def convert(self, el: lxml.html.HtmlElement, parent: int | None) -> None:
        if not isinstance(el.tag, str):
            # comments / processing instructions; the caller emits the tail
            return

        tag = el.tag.lower()
        if tag in self.implied:
            self._text(el.text, parent)
            for child in el:
                self.convert(child, parent)
                self._text(child.tail, parent)
            return

        attributes = {str(k): str(v) for k, v in el.attrib.items()}
        metadata = {}
        for name in self.binding_attributes:
            if attributes.get(name):
                metadata["binding"] = attributes[name]
                break

        node_id = self.fragment.add_element(
            tag,
            attributes,
            parent=parent,
            location=self._location(el),
            metadata=metadata,
        )
        self._text(el.text, node_id)
        for child in el:
            self.convert(child, node_id)
            self._text(child.tail, node_id)


def parse_html_fragment(
    html: str,
    file: str = "unknown",
    *,
    binding_attributes: Sequence[str] = DEFAULT_BINDING_ATTRIBUTES,
) -> DomFragment:
    """Parse *html* (full document or fragment) into a DomFragment.

    Top-level nodes become fragment roots in source order.  Empty input gives
    an empty fragment.
    """
    fragment = DomFragment(file)
    if not html or not html.strip():
        return fragment

    try:
        parser = lxml.html.HTMLParser(recover=True, encoding="utf-8", remove_comments=True)
        doc = lxml.html.document_fromstring(html.encode("utf-8"), parser=parser)
    except (etree.ParserError, ValueError) as e:
        raise FragmentError(f"lxml parsing failed for {file}: {e}") from e

    implied = set(_WRAPPER_TAGS) - _declared_wrappers(html)
    _Converter(fragment, implied, binding_attributes).convert(doc, None)

    logger.debug("Parsed %s: %d nodes, %d roots", file, len(fragment), len(fragment.root_ids))
    return fragment
