# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for the document context extractor, scope widening and document queries."""

from __future__ import annotations

import pytest

from actiondom.document import AnalysisScope, DocumentContext, extract_document_context
from actiondom.dom import DomFragment
from actiondom.merge import merge
from tests._actiondom_helpers import make_extract, tree


def _elements(dom):
    return list(DomFragment.from_tree(dom).iter_elements())


class TestDocumentContext:
    def test_empty(self):
        assert extract_document_context([]) == DocumentContext()

    def test_structural_tags_anywhere(self):
        ctx = extract_document_context(
            _elements(tree("div", children=[tree("html", children=[tree("head"), tree("BODY")])]))
        )
        assert ctx.has_html_tag and ctx.has_head_tag and ctx.has_body_tag

    def test_stylesheet_link(self):
        ctx = extract_document_context(_elements(tree("link", {"rel": "Preload StyleSheet", "href": "a.css"})))
        assert ctx.has_external_css

    def test_non_stylesheet_link(self):
        ctx = extract_document_context(_elements(tree("link", {"rel": "icon", "href": "a.ico"})))
        assert not ctx.has_external_css

    def test_style_element(self):
        assert extract_document_context(_elements(tree("style"))).has_external_css

    def test_component_scoped_style(self):
        ctx = extract_document_context(_elements(tree("template", component_style=True)))
        assert ctx.has_external_css

    def test_html_root_count_passed_through(self):
        assert extract_document_context([], html_root_count=2).html_root_count == 2


class TestIsFullPage:
    def test_body_without_html(self):
        document = merge([make_extract("a.html", tree("body", children=[tree("p", text="hi")]))])
        assert document.is_full_page is True
        assert document.get_document_context().has_html_tag is False

    def test_bare_paragraph(self):
        document = merge([make_extract("a.html", tree("p", text="hi"))])
        assert document.is_full_page is False

    def test_html_without_body(self):
        assert merge([make_extract("a.html", tree("html"))]).is_full_page is True

    def test_independent_of_declared_scope(self):
        document = merge([make_extract("a.html", tree("body"))], scope=AnalysisScope.FILE)
        assert document.scope is AnalysisScope.FILE
        assert document.is_full_page is True

    @pytest.mark.parametrize(
        ("dom", "declared", "effective"),
        [
            (tree("body"), "file", AnalysisScope.PAGE),
            (tree("p"), "file", AnalysisScope.FILE),
            (tree("p"), "workspace", AnalysisScope.WORKSPACE),
            (tree("p"), "page", AnalysisScope.PAGE),
        ],
    )
    def test_effective_scope(self, dom, declared, effective):
        assert merge([make_extract("a.html", dom)], scope=declared).effective_scope is effective

    def test_default_scope_is_file_and_widens(self):
        assert merge([make_extract("w.html", tree("div"))]).effective_scope is AnalysisScope.FILE
        page = merge([make_extract("a.html", tree("body"))])
        assert page.scope is AnalysisScope.FILE
        assert page.effective_scope is AnalysisScope.PAGE

    def test_unknown_scope_rejected(self):
        with pytest.raises(ValueError):
            merge([], scope="galaxy")


@pytest.fixture
def page():
    return merge(
        [
            make_extract(
                "index.html",
                tree(
                    "html",
                    children=[
                        tree("head", children=[tree("link", {"rel": "stylesheet", "href": "site.css"})]),
                        tree(
                            "body",
                            children=[
                                tree("nav", children=[tree("a", {"id": "home", "href": "/"}, text="Home")]),
                                tree("main", children=[tree("button", {"id": "open", "aria-controls": "dlg"})]),
                            ],
                        ),
                    ],
                ),
            ),
            make_extract("dialog.html", tree("div", {"id": "dlg", "role": "dialog", "aria-labelledby": "dlg-title"}, children=[tree("h2", {"id": "dlg-title"})])),
        ]
    )


class TestDocumentQueries:
    def test_document_context(self, page):
        ctx = page.get_document_context()
        assert ctx == DocumentContext(
            has_html_tag=True, has_head_tag=True, has_body_tag=True, has_external_css=True, html_root_count=1
        )

    def test_get_element_by_id(self, page):
        assert page.get_element_by_id("open").tag == "button"
        assert page.get_element_by_id("nope") is None

    def test_query_selector(self, page):
        assert page.query_selector("a").attributes["id"] == "home"
        assert page.query_selector(".none") is None
        assert [e.tag for e in page.query_selector_all("[id]")] == ["a", "button", "div", "h2"]

    def test_navigation(self, page):
        button = page.get_element_by_id("open")
        assert page.parent_of(button).tag == "main"
        assert page.children_of(page.parent_of(button)) == [button]

    def test_landmark_of(self, page):
        assert page.landmark_of(page.get_element_by_id("home")) == "navigation"
        assert page.landmark_of(page.get_element_by_id("open")) == "main"
        assert page.landmark_of(page.get_element_by_id("dlg")) is None

    def test_fragments(self, page):
        assert page.fragment_count == 2
        assert len(page.html_roots) == 1
        assert not page.has_multiple_html_roots

    def test_fragment_completeness(self, page):
        # aria-controls="dlg" points into the other fragment
        assert page.is_fragment_complete(0) is False
        assert page.is_fragment_complete(1) is True
        assert page.is_fragment_complete(5) is False

    def test_repr(self, page):
        assert repr(page) == "DocumentModel(scope=file, elements=10, actions=0, pairs=0)"


class TestMultiRootDocument:
    def test_both_fragments_retained(self):
        document = merge(
            [
                make_extract("a.html", tree("html", children=[tree("body", children=[tree("h1", {"id": "first"})])])),
                make_extract("b.html", tree("html", children=[tree("body", children=[tree("h1", {"id": "second"})])])),
            ]
        )
        assert document.has_multiple_html_roots
        assert document.get_element_by_id("first") is not None
        assert document.get_element_by_id("second") is not None
        assert document.dom.canonical_root.origin.file == "a.html"
        assert document.get_document_context().html_root_count == 2
