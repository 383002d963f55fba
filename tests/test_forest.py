# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for DOM forest assembly across fragments."""

from __future__ import annotations

import logging

from actiondom import UNKNOWN_LOCATION, SourceLocation
from actiondom.dom import DomFragment, NodeOrigin
from actiondom.forest import assemble_forest
from tests._actiondom_helpers import tree


def _fragment(file, dom):
    return DomFragment.from_tree(dom, file=file)


class TestAssembleForest:
    def test_no_fragments(self):
        assert assemble_forest([]) is None

    def test_only_empty_fragments(self):
        assert assemble_forest([DomFragment("a"), DomFragment("b")]) is None

    def test_roots_in_arrival_order(self):
        forest = assemble_forest(
            [
                _fragment("a.html", [tree("header"), tree("main")]),
                _fragment("b.html", tree("footer")),
            ]
        )
        assert [r.tag for r in forest.roots] == ["header", "main", "footer"]

    def test_structure_preserved_with_offsets(self):
        forest = assemble_forest(
            [
                _fragment("a.html", tree("ul", children=[tree("li"), tree("li")])),
                _fragment("b.html", tree("ol", children=[tree("li")])),
            ]
        )
        assert forest.check_integrity() == []
        ol = forest.roots[1]
        assert ol.node_id == 3
        assert [c.tag for c in forest.children(ol)] == ["li"]
        assert forest.parent(forest.children(ol)[0]) is ol

    def test_no_synthetic_wrapper(self):
        forest = assemble_forest([_fragment("a", tree("p")), _fragment("b", tree("p"))])
        assert [e.tag for e in forest.all_elements] == ["p", "p"]

    def test_origin_records_file_and_local_id(self):
        forest = assemble_forest(
            [_fragment("a.html", tree("div", children=[tree("span")])), _fragment("b.html", tree("em"))]
        )
        assert [e.origin for e in forest.all_elements] == [
            NodeOrigin("a.html", 0),
            NodeOrigin("a.html", 1),
            NodeOrigin("b.html", 0),
        ]

    def test_files_override(self):
        forest = assemble_forest([_fragment("inner", tree("div"))], files=["Widget.vue"])
        assert forest.all_elements[0].origin == NodeOrigin("Widget.vue", 0)

    def test_parts_keep_same_file_origins_apart(self):
        forest = assemble_forest(
            [_fragment("t", tree("div")), _fragment("s", tree("span"))],
            files=["Widget.vue", "Widget.vue"],
            parts=[0, 1],
        )
        assert [e.origin for e in forest.all_elements] == [
            NodeOrigin("Widget.vue", 0, part=0),
            NodeOrigin("Widget.vue", 0, part=1),
        ]
        assert forest.spans[0].file == "Widget.vue"

    def test_all_elements_excludes_text(self):
        forest = assemble_forest([_fragment("a", tree("p", text="hi"))])
        assert [e.tag for e in forest.all_elements] == ["p"]
        assert len(forest) == 2

    def test_spans(self):
        forest = assemble_forest([_fragment("a", tree("p", text="hi")), _fragment("b", tree("p"))])
        assert [(s.file, s.start, s.stop) for s in forest.spans] == [("a", 0, 2), ("b", 2, 3)]
        assert forest.span_of(forest.all_elements[1]).file == "b"
        assert [e.tag for e in forest.fragment_elements(0)] == ["p"]


class TestMultipleHtmlRoots:
    def test_first_html_is_canonical_and_rest_retained(self, caplog):
        first = _fragment("index.html", tree("html", children=[tree("body", children=[tree("h1")])]))
        second = _fragment("other.html", tree("html", children=[tree("body", children=[tree("h2")])]))
        with caplog.at_level(logging.WARNING, logger="actiondom.forest"):
            forest = assemble_forest([first, second])

        assert forest.has_multiple_html_roots
        assert len(forest.html_roots) == 2
        assert forest.canonical_root.origin == NodeOrigin("index.html", 0)
        assert {e.tag for e in forest.all_elements} == {"html", "body", "h1", "h2"}
        assert "root-level <html>" in caplog.text

    def test_nested_html_is_not_a_root(self):
        forest = assemble_forest([_fragment("a", tree("div", children=[tree("html")]))])
        assert forest.html_roots == ()
        assert forest.canonical_root is None

    def test_single_html_root(self):
        forest = assemble_forest([_fragment("a", tree("HTML"))])
        assert not forest.has_multiple_html_roots
        assert forest.canonical_root.tag_name == "HTML"


class TestLocations:
    def test_malformed_locations_become_sentinel(self):
        fragment = DomFragment("a.html")
        fragment.add_element("div", location=SourceLocation("a.html", 0, 1))
        fragment.add_element("span")
        fragment.add_element("p", location=SourceLocation("a.html", 3, 4))
        forest = assemble_forest([fragment])

        assert [e.location for e in forest.all_elements] == [
            UNKNOWN_LOCATION,
            UNKNOWN_LOCATION,
            SourceLocation("a.html", 3, 4),
        ]
        assert forest.relocated == 2

    def test_identical_locations_kept_as_separate_elements(self):
        fragment = DomFragment("a.html")
        same = SourceLocation("a.html", 1, 1)
        fragment.add_element("li", location=same)
        fragment.add_element("li", location=same)
        forest = assemble_forest([fragment])
        assert len(forest.all_elements) == 2
