# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for the JSON extract format and its loaders."""

from __future__ import annotations

import json

import pytest

from actiondom import UNKNOWN_LOCATION, SourceLocation
from actiondom.actions import ActionType, FocusChangeMeta, Timing
from actiondom.errors import ActionDomError, ExtractError
from actiondom.extracts import load_extract, load_extracts
from actiondom.merge import merge

PAGE = {
    "file": "page.html",
    "dom": [
        {
            "tag": "button",
            "attributes": {"id": "go"},
            "location": {"file": "page.html", "line": 3, "column": 5},
            "children": [{"text": "Go"}],
        }
    ],
}

HANDLERS = {
    "file": "menu.js",
    "actions": [
        {
            "actionType": "eventHandler",
            "element": {"id": "go"},
            "event": "click",
            "handler": "onGo",
            "location": {"file": "menu.js", "line": 9, "column": 1},
            "timing": "immediate",
            "metadata": {"framework": "vanilla", "passive": True},
        },
        {
            "actionType": "focusChange",
            "element": {"binding": "dialogRef"},
            "metadata": {"method": "focus", "hasCleanup": True},
            "location": "menu.js:12",
        },
    ],
}


class TestLoadExtract:
    def test_dom(self):
        extract = load_extract(PAGE)
        assert extract.file == "page.html"
        button = extract.dom_fragment.roots[0]
        assert button.attributes["id"] == "go"
        assert button.location == SourceLocation("page.html", 3, 5)
        assert extract.dom_fragment.text(button) == "Go"
        assert len(extract.action_model) == 0

    def test_actions(self):
        extract = load_extract(HANDLERS)
        assert extract.dom_fragment is None
        click, focus = extract.action_model.all()
        assert click.action_type is ActionType.EVENT_HANDLER
        assert click.handler == "onGo"
        assert click.timing is Timing.IMMEDIATE
        assert click.metadata.framework == "vanilla"
        assert click.metadata.extra["passive"] is True
        assert isinstance(focus.metadata, FocusChangeMeta)
        assert focus.metadata.has_cleanup is True
        assert extract.action_model.source_file == "menu.js"

    def test_scalar_attribute_values(self):
        payload = {
            "file": "a.html",
            "dom": [{"tag": "div", "attributes": {"tabindex": 0, "aria-expanded": True, "hidden": None, "data-w": 1.5}}],
        }
        div = load_extract(payload).dom_fragment.roots[0]
        assert dict(div.attributes) == {"tabindex": "0", "aria-expanded": "true", "hidden": "", "data-w": "1.5"}

    def test_nested_attribute_value_rejected(self):
        payload = {"file": "a.html", "dom": [{"tag": "div", "attributes": {"class": ["a", "b"]}}]}
        with pytest.raises(ExtractError):
            load_extract(payload)

    def test_malformed_location_loads_as_none(self):
        focus = load_extract(HANDLERS).action_model.all()[1]
        assert focus.location is None

    def test_merge_of_loaded_extracts(self):
        document = merge([load_extract(PAGE), load_extract(HANDLERS)])
        ctx = document.get_element_context(document.get_element_by_id("go"))
        assert ctx.has_click_handler
        assert document.all_actions[1].location == UNKNOWN_LOCATION

    def test_html_source(self):
        extract = load_extract({"file": "a.html", "html": "<body><p>hi</p></body>"})
        assert [e.tag for e in extract.dom_fragment.iter_elements()] == ["body", "p"]

    def test_dom_and_html_rejected(self):
        with pytest.raises(ExtractError, match="either dom or html"):
            load_extract({"file": "a.html", "dom": [], "html": "<p></p>"})

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"file": ""},
            {"file": "a.js", "actions": [{"actionType": "teleport", "element": {"id": "x"}}]},
            {"file": "a.js", "actions": [{"actionType": "eventHandler", "element": {}}]},
            {"file": "a.js", "actions": [{"actionType": "eventHandler", "element": {"id": "x"}, "timing": "later"}]},
            {"file": "a.html", "dom": [{"text": "x", "children": [{"tag": "b"}]}]},
        ],
        ids=["empty", "blank-file", "bad-type", "empty-ref", "bad-timing", "text-with-children"],
    )
    def test_invalid_payloads(self, payload):
        with pytest.raises(ExtractError):
            load_extract(payload, source="test")

    def test_error_is_actiondom_error(self):
        with pytest.raises(ActionDomError) as exc_info:
            load_extract({}, source="x.json[0]")
        assert exc_info.value.source == "x.json[0]"
        assert "x.json[0]" in str(exc_info.value)


class TestLoadExtracts:
    def test_list_file(self, tmp_path):
        path = tmp_path / "extracts.json"
        path.write_text(json.dumps([PAGE, HANDLERS]), encoding="utf-8")
        extracts = load_extracts(path)
        assert [e.file for e in extracts] == ["page.html", "menu.js"]

    def test_single_object_file(self, tmp_path):
        path = tmp_path / "page.json"
        path.write_text(json.dumps(PAGE), encoding="utf-8")
        assert len(load_extracts(str(path))) == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(ExtractError, match="cannot read"):
            load_extracts(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ExtractError, match="not valid JSON"):
            load_extracts(path)

    def test_non_object_item(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text(json.dumps([PAGE, 3]), encoding="utf-8")
        with pytest.raises(ExtractError, match=r"\[1\] is not an object"):
            load_extracts(path)
