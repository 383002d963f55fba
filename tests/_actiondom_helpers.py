# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Builders shared by the actiondom tests."""

from __future__ import annotations

from typing import Any

from actiondom import ElementReference, SourceLocation
from actiondom.actions import ActionModel, ActionNode, ActionType
from actiondom.dom import DomFragment
from actiondom.merge import FileExtract


def tree(tag: str, attributes: dict[str, str] | None = None, *, text: str = "", children=(), **metadata: Any) -> dict:
    """Nested mapping accepted by ``DomFragment.from_tree``."""
    node: dict[str, Any] = {"tag": tag, "attributes": attributes or {}, "children": list(children)}
    if text:
        node["children"].insert(0, {"text": text})
    if metadata:
        node["metadata"] = metadata
    return node


def loc(file: str = "app.js", line: int = 1, column: int = 1) -> SourceLocation:
    return SourceLocation(file=file, line=line, column=column)


def action(
    event: str | None = "click",
    *,
    id: str | None = None,
    selector: str | None = None,
    binding: str | None = None,
    action_type: ActionType | str = ActionType.EVENT_HANDLER,
    file: str = "app.js",
    line: int = 1,
    **kwargs: Any,
) -> ActionNode:
    return ActionNode(
        action_type=action_type,
        element=ElementReference(selector=selector, id=id, binding=binding),
        event=event,
        location=kwargs.pop("location", loc(file, line)),
        **kwargs,
    )


def make_extract(file: str, dom: dict | list | None = None, actions=()) -> FileExtract:
    fragment = DomFragment.from_tree(dom, file=file) if dom is not None else None
    return FileExtract(file=file, action_model=ActionModel(actions, source_file=file), dom_fragment=fragment)


def html(body: str, head: str = "") -> str:
    """Wrap *body* in a minimal full document."""
    return f"<html><head>{head}</head><body>{body}</body></html>"
