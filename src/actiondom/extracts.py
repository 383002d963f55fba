# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""JSON wire format for file extracts.

Per-framework extractors (JSX, Vue SFC, Angular templates, Svelte) run
elsewhere and hand over one JSON object per source file:

    {"file": "menu.js",
     "dom":  [{"tag": "button", "attributes": {"id": "go"}, "children": [{"text": "Go"}]}],
     "html": "<button id=go>Go</button>",        # alternative to "dom"
     "actions": [{"actionType": "eventHandler", "element": {"id": "go"}, "event": "click"}]}

Shape errors raise ExtractError.  Malformed locations are not shape errors:
they load as ``None`` and become the sentinel location on merge.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from . import ElementReference, SourceLocation
from .actions import ActionModel, ActionNode, ActionType, Timing, metadata_from_mapping
from .dom import DomFragment
from .errors import ExtractError, FragmentError
from .html_fragment import parse_html_fragment
from .merge import FileExtract

logger = logging.getLogger("actiondom.extracts")

# ---------------------------------------------------------------------------
# Payload schemas
# ---------------------------------------------------------------------------


class LocationPayload(BaseModel):
    file: str | None = None
    line: int | None = None
    column: int | None = None

    def to_location(self) -> SourceLocation | None:
        if self.file is None or self.line is None or self.column is None:
            return None
        return SourceLocation(file=self.file, line=self.line, column=self.column)


class _Located(BaseModel):
    location: LocationPayload | None = None

    @field_validator("location", mode="wrap")
    @classmethod
    def _lenient_location(cls, value: Any, handler: Any) -> LocationPayload | None:
        try:
            return handler(value)
        except ValidationError:
            return None


class ElementReferencePayload(BaseModel):
    selector: str | None = None
    id: str | None = None
    binding: str | None = None

    @model_validator(mode="after")
    def _needs_one_field(self) -> ElementReferencePayload:
        if not (self.selector or self.id or self.binding):
            raise ValueError("element reference needs selector, id or binding")
        return self

    def to_reference(self) -> ElementReference:
        return ElementReference(selector=self.selector, id=self.id, binding=self.binding)


class ActionPayload(_Located):
    model_config = ConfigDict(populate_by_name=True)

    action_type: ActionType = Field(alias="actionType", description="Action node variant")
    element: ElementReferencePayload
    event: str | None = None
    handler: str | None = Field(None, description="Handler source fragment or reference")
    timing: Timing | None = None
    metadata: dict[str, Any] = Field(default_factory=dict, description="Variant metadata, passed through")

    def to_action(self) -> ActionNode:
        return ActionNode(
            action_type=self.action_type,
            element=self.element.to_reference(),
            location=self.location.to_location() if self.location else None,
            event=self.event,
            handler=self.handler,
            timing=self.timing,
            metadata=metadata_from_mapping(self.action_type, self.metadata),
        )


def _attribute_text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return str(value)
    return value


class NodePayload(_Located):
    """Element (``tag`` set) or text node (``tag`` absent)."""

    tag: str | None = None
    attributes: dict[str, str] = Field(default_factory=dict)
    text: str = ""
    children: list[NodePayload] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("attributes", mode="before")
    @classmethod
    def _scalar_attribute_values(cls, value: Any) -> Any:
        # tabindex: 0, aria-expanded: true, hidden: null
        if not isinstance(value, Mapping):
            return value
        return {name: _attribute_text(v) for name, v in value.items()}

    @model_validator(mode="after")
    def _text_nodes_are_leaves(self) -> NodePayload:
        if self.tag is None and (self.children or self.attributes):
            raise ValueError("text node cannot have children or attributes")
        return self


class ExtractPayload(BaseModel):
    file: str = Field(min_length=1, description="Source file the extract came from")
    dom: list[NodePayload] | None = None
    html: str | None = Field(None, description="Raw HTML, parsed with lxml when dom is absent")
    actions: list[ActionPayload] = Field(default_factory=list)

    @model_validator(mode="after")
    def _one_dom_source(self) -> ExtractPayload:
        if self.dom is not None and self.html is not None:
            raise ValueError("give either dom or html, not both")
        return self


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


def _add_node(fragment: DomFragment, node: NodePayload, parent: int | None) -> None:
    location = node.location.to_location() if node.location else None
    if node.tag is None:
        fragment.add_text(node.text, parent=parent, location=location)
        return
    node_id = fragment.add_element(
        node.tag,
        node.attributes,
        parent=parent,
        text=node.text,
        location=location,
        metadata=node.metadata,
    )
    for child in node.children:
        _add_node(fragment, child, node_id)


def to_file_extract(payload: ExtractPayload) -> FileExtract:
    fragment: DomFragment | None = None
    if payload.dom is not None:
        fragment = DomFragment(payload.file)
        for root in payload.dom:
            _add_node(fragment, root, None)
    elif payload.html is not None:
        fragment = parse_html_fragment(payload.html, payload.file)

    model = ActionModel((a.to_action() for a in payload.actions), source_file=payload.file)
    return FileExtract(file=payload.file, action_model=model, dom_fragment=fragment)


def load_extract(data: Mapping[str, Any], *, source: str = "") -> FileExtract:
    """Validate one extract object and convert it."""
    try:
        payload = ExtractPayload.model_validate(data)
    except ValidationError as e:
        raise ExtractError(f"invalid extract{f' in {source}' if source else ''}: {e}", source=source) from e
    try:
        return to_file_extract(payload)
    except FragmentError as e:
        raise ExtractError(f"invalid DOM in {source or payload.file}: {e}", source=source) from e


def load_extracts(path: str | Path) -> list[FileExtract]:
    """Load a JSON file holding one extract object or a list of them."""
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ExtractError(f"cannot read {path}: {e}", source=str(path)) from e
    except json.JSONDecodeError as e:
        raise ExtractError(f"{path} is not valid JSON: {e}", source=str(path)) from e

    items = raw if isinstance(raw, list) else [raw]
    extracts = []
    for i, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise ExtractError(f"{path}[{i}] is not an object", source=str(path))
        extracts.append(load_extract(item, source=f"{path}[{i}]"))
    logger.debug("Loaded %d extracts from %s", len(extracts), path)
    return extracts
