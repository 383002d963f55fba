# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Cross-file merge engine.

Steps:
  1. Assemble the DOM forest from every extract's fragment (arrival order)
  2. Concatenate the action models; each node keeps its ``location.file``
  3. Resolve every action against the forest's elements → join index
  4. Wrap it all in an immutable DocumentModel

The merge is a barrier: it needs the complete extract list, because id and
selector resolution and multi-root detection depend on the full candidate
set.  It is total over its input: malformed locations become the sentinel,
misses and ambiguity are recorded, never raised.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from . import UNKNOWN_LOCATION, normalize_location
from .actions import ActionModel, ActionNode
from .document import AnalysisScope, CssRuleProvider, DocumentModel
from .dom import DomFragment
from .forest import assemble_forest
from .join import ActionKey, JoinedAction, JoinIndex

logger = logging.getLogger("actiondom.merge")


@dataclass(frozen=True, slots=True)
class FileExtract:
    """What a per-framework extractor produced for one source file."""

    file: str
    action_model: ActionModel = field(default_factory=ActionModel)
    dom_fragment: DomFragment | None = None


def _normalize_action(node: ActionNode) -> ActionNode:
    location = normalize_location(node.location)
    if location is node.location:
        return node
    return dataclasses.replace(node, location=location)


def _normalize_model(model: ActionModel, file: str) -> tuple[ActionModel, int]:
    nodes = [_normalize_action(n) for n in model]
    relocated = sum(1 for new, old in zip(nodes, model, strict=True) if new is not old)
    if not relocated and model.source_file == file:
        return model, 0
    return ActionModel(nodes, source_file=file), relocated


def _part_numbers(extracts: Sequence[FileExtract]) -> list[int]:
    """Arrival ordinal of each extract among extracts sharing its file name."""
    seen: dict[str, int] = {}
    parts = []
    for extract in extracts:
        parts.append(seen.get(extract.file, 0))
        seen[extract.file] = parts[-1] + 1
    return parts


def merge(
    extracts: Iterable[FileExtract],
    *,
    scope: AnalysisScope | str = AnalysisScope.FILE,
    css: Sequence[CssRuleProvider] = (),
) -> DocumentModel:
    """Join per-file extracts into one DocumentModel."""
    started = time.perf_counter()
    extracts = list(extracts)

    parts = _part_numbers(extracts)
    shared = sum(1 for p in parts if p)
    if shared:
        logger.debug("%d extracts share a file name with an earlier extract; keyed by part", shared)

    with_dom = [(e, p) for e, p in zip(extracts, parts, strict=True) if e.dom_fragment is not None]
    forest = assemble_forest(
        [e.dom_fragment for e, _ in with_dom],
        files=[e.file for e, _ in with_dom],
        parts=[p for _, p in with_dom],
    )

    models: list[ActionModel] = []
    joined: list[JoinedAction] = []
    relocated = 0
    for extract, part in zip(extracts, parts, strict=True):
        model, moved = _normalize_model(extract.action_model, extract.file)
        relocated += moved
        models.append(model)
        joined.extend(
            JoinedAction(action=node, key=ActionKey.of(node, extract.file, i, part)) for i, node in enumerate(model)
        )
    if relocated:
        logger.debug("Replaced %d malformed action locations with %s", relocated, UNKNOWN_LOCATION)

    if forest is None and extracts:
        logger.warning("No DOM fragment in %d extracts; document is degraded to action-only queries", len(extracts))
    elements = forest.all_elements if forest is not None else ()
    join_index = JoinIndex(joined, elements)

    document = DocumentModel(dom=forest, action_models=models, join_index=join_index, scope=scope, css=css)
    orphaned = len(join_index.orphaned())
    logger.info(
        "Merged %d extracts: %d elements, %d actions, %d joins, %d orphaned (%.1fms)",
        len(extracts),
        len(elements),
        len(joined),
        len(join_index),
        orphaned,
        (time.perf_counter() - started) * 1000,
    )
    return document
