# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Analyzer context: full document analysis or explicit degraded mode.

When no DOM fragment is available there is nothing to join against; the
context then carries the bare action model and says so through ``mode`` and
``degraded``.  Detectors built on a degraded context can report false
positives (e.g. "no keyboard handler" when it lives in a file that was never
supplied); the flag lets them lower their own confidence.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from .actions import ActionModel, ActionNode
from .document import AnalysisScope, DocumentModel
from .merge import FileExtract, merge

logger = logging.getLogger("actiondom.scope")


class AnalysisMode(StrEnum):
    DOCUMENT = "document"
    DEGRADED = "degraded"


DEGRADED_REASON = "no DOM available; handlers in files that were not supplied are invisible"


@dataclass(frozen=True, slots=True)
class AnalyzerContext:
    mode: AnalysisMode
    scope: AnalysisScope
    document: DocumentModel | None = None
    action_model: ActionModel | None = None
    degradation_reason: str = ""

    @property
    def degraded(self) -> bool:
        return self.mode is AnalysisMode.DEGRADED

    # Degraded-mode queries, straight on the action model

    def find_by_event(self, event: str) -> list[ActionNode]:
        return self._actions().find_by_event(event)

    def find_by_selector(self, selector: str) -> list[ActionNode]:
        return self._actions().find_by_selector(selector)

    def all(self) -> list[ActionNode]:
        return self._actions().all()

    def _actions(self) -> ActionModel:
        if self.action_model is not None:
            return self.action_model
        if self.document is not None:
            return ActionModel.concat(self.document.action_models)
        return ActionModel()


def build_analyzer_context(
    extracts: Iterable[FileExtract],
    scope: AnalysisScope | str = AnalysisScope.FILE,
) -> AnalyzerContext:
    """Merge when there is DOM to merge against; otherwise return a degraded context."""
    extracts = list(extracts)
    scope = AnalysisScope(scope)
    if any(e.dom_fragment is not None and len(e.dom_fragment) for e in extracts):
        document = merge(extracts, scope=scope)
        return AnalyzerContext(mode=AnalysisMode.DOCUMENT, scope=document.effective_scope, document=document)

    models = [e.action_model for e in extracts]
    if len(models) == 1:
        model = models[0]
    else:
        model = ActionModel.concat(models, source_file="+".join(e.file for e in extracts) or "unknown")
    logger.warning("Degraded analysis over %d action model(s): %s", len(models), DEGRADED_REASON)
    return AnalyzerContext(
        mode=AnalysisMode.DEGRADED,
        scope=AnalysisScope.FILE,
        action_model=model,
        degradation_reason=DEGRADED_REASON,
    )
