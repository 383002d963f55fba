# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""structlog + stdlib bridge for actiondom runs.

Library modules never configure logging; they call
``logging.getLogger("actiondom.<module>")`` and stay silent until an
application (the CLI, a detector harness) calls ``configure``.  Records from
those stdlib loggers go through the same structlog processor chain as native
structlog loggers, so run-scoped fields bound with ``bind_run`` show up on the
merge engine's own log lines.

Leaf module: no actiondom imports.
"""

from __future__ import annotations

import logging
import sys
import uuid
from typing import Any, TextIO

import structlog


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(json_output: bool) -> Any:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def configure(*, json_output: bool = False, level: str = "INFO", stream: TextIO | None = None) -> None:
    """Route every log record through structlog and write it to *stream*.

    Args:
        json_output: JSON lines instead of the console format.
        level: Root logger level name; unknown names fall back to INFO.
        stream: Destination (default: ``sys.stderr`` at call time, so stdout
            stays reserved for command output).
    """
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer(json_output)],
            foreign_pre_chain=shared,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def bind_run(**fields: Any) -> str:
    """Start a new run context: clear bound fields, bind a fresh ``run_id`` plus *fields*.

    Returns the run id.
    """
    run_id = uuid.uuid4().hex[:12]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(run_id=run_id, **fields)
    return run_id
