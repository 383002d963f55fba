# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import actiondom  # noqa: F401
except ImportError:
    raise ImportError("actiondom is not installed. Run: pip install -e '.[dev]'") from None

import pytest

from tests._actiondom_helpers import make_extract, tree


@pytest.fixture
def button_page():
    """File A: a page fragment holding ``<button id="go">``."""
    return make_extract(
        "page.html",
        tree("body", children=[tree("button", {"id": "go"}, text="Go"), tree("div", {"class": "menu"})]),
    )


@pytest.fixture(autouse=True)
def _clean_actiondom_env(monkeypatch):
    """Settings come from the environment; keep the developer's shell out of tests."""
    for name in ("ACTIONDOM_LOG_LEVEL", "ACTIONDOM_LOG_JSON", "ACTIONDOM_SCOPE"):
        monkeypatch.delenv(name, raising=False)
