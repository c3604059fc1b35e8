"""Shared pytest fixtures for the klo compiler test suite."""

from __future__ import annotations

import pytest

from klo.go_toolchain import find_go


@pytest.fixture
def needs_go():
    """Skip test if no Go toolchain is available."""
    if find_go() is None:
        pytest.skip("no go toolchain available")
