"""Global test configuration and shared fixtures."""

from __future__ import annotations

import logging
import typing as t

import pytest

pytest_plugins = ("stepdefs.pytest_plugin", "pytester")


@pytest.fixture(autouse=True)
def stepdefs_debug_logging(
    caplog: pytest.LogCaptureFixture,
) -> t.Generator[None, None, None]:
    """Capture stepdefs debug logs so failing tests show dispatch details."""
    with caplog.at_level(logging.DEBUG, logger="stepdefs"):
        yield
