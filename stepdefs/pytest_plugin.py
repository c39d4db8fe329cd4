"""Pytest plugin providing the ``step_registry`` and ``step_world`` fixtures."""

from __future__ import annotations

import logging
import typing as t

import pytest

from .expressions import Dialect
from .registry import StepRegistry
from .world import World

logger = logging.getLogger(__name__)

_DIALECT_CHOICES = ("cucumber", "regexp")


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line and ini options for the plugin."""
    group = parser.getgroup("stepdefs")
    group.addoption(
        "--stepdefs-dialect",
        action="store",
        dest="stepdefs_dialect",
        choices=_DIALECT_CHOICES,
        default=None,
        help=(
            "Dialect used for string step patterns registered through the "
            "step_registry fixture. Overrides the pytest.ini setting."
        ),
    )
    parser.addini(
        "stepdefs_default_dialect",
        "Default dialect ('cucumber' or 'regexp') for string step patterns.",
        default="cucumber",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register plugin-specific markers."""
    config.addinivalue_line(
        "markers",
        (
            "stepdefs(dialect: str | None = None, world: type | None = None): "
            "override the step pattern dialect or World class for a single test."
        ),
    )


class _StepDefsItem(t.Protocol):
    """pytest item carrying the world used by the test."""

    _stepdefs_world: World | None


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[t.Any]
) -> t.Generator[None, None, None]:
    """Attach the steps run by a failing test to its report."""
    del call
    outcome = yield
    rep = outcome.get_result()
    if rep.when != "call" or not rep.failed:
        return
    world = getattr(item, "_stepdefs_world", None)
    if world is None:
        return
    rep.sections.append(("stepdefs steps", _describe_usages(world)))


def _describe_usages(world: World) -> str:
    """Return the steps run against *world*, one per line."""
    if not world.step_usages:
        return "(none)"
    return "\n".join(
        f"{index}. {usage.expression} {list(usage.args)!r}"
        for index, usage in enumerate(world.step_usages, start=1)
    )


def _configured_dialect(request: pytest.FixtureRequest) -> Dialect:
    """Return the dialect for the test's registry."""
    # Priority order: marker > CLI option > INI setting
    marker = request.node.get_closest_marker("stepdefs")
    if marker is not None and marker.kwargs.get("dialect") is not None:
        return Dialect.parse(marker.kwargs["dialect"])

    config = request.config
    cli_value = config.getoption("stepdefs_dialect")
    if cli_value is not None:
        return Dialect.parse(cli_value)

    return Dialect.parse(str(config.getini("stepdefs_default_dialect")))


def _configured_world_class(request: pytest.FixtureRequest) -> type[World]:
    """Return the :class:`World` subclass requested by the marker."""
    marker = request.node.get_closest_marker("stepdefs")
    world_class = None if marker is None else marker.kwargs.get("world")
    if world_class is None:
        return World
    if not (isinstance(world_class, type) and issubclass(world_class, World)):
        msg = (
            "stepdefs marker 'world' must be a World subclass, "
            f"got {world_class!r}"
        )
        raise TypeError(msg)
    return world_class


@pytest.fixture
def step_registry(request: pytest.FixtureRequest) -> StepRegistry:
    """Provide an empty :class:`StepRegistry` using the configured dialect."""
    return StepRegistry(dialect=_configured_dialect(request))


@pytest.fixture
def step_world(request: pytest.FixtureRequest) -> t.Generator[World, None, None]:
    """Provide a fresh :class:`World` for the test."""
    world = _configured_world_class(request)()
    typed_item = t.cast("_StepDefsItem", request.node)
    typed_item._stepdefs_world = world
    try:
        yield world
    finally:
        logger.debug(
            "World for %s ran %d step(s)", request.node.nodeid, len(world.step_usages)
        )
        if getattr(typed_item, "_stepdefs_world", None) is world:
            delattr(typed_item, "_stepdefs_world")
