"""Registry collecting step definitions and resolving step text."""

from __future__ import annotations

import dataclasses as dc
import logging
import threading
import typing as t

from cucumber_expressions.parameter_type_registry import ParameterTypeRegistry

from .errors import (
    AmbiguousStepError,
    DuplicateStepDefinitionError,
    MissingInvocableError,
    UndefinedStepError,
)
from .expressions import Dialect, PatternExpression, build_expression
from .location import Location
from .step_definition import StepDefinition

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    import collections.abc as cabc
    import re

    from .invocables import ActiveContext, Invocable

logger = logging.getLogger(__name__)

F = t.TypeVar("F", bound=t.Callable[..., t.Any])


@dc.dataclass(frozen=True, slots=True)
class StepMatch:
    """A step definition together with the arguments it matched."""

    definition: StepDefinition
    arguments: list[t.Any]
    text: str

    def invoke(self, context: ActiveContext) -> t.Any:  # noqa: ANN401
        """Run the matched definition against *context*."""
        return self.definition.invoke(self.arguments, context)


class StepRegistry:
    """Ordered collection of step definitions.

    Registration rejects definitions whose expression source duplicates one
    already held. Lookups never mutate the registry and may run concurrently
    with each other.
    """

    def __init__(
        self,
        *,
        dialect: Dialect | str = Dialect.CUCUMBER_EXPRESSION,
        parameter_types: ParameterTypeRegistry | None = None,
    ) -> None:
        self.dialect = Dialect.parse(dialect)
        self.parameter_types = (
            parameter_types if parameter_types is not None else ParameterTypeRegistry()
        )
        self._definitions: list[StepDefinition] = []
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register(
        self,
        pattern: PatternExpression | str | re.Pattern[str],
        target: Invocable | t.Callable[..., t.Any] | str | None,
        *,
        dialect: Dialect | str | None = None,
        on: object = None,
        registered_at: Location | None = None,
    ) -> StepDefinition:
        """Register *target* to run for steps matching *pattern*.

        String patterns are compiled with *dialect*, falling back to the
        registry's default. *on* chooses the receiver for method-name
        targets. The caller's location is captured unless *registered_at* is
        given.
        """
        if target is None:
            raise MissingInvocableError
        if registered_at is None:
            registered_at = Location.of_caller(1)
        expression = (
            pattern
            if isinstance(pattern, PatternExpression)
            else build_expression(
                pattern,
                dialect if dialect is not None else self.dialect,
                parameter_types=self.parameter_types,
            )
        )
        definition = StepDefinition(
            expression, target, on=on, registered_at=registered_at
        )
        with self._lock:
            for existing in self._definitions:
                if existing == definition:
                    raise DuplicateStepDefinitionError(existing, definition)
            self._definitions.append(definition)
        logger.debug(
            "Registered %s %r at %s",
            expression.dialect,
            expression.source,
            definition.file_colon_line,
        )
        return definition

    def step(
        self,
        pattern: PatternExpression | str | re.Pattern[str],
        *,
        dialect: Dialect | str | None = None,
    ) -> t.Callable[[F], F]:
        """Return a decorator registering the decorated function for *pattern*."""

        def decorator(func: F) -> F:
            self.register(
                pattern,
                func,
                dialect=dialect,
                registered_at=Location.from_callable(func),
            )
            return func

        return decorator

    # Gherkin keywords are interchangeable when matching.
    given = when = then = step

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def match(self, text: str) -> StepMatch | None:
        """Return the single match for *text*, or ``None`` when undefined.

        Raises :class:`AmbiguousStepError` when several definitions match.
        """
        matches = self._matches(text)
        if len(matches) > 1:
            raise AmbiguousStepError(text, [m.definition for m in matches])
        return matches[0] if matches else None

    def find(self, text: str) -> StepMatch:
        """Return the match for *text* or raise :class:`UndefinedStepError`."""
        found = self.match(text)
        if found is None:
            raise UndefinedStepError(text)
        return found

    def run(self, text: str, context: ActiveContext) -> t.Any:  # noqa: ANN401
        """Find the definition for *text* and invoke it against *context*."""
        return self.find(text).invoke(context)

    def _matches(self, text: str) -> list[StepMatch]:
        matches: list[StepMatch] = []
        for definition in self.definitions:
            args = definition.arguments_from(text)
            if args is not None:
                matches.append(StepMatch(definition, args, text))
        logger.debug("Step %r matched %d definition(s)", text, len(matches))
        return matches

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def definitions(self) -> tuple[StepDefinition, ...]:
        """Return the registered definitions in registration order."""
        with self._lock:
            return tuple(self._definitions)

    def to_dicts(self) -> list[dict[str, dict[str, str]]]:
        """Return the descriptor of every registered definition."""
        return [definition.to_dict() for definition in self.definitions]

    def __len__(self) -> int:
        """Return the number of registered definitions."""
        return len(self.definitions)

    def __iter__(self) -> cabc.Iterator[StepDefinition]:
        """Iterate over the registered definitions."""
        return iter(self.definitions)


__all__ = ["StepMatch", "StepRegistry"]
