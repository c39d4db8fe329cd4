"""Step definitions binding a pattern expression to a target."""

from __future__ import annotations

import typing as t

from .errors import ArityMismatchError, MissingInvocableError
from .expressions import PatternExpression, build_expression
from .invocables import DirectInvocable, create_invocable
from .location import Location

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    import re

    from .expressions import Dialect
    from .invocables import ActiveContext, Invocable


class StepDefinition:
    """A registered pattern and the behaviour it runs.

    Step definitions are immutable once constructed and may be matched from
    several threads. Two definitions are equal when their expressions have
    the same source text, whatever their targets.
    """

    def __init__(
        self,
        expression: PatternExpression | str | re.Pattern[str],
        target: Invocable | t.Callable[..., t.Any] | str | None,
        *,
        dialect: Dialect | str | None = None,
        on: object = None,
        registered_at: Location | None = None,
    ) -> None:
        """Create a step definition.

        Parameters
        ----------
        expression:
            A :class:`PatternExpression`, or pattern text compiled with
            :func:`build_expression` using *dialect*.
        target:
            A callable run with the matched arguments, or the name of a method
            sent to the receiver selected by *on*.
        on:
            Receiver option for method-name targets; see
            :func:`stepdefs.invocables.receiver_strategy`.
        registered_at:
            Where the definition was registered. Defaults to the caller of
            this constructor.
        """
        if target is None:
            raise MissingInvocableError
        if registered_at is None:
            registered_at = Location.of_caller(1)
        if not isinstance(expression, PatternExpression):
            expression = build_expression(expression, dialect)
        self._expression = expression
        self._target = create_invocable(target, on=on, registered_at=registered_at)
        self._location: Location | None = None

    @property
    def expression(self) -> PatternExpression:
        """Return the pattern expression."""
        return self._expression

    @property
    def target(self) -> Invocable:
        """Return the invocable run by :meth:`invoke`."""
        return self._target

    def arguments_from(self, step_text: str) -> list[t.Any] | None:
        """Return the arguments matched from *step_text*, or ``None``."""
        return self._expression.match(step_text)

    def invoke(self, args: t.Sequence[t.Any], context: ActiveContext) -> t.Any:  # noqa: ANN401
        """Run the target against *context* with *args*.

        An :class:`ArityMismatchError` gains a backtrace entry pointing at
        this definition before it is re-raised; all other outcomes propagate
        untouched.
        """
        func = self._target.bind(context)
        try:
            return context.run_step(str(self._expression), func, args)
        except ArityMismatchError as err:
            err.annotate(self.backtrace_line)
            raise

    @property
    def backtrace_line(self) -> str:
        """Return the synthetic backtrace entry for this definition."""
        return f"{self.location}:in '{self._expression}'"

    @property
    def location(self) -> Location:
        """Return where the step definition can be found."""
        if self._location is None:
            self._location = self._target.location
        return self._location

    @property
    def file(self) -> str:
        """Return the file holding the step definition."""
        return self.location.file

    @property
    def file_colon_line(self) -> str:
        """Return a compact location string for reports."""
        if isinstance(self._target, DirectInvocable):
            return str(self.location)
        return self._target.file_colon_line

    def to_dict(self) -> dict[str, dict[str, str]]:
        """Return the serializable descriptor used by reporting tools."""
        return self._expression.to_dict()

    def __eq__(self, other: object) -> bool:
        """Return ``True`` when *other* has the same expression source."""
        if not isinstance(other, StepDefinition):
            return NotImplemented
        return self._expression.source == other.expression.source

    def __hash__(self) -> int:
        """Hash on the expression source, consistent with equality."""
        return hash(self._expression.source)

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"StepDefinition({self._expression!r}, {self.file_colon_line})"


__all__ = ["StepDefinition"]
