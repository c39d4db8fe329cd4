"""Pattern expressions that turn step text into ordered arguments."""

from __future__ import annotations

import enum
import re
import typing as t

from cucumber_expressions.expression import (
    CucumberExpression as _LibraryCucumberExpression,
)
from cucumber_expressions.parameter_type_registry import ParameterTypeRegistry

_FLAG_LETTERS: tuple[tuple[re.RegexFlag, str], ...] = (
    (re.MULTILINE | re.DOTALL, "m"),
    (re.IGNORECASE, "i"),
    (re.VERBOSE, "x"),
)


class Dialect(enum.StrEnum):
    """Supported pattern dialects."""

    REGULAR_EXPRESSION = "regular expression"
    CUCUMBER_EXPRESSION = "cucumber expression"

    @classmethod
    def parse(cls, value: str | Dialect) -> Dialect:
        """Return the dialect named by *value*.

        Short aliases ``regexp`` and ``cucumber`` are accepted so the dialect
        can be chosen from command-line and ini configuration.
        """
        if isinstance(value, Dialect):
            return value
        key = value.strip().casefold()
        if key in _DIALECT_ALIASES:
            return _DIALECT_ALIASES[key]
        return cls(key)


_DIALECT_ALIASES: dict[str, Dialect] = {
    "regexp": Dialect.REGULAR_EXPRESSION,
    "regex": Dialect.REGULAR_EXPRESSION,
    "re": Dialect.REGULAR_EXPRESSION,
    "cucumber": Dialect.CUCUMBER_EXPRESSION,
}


def flags_string(flags: int) -> str:
    """Return the ``m``/``i``/``x`` letters set in *flags*, in that order.

    ``m`` covers both :data:`re.MULTILINE` and :data:`re.DOTALL`.
    """
    return "".join(letter for flag, letter in _FLAG_LETTERS if flags & flag)


class PatternExpression:
    """A compiled matcher over step text.

    Subclasses are immutable once constructed; :meth:`match` is a pure
    function of its input and safe to call from several threads.
    """

    dialect: t.ClassVar[Dialect]

    __slots__ = ("_source",)

    def __init__(self, source: str) -> None:
        self._source = source

    @property
    def source(self) -> str:
        """Return the pattern text as written by the step author."""
        return self._source

    @property
    def regexp(self) -> str:
        """Return the source of the compiled regular expression."""
        raise NotImplementedError

    @property
    def flags(self) -> str:
        """Return the regular expression flags as letters."""
        return ""

    def match(self, text: str) -> list[t.Any] | None:
        """Return the arguments extracted from *text*, or ``None``."""
        raise NotImplementedError

    def to_dict(self) -> dict[str, dict[str, str]]:
        """Return a serializable summary used by reporting tools."""
        return {
            "source": {"type": str(self.dialect), "expression": self.source},
            "regexp": {"source": self.regexp, "flags": self.flags},
        }

    def __str__(self) -> str:
        """Return the pattern text."""
        return self._source

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"{type(self).__name__}({self._source!r})"


class RegularExpression(PatternExpression):
    """Match step text with a Python regular expression.

    Each capture group yields one argument (``None`` for an optional group
    that did not participate). The pattern is searched, not anchored, so
    authors add ``^``/``$`` when they need whole-line matches.
    """

    dialect = Dialect.REGULAR_EXPRESSION

    __slots__ = ("_pattern",)

    def __init__(self, pattern: str | re.Pattern[str], flags: int = 0) -> None:
        if isinstance(pattern, re.Pattern):
            if flags:
                msg = "flags cannot be combined with a compiled pattern"
                raise ValueError(msg)
            compiled = pattern
        else:
            compiled = re.compile(pattern, flags)
        super().__init__(compiled.pattern)
        self._pattern = compiled

    @property
    def pattern(self) -> re.Pattern[str]:
        """Return the compiled pattern."""
        return self._pattern

    @property
    def regexp(self) -> str:
        """Return the source of the compiled regular expression."""
        return self._pattern.pattern

    @property
    def flags(self) -> str:
        """Return the multiline, ignore-case and verbose flags as letters."""
        return flags_string(self._pattern.flags)

    def match(self, text: str) -> list[str | None] | None:
        """Return the capture groups found in *text*, or ``None``."""
        found = self._pattern.search(text)
        if found is None:
            return None
        return list(found.groups())


class CucumberExpression(PatternExpression):
    """Match step text with a Cucumber Expression such as ``I have {int} cukes``.

    Parameter values are transformed by the parameter types registered in
    *parameter_types*, so ``{int}`` yields an :class:`int`.
    """

    dialect = Dialect.CUCUMBER_EXPRESSION

    __slots__ = ("_expression",)

    def __init__(
        self,
        expression: str,
        parameter_types: ParameterTypeRegistry | None = None,
    ) -> None:
        super().__init__(expression)
        if parameter_types is None:
            parameter_types = ParameterTypeRegistry()
        self._expression = _LibraryCucumberExpression(expression, parameter_types)

    @property
    def regexp(self) -> str:
        """Return the regular expression the expression compiles to."""
        return str(self._expression.regexp)

    def match(self, text: str) -> list[t.Any] | None:
        """Return the transformed parameter values found in *text*."""
        arguments = self._expression.match(text)
        if arguments is None:
            return None
        return [argument.value for argument in arguments]


def build_expression(
    pattern: str | re.Pattern[str],
    dialect: Dialect | str | None = None,
    *,
    parameter_types: ParameterTypeRegistry | None = None,
) -> PatternExpression:
    """Compile *pattern* into a :class:`PatternExpression`.

    A compiled :class:`re.Pattern` is always treated as a regular expression.
    Strings use *dialect*, defaulting to Cucumber Expressions.
    """
    if isinstance(pattern, re.Pattern):
        return RegularExpression(pattern)
    if dialect is None:
        dialect = Dialect.CUCUMBER_EXPRESSION
    if Dialect.parse(dialect) is Dialect.REGULAR_EXPRESSION:
        return RegularExpression(pattern)
    return CucumberExpression(pattern, parameter_types)


__all__ = [
    "CucumberExpression",
    "Dialect",
    "PatternExpression",
    "RegularExpression",
    "build_expression",
    "flags_string",
]
