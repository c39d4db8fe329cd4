"""Exception hierarchy for step definition matching and invocation."""

from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .step_definition import StepDefinition


class StepDefsError(Exception):
    """Base exception for all stepdefs errors."""


class ConfigurationError(StepDefsError):
    """Raised when a step definition is authored incorrectly."""


class MissingInvocableError(ConfigurationError):
    """Raised when a step definition is registered without a target."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message or "Step definitions must always have a callable or a method name"
        )


class InvalidTargetError(ConfigurationError):
    """Raised when a deferred target's ``on`` receiver cannot be resolved."""

    def __init__(self, target: object) -> None:
        self.target = target
        super().__init__(
            f"Target must be a method name or a callable, got {target!r}"
        )


class InvalidInvocableError(ConfigurationError, TypeError):
    """Raised when a step target or its ``on`` option has an unusable type."""


class DuplicateStepDefinitionError(ConfigurationError):
    """Raised when an equal step definition is registered twice."""

    def __init__(self, existing: StepDefinition, duplicate: StepDefinition) -> None:
        self.existing = existing
        self.duplicate = duplicate
        super().__init__(
            f"Step definition {str(duplicate.expression)!r} at "
            f"{duplicate.file_colon_line} duplicates the one at "
            f"{existing.file_colon_line}"
        )


class ArityMismatchError(StepDefsError):
    """Raised when matched arguments do not fit the step's parameters.

    ``backtrace`` holds synthetic frames (most recent first) describing the
    step definitions the failure passed through.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.backtrace: list[str] = []

    @classmethod
    def for_counts(cls, expected: str, given: int) -> ArityMismatchError:
        """Build the error for a function taking *expected* arguments."""
        takes = "argument" if expected == "1" else "arguments"
        matched = "argument" if given == 1 else "arguments"
        return cls(
            f"Your function takes {expected} {takes}, "
            f"but the expression matched {given} {matched}."
        )

    def annotate(self, frame: str) -> None:
        """Prepend *frame* to the synthetic backtrace."""
        self.backtrace.insert(0, frame)
        self.add_note(frame)


class UndefinedStepError(StepDefsError):
    """Raised when no step definition matches the step text."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"Undefined step: {text!r}")


class AmbiguousStepError(StepDefsError):
    """Raised when more than one step definition matches the step text."""

    def __init__(self, text: str, candidates: t.Sequence[StepDefinition]) -> None:
        self.text = text
        self.candidates = list(candidates)
        lines = [f"Ambiguous match of {text!r}:", ""]
        lines.extend(
            f"{str(candidate.expression)}  # {candidate.file_colon_line}"
            for candidate in self.candidates
        )
        super().__init__("\n".join(lines))


__all__ = [
    "AmbiguousStepError",
    "ArityMismatchError",
    "ConfigurationError",
    "DuplicateStepDefinitionError",
    "InvalidInvocableError",
    "InvalidTargetError",
    "MissingInvocableError",
    "StepDefsError",
    "UndefinedStepError",
]
