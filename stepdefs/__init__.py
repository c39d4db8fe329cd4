"""Step definition matching and invocation for Gherkin-style test steps.

A :class:`StepDefinition` binds a pattern expression (a regular expression or
a Cucumber Expression) to the behaviour implementing a step. Step text is
matched to extract typed arguments, and the behaviour is then invoked against
a scenario-scoped :class:`World`.
"""

from __future__ import annotations

from .errors import (
    AmbiguousStepError,
    ArityMismatchError,
    ConfigurationError,
    DuplicateStepDefinitionError,
    InvalidInvocableError,
    InvalidTargetError,
    MissingInvocableError,
    StepDefsError,
    UndefinedStepError,
)
from .expressions import (
    CucumberExpression,
    Dialect,
    PatternExpression,
    RegularExpression,
    build_expression,
)
from .invocables import (
    ActiveContext,
    DeferredInvocable,
    DirectInvocable,
    create_invocable,
)
from .location import Location
from .registry import StepMatch, StepRegistry
from .step_definition import StepDefinition
from .world import StepUsage, World

__all__ = [
    "ActiveContext",
    "AmbiguousStepError",
    "ArityMismatchError",
    "ConfigurationError",
    "CucumberExpression",
    "DeferredInvocable",
    "Dialect",
    "DirectInvocable",
    "DuplicateStepDefinitionError",
    "InvalidInvocableError",
    "InvalidTargetError",
    "Location",
    "MissingInvocableError",
    "PatternExpression",
    "RegularExpression",
    "StepDefinition",
    "StepDefsError",
    "StepMatch",
    "StepRegistry",
    "StepUsage",
    "UndefinedStepError",
    "World",
    "build_expression",
    "create_invocable",
]
