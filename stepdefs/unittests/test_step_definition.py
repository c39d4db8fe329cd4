"""Unit tests for :class:`StepDefinition`."""

from __future__ import annotations

import concurrent.futures as cf
import inspect
import re
import typing as t

import pytest

from stepdefs.errors import (
    ArityMismatchError,
    ConfigurationError,
    InvalidTargetError,
    MissingInvocableError,
)
from stepdefs.expressions import CucumberExpression, RegularExpression
from stepdefs.location import Location
from stepdefs.step_definition import StepDefinition
from stepdefs.world import World


def eat(count: int) -> str:
    return f"ate {count}"


def eat_two(count: int, where: str) -> str:
    return f"ate {count} in {where}"


class Belly:
    """Helper receiver holding cucumbers."""

    def __init__(self) -> None:
        self.cukes: list[int] = []

    def fill(self, count: int) -> None:
        self.cukes.append(count)


class Stomach(Belly):
    """Belly that is also callable."""

    def __call__(self) -> str:
        return "rumble"


class BellyWorld(World):
    """World owning a belly and a method step."""

    def __init__(self) -> None:
        super().__init__()
        self.belly = Belly()
        self.eaten: list[int] = []

    def eat(self, count: int) -> None:
        self.eaten.append(count)

    def the_belly(self) -> Belly:
        return self.belly


def _current_line() -> int:
    frame = inspect.currentframe()
    assert frame is not None
    assert frame.f_back is not None
    return frame.f_back.f_lineno


class TestConstruction:
    """Tests covering construction rules."""

    @pytest.mark.parametrize(
        "expression",
        [
            "I have {int} cucumbers",
            r"^I have (\d+) cucumbers$",
            re.compile(r"^I have (\d+) cucumbers$", re.IGNORECASE),
            CucumberExpression("I have {int} cucumbers"),
            RegularExpression(r"^I have (\d+) cucumbers$"),
        ],
    )
    @pytest.mark.parametrize("dialect", [None, "cucumber", "regexp"])
    def test_missing_target_is_rejected(
        self, expression: t.Any, dialect: str | None
    ) -> None:
        """Every expression and dialect combination requires a target."""
        with pytest.raises(MissingInvocableError, match="must always have"):
            StepDefinition(expression, None, dialect=dialect)

    @pytest.mark.parametrize(
        ("target", "on"), [(42, None), (eat, "the_belly"), (3.5, "the_belly")]
    )
    def test_unusable_targets_are_configuration_errors(
        self, target: t.Any, on: str | None
    ) -> None:
        """Bad target types abort setup like other configuration errors."""
        with pytest.raises(ConfigurationError):
            StepDefinition("I have {int} cucumbers", target, on=on)

    def test_string_patterns_are_compiled(self) -> None:
        """Pattern text is compiled with the requested dialect."""
        definition = StepDefinition(r"^I have (\d+)$", eat, dialect="regexp")
        assert isinstance(definition.expression, RegularExpression)
        assert isinstance(StepDefinition("x {int}", eat).expression, CucumberExpression)

    def test_deferred_location_defaults_to_constructor_caller(self) -> None:
        """Method-name targets remember where they were created."""
        line = _current_line() + 1
        definition = StepDefinition("I eat {int} cucumbers", "eat")
        assert definition.location.line == line
        assert definition.file.endswith("test_step_definition.py")


class TestMatching:
    """Tests covering :meth:`StepDefinition.arguments_from`."""

    def test_cucumber_match(self) -> None:
        """Cucumber parameters are typed."""
        definition = StepDefinition("I have {int} cucumbers", eat)
        assert definition.arguments_from("I have 5 cucumbers") == [5]
        assert definition.arguments_from("I have five cucumbers") is None

    def test_regexp_match_length_equals_group_count(self) -> None:
        """Regex matches return one argument per capture group."""
        definition = StepDefinition(
            r"^I have (\d+) cucumbers in my (\w+)$", eat_two, dialect="regexp"
        )
        args = definition.arguments_from("I have 5 cucumbers in my belly")
        assert args == ["5", "belly"]
        assert len(args) == definition.expression.pattern.groups  # type: ignore[attr-defined]

    def test_concurrent_matching_is_consistent(self) -> None:
        """Matching from several threads gives each thread its own result."""
        definition = StepDefinition("I have {int} cucumbers", eat)
        texts = [f"I have {n} cucumbers" for n in range(200)]
        texts.append("I have many cucumbers")

        with cf.ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(definition.arguments_from, texts))

        assert results[:-1] == [[n] for n in range(200)]
        assert results[-1] is None


class TestInvocation:
    """Tests covering :meth:`StepDefinition.invoke`."""

    def test_direct_result_is_returned_unchanged(self) -> None:
        """Direct targets receive the match arguments."""
        definition = StepDefinition("I have {int} cucumbers", eat)
        world = World()
        args = definition.arguments_from("I have 5 cucumbers")
        assert args is not None
        assert definition.invoke(args, world) == "ate 5"
        assert world.step_usages[0].expression == "I have {int} cucumbers"

    def test_arity_mismatch_is_annotated(self) -> None:
        """Arity failures gain a backtrace entry for the definition."""
        definition = StepDefinition(r"^I have (\d+) cucumbers$", eat_two, dialect="regexp")
        with pytest.raises(ArityMismatchError) as excinfo:
            definition.invoke(["5"], World())
        err = excinfo.value
        location = Location.from_callable(eat_two)
        expected = f"{location}:in '^I have (\\d+) cucumbers$'"
        assert err.backtrace[0] == expected
        assert location.file in err.backtrace[0]
        assert str(location.line) in err.backtrace[0]
        assert expected in getattr(err, "__notes__", [])
        assert "takes 2 arguments" in str(err)

    def test_arity_mismatch_annotations_stack(self) -> None:
        """Nested step definitions each add their own frame."""
        inner = StepDefinition("inner {int}", eat_two)
        world = World()

        def run_inner(count: int) -> None:
            inner.invoke([count], world)

        outer = StepDefinition("outer {int}", run_inner)
        with pytest.raises(ArityMismatchError) as excinfo:
            outer.invoke([1], world)
        assert excinfo.value.backtrace == [
            outer.backtrace_line,
            inner.backtrace_line,
        ]

    def test_body_type_error_is_not_annotated(self) -> None:
        """Ordinary failures inside the step propagate untouched."""

        def broken(count: int) -> None:
            raise TypeError(f"cannot eat {count}")

        definition = StepDefinition("I eat {int}", broken)
        with pytest.raises(TypeError, match="cannot eat 3") as excinfo:
            definition.invoke([3], World())
        assert not hasattr(excinfo.value, "__notes__")

    def test_assertion_failures_propagate(self) -> None:
        """Assertion errors are not converted."""

        def failing() -> None:
            raise AssertionError("nope")

        with pytest.raises(AssertionError, match="nope"):
            StepDefinition("it fails", failing).invoke([], World())

    def test_deferred_self_dispatches_to_context(self) -> None:
        """Method names default to the active context."""
        definition = StepDefinition("I eat {int} cucumbers", "eat")
        world = BellyWorld()
        definition.invoke([4], world)
        assert world.eaten == [4]

    def test_deferred_named_dispatches_to_helper(self) -> None:
        """``on`` names a context method returning the receiver."""
        definition = StepDefinition("I fill up on {int}", "fill", on="the_belly")
        world = BellyWorld()
        definition.invoke([2], world)
        assert world.belly.cukes == [2]

    def test_deferred_named_callable_helper_is_the_receiver(self) -> None:
        """A callable helper receives the message instead of being called."""
        stomach = Stomach()
        world = World(stomach=stomach)
        definition = StepDefinition("I fill up on {int}", "fill", on="stomach")
        definition.invoke([2], world)
        assert stomach.cukes == [2]

    def test_deferred_callable_dispatches_to_result(self) -> None:
        """``on`` may compute the receiver from the context."""
        definition = StepDefinition(
            "I fill up on {int}", "fill", on=lambda world: world.belly
        )
        world = BellyWorld()
        definition.invoke([7], world)
        assert world.belly.cukes == [7]

    def test_deferred_receiver_resolved_per_invocation(self) -> None:
        """Each invocation resolves the receiver against its own context."""
        definition = StepDefinition("I eat {int} cucumbers", "eat")
        first, second = BellyWorld(), BellyWorld()
        definition.invoke([1], first)
        definition.invoke([2], second)
        assert (first.eaten, second.eaten) == ([1], [2])

    def test_deferred_invalid_receiver_never_reaches_target(self) -> None:
        """An invalid ``on`` option fails before the target is called."""
        definition = StepDefinition("I eat {int} cucumbers", "eat", on=3.5)
        world = BellyWorld()
        with pytest.raises(InvalidTargetError):
            definition.invoke([1], world)
        assert world.eaten == []
        assert world.step_usages == []

    def test_deferred_arity_mismatch_uses_registration_location(self) -> None:
        """Deferred targets annotate with the captured location."""
        where = Location("features/steps/belly.py", 12)
        definition = StepDefinition("I eat {int} {int}", "eat", registered_at=where)
        with pytest.raises(ArityMismatchError) as excinfo:
            definition.invoke([1, 2], BellyWorld())
        assert excinfo.value.backtrace[0] == (
            "features/steps/belly.py:12:in 'I eat {int} {int}'"
        )


class TestEquality:
    """Tests covering equality and hashing."""

    def test_same_source_different_targets_are_equal(self) -> None:
        """Targets do not take part in equality."""
        first = StepDefinition("I have {int} cucumbers", eat)
        second = StepDefinition("I have {int} cucumbers", "eat")
        assert first == second
        assert hash(first) == hash(second)
        assert len({first, second}) == 1

    def test_spacing_matters(self) -> None:
        """Source text must match character for character."""
        first = StepDefinition("I have {int} cucumbers", eat)
        second = StepDefinition("I have  {int} cucumbers", eat)
        assert first != second

    def test_dialect_is_ignored(self) -> None:
        """Identical source text is equal across dialects."""
        first = StepDefinition("I have cucumbers", eat)
        second = StepDefinition("I have cucumbers", eat, dialect="regexp")
        assert first == second

    def test_other_types_are_not_equal(self) -> None:
        """Comparisons with other objects fall back to identity."""
        assert StepDefinition("x", eat) != "x"


class TestReporting:
    """Tests covering descriptors and locations."""

    def test_descriptor_for_regexp(self) -> None:
        """Regex-backed definitions report their flags."""
        definition = StepDefinition(re.compile(r"^I have (\d+)$", re.M | re.I), eat)
        assert definition.to_dict() == {
            "source": {"type": "regular expression", "expression": r"^I have (\d+)$"},
            "regexp": {"source": r"^I have (\d+)$", "flags": "mi"},
        }

    def test_descriptor_for_cucumber(self) -> None:
        """Cucumber definitions are distinguishable and have no flags."""
        descriptor = StepDefinition("I have {int}", eat).to_dict()
        assert descriptor["source"]["type"] == "cucumber expression"
        assert descriptor["regexp"]["flags"] == ""

    def test_direct_location_and_file_colon_line(self) -> None:
        """Direct targets report their declared origin."""
        definition = StepDefinition("I have {int}", eat)
        location = Location.from_callable(eat)
        assert definition.location == location
        assert definition.file_colon_line == str(location)
        assert definition.backtrace_line == f"{location}:in 'I have {{int}}'"

    def test_deferred_file_colon_line(self) -> None:
        """Deferred targets report the message name."""
        assert StepDefinition("I have {int}", "eat").file_colon_line == ":eat"

    def test_location_is_cached(self) -> None:
        """Location resolution happens once."""
        definition = StepDefinition("I have {int}", eat)
        assert definition.location is definition.location
