"""Targets invoked when a step definition runs.

A target is either a :class:`DirectInvocable` wrapping a callable supplied at
registration time, or a :class:`DeferredInvocable` naming a method that is
looked up on a receiver each time the step runs. The receiver is resolved
against the active context through a :class:`ReceiverStrategy`.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as t

from .errors import InvalidInvocableError, InvalidTargetError
from .location import Location

logger = logging.getLogger(__name__)


class ActiveContext(t.Protocol):
    """Scenario-scoped object that step targets run against."""

    def send(self, name: str, *args: t.Any) -> t.Any:  # noqa: ANN401
        """Look up *name* on the context and call it with *args*."""
        ...

    def run_step(
        self,
        pseudo_method: str,
        func: t.Callable[..., t.Any],
        args: t.Sequence[t.Any],
        *,
        check_arity: bool = True,
    ) -> t.Any:  # noqa: ANN401
        """Call *func* with *args* under the context's execution rules."""
        ...


class ReceiverStrategy(t.Protocol):
    """Resolve the object a deferred target's message is sent to."""

    def resolve(self, context: ActiveContext) -> t.Any:  # noqa: ANN401
        """Return the receiver for *context*."""
        ...


@dc.dataclass(frozen=True, slots=True)
class SelfReceiver:
    """Send the message to the active context itself."""

    def resolve(self, context: ActiveContext) -> ActiveContext:
        """Return *context*."""
        return context

    def __str__(self) -> str:
        """Return a short description."""
        return "self"


@dc.dataclass(frozen=True, slots=True)
class NamedReceiver:
    """Ask the active context for the receiver by name."""

    name: str

    def resolve(self, context: ActiveContext) -> t.Any:  # noqa: ANN401
        """Return the result of sending ``name`` to *context*."""
        return context.send(self.name)

    def __str__(self) -> str:
        """Return a short description."""
        return self.name


@dc.dataclass(frozen=True, slots=True)
class CallableReceiver:
    """Compute the receiver by calling ``func`` with the active context."""

    func: t.Callable[[t.Any], t.Any]

    def resolve(self, context: ActiveContext) -> t.Any:  # noqa: ANN401
        """Return ``func(context)``."""
        return self.func(context)

    def __str__(self) -> str:
        """Return a short description."""
        return getattr(self.func, "__qualname__", repr(self.func))


@dc.dataclass(frozen=True, slots=True)
class InvalidReceiver:
    """Placeholder for an ``on`` option that was neither a name nor a callable."""

    target: object

    def resolve(self, context: ActiveContext) -> t.NoReturn:
        """Always raise :class:`InvalidTargetError`."""
        raise InvalidTargetError(self.target)

    def __str__(self) -> str:
        """Return a short description."""
        return f"<invalid {self.target!r}>"


def receiver_strategy(on: object = None) -> ReceiverStrategy:
    """Return the strategy described by the ``on`` registration option.

    ``None`` selects the context itself, a string is looked up on the
    context, and a callable is called with the context. Anything else is
    kept as an :class:`InvalidReceiver` that fails when the step runs.
    """
    if on is None:
        return SelfReceiver()
    if isinstance(on, str):
        return NamedReceiver(on)
    if callable(on):
        return CallableReceiver(on)
    logger.warning("Step target receiver %r is neither a name nor a callable", on)
    return InvalidReceiver(on)


@dc.dataclass(frozen=True, slots=True)
class DirectInvocable:
    """A callable bound at registration time."""

    func: t.Callable[..., t.Any]

    def bind(self, context: ActiveContext) -> t.Callable[..., t.Any]:
        """Return the callable to run; *context* is not consulted."""
        return self.func

    @property
    def location(self) -> Location:
        """Return where ``func`` was declared."""
        return Location.from_callable(self.func)

    @property
    def file_colon_line(self) -> str:
        """Return the declared origin as ``file:line``."""
        return str(self.location)


@dc.dataclass(frozen=True, slots=True)
class DeferredInvocable:
    """A method name sent to a receiver resolved on every invocation."""

    message: str
    receiver: ReceiverStrategy = dc.field(default_factory=SelfReceiver)
    registered_at: Location | None = None

    def bind(self, context: ActiveContext) -> t.Callable[..., t.Any]:
        """Resolve the receiver against *context* and look up ``message``."""
        receiver = self.receiver.resolve(context)
        logger.debug("Dispatching %r to receiver %s", self.message, self.receiver)
        return getattr(receiver, self.message)

    @property
    def location(self) -> Location:
        """Return the location captured when the step was registered."""
        if self.registered_at is None:
            msg = f"deferred target {self.message!r} has no registration location"
            raise LookupError(msg)
        return self.registered_at

    @property
    def file_colon_line(self) -> str:
        """Return ``:<message>``; deferred targets have no precise line."""
        return f":{self.message}"


Invocable = DirectInvocable | DeferredInvocable


def create_invocable(
    target: Invocable | t.Callable[..., t.Any] | str,
    *,
    on: object = None,
    registered_at: Location | None = None,
) -> Invocable:
    """Build the invocable for *target*.

    Callables become :class:`DirectInvocable`; strings become
    :class:`DeferredInvocable` whose receiver follows *on*.
    """
    if isinstance(target, DeferredInvocable):
        if target.registered_at is None and registered_at is not None:
            return dc.replace(target, registered_at=registered_at)
        return target
    if isinstance(target, DirectInvocable):
        return target
    if isinstance(target, str):
        return DeferredInvocable(target, receiver_strategy(on), registered_at)
    if callable(target):
        if on is not None:
            msg = "the 'on' option only applies to method-name targets"
            raise InvalidInvocableError(msg)
        return DirectInvocable(target)
    msg = f"step target must be a callable or a method name, got {target!r}"
    raise InvalidInvocableError(msg)


__all__ = [
    "ActiveContext",
    "CallableReceiver",
    "DeferredInvocable",
    "DirectInvocable",
    "InvalidReceiver",
    "Invocable",
    "NamedReceiver",
    "ReceiverStrategy",
    "SelfReceiver",
    "create_invocable",
    "receiver_strategy",
]
