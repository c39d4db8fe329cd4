"""Default active context shared by the steps of one scenario."""

from __future__ import annotations

import dataclasses as dc
import inspect
import logging
import threading
import typing as t

from .errors import ArityMismatchError

logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class StepUsage:
    """Record of one step run against a :class:`World`."""

    expression: str
    args: tuple[t.Any, ...]


def _describe_arity(signature: inspect.Signature) -> str:
    """Return how many positional arguments *signature* accepts, in words."""
    params = [
        p
        for p in signature.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    required = sum(1 for p in params if p.default is p.empty)
    if any(p.kind is p.VAR_POSITIONAL for p in signature.parameters.values()):
        return f"{required} or more"
    if required != len(params):
        return f"{required} to {len(params)}"
    return str(required)


def ensure_arity(func: t.Callable[..., t.Any], args: t.Sequence[t.Any]) -> None:
    """Raise :class:`ArityMismatchError` if *args* cannot be bound to *func*.

    Callables whose signature cannot be introspected are not checked.
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return
    try:
        signature.bind(*args)
    except TypeError:
        raise ArityMismatchError.for_counts(
            _describe_arity(signature), len(args)
        ) from None


class World:
    """Scenario-scoped state that step targets run against.

    Steps store scenario data as attributes. Deferred targets are methods of
    a ``World`` subclass (or of helpers it returns), which lets them share
    that state. Every step run is recorded in :attr:`step_usages`, and runs
    are serialized so a world is never driven by two steps at once.
    """

    def __init__(self, **attributes: t.Any) -> None:
        self.step_usages: list[StepUsage] = []
        self._step_lock = threading.RLock()
        for name, value in attributes.items():
            setattr(self, name, value)

    def send(self, name: str, *args: t.Any) -> t.Any:  # noqa: ANN401
        """Call method *name* with *args*, or return attribute *name* as stored.

        Only bound methods are called. Other attributes, including callable
        helper objects, are returned unchanged so they can act as receivers.
        """
        try:
            value = getattr(self, name)
        except AttributeError as err:
            msg = f"{type(self).__name__} has no attribute {name!r}"
            raise AttributeError(msg, name=name, obj=self) from err
        if inspect.ismethod(value):
            return value(*args)
        if args:
            msg = f"{type(self).__name__}.{name} is not a method"
            raise TypeError(msg)
        return value

    def run_step(
        self,
        pseudo_method: str,
        func: t.Callable[..., t.Any],
        args: t.Sequence[t.Any],
        *,
        check_arity: bool = True,
    ) -> t.Any:  # noqa: ANN401
        """Call *func* with *args* on behalf of the step *pseudo_method*.

        When *check_arity* is ``True`` the arguments are bound to the
        signature of *func* first so that a mismatch raises
        :class:`ArityMismatchError` rather than a ``TypeError`` from inside
        the step.
        """
        with self._step_lock:
            if check_arity:
                ensure_arity(func, args)
            self.step_usages.append(StepUsage(pseudo_method, tuple(args)))
            logger.debug("Running step %r with %r", pseudo_method, args)
            return func(*args)


__all__ = ["StepUsage", "World", "ensure_arity"]
