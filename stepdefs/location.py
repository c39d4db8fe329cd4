"""Source locations for step definitions."""

from __future__ import annotations

import dataclasses as dc
import functools
import inspect
import sys
import typing as t

from ._path_utils import relative_path

UNKNOWN_FILE = "<unknown>"


@dc.dataclass(frozen=True, slots=True)
class Location:
    """A ``file:line`` pair identifying where a step was defined."""

    file: str
    line: int

    def __str__(self) -> str:
        """Return the compact ``file:line`` form."""
        return f"{self.file}:{self.line}"

    @classmethod
    def of_caller(cls, depth: int = 1) -> Location:
        """Return the location *depth* frames above the function calling this.

        ``depth=1`` names the caller of the function that invoked
        :meth:`of_caller`; registration helpers raise it to skip their own
        frames.
        """
        if depth < 0:
            msg = "depth must be non-negative"
            raise ValueError(msg)
        frame = sys._getframe(depth + 1)  # noqa: SLF001 - cheaper than inspect.stack()
        return cls(relative_path(frame.f_code.co_filename), frame.f_lineno)

    @classmethod
    def from_callable(cls, func: t.Callable[..., object]) -> Location:
        """Return the declared origin of *func*."""
        target: object = inspect.unwrap(func)
        while isinstance(target, functools.partial):
            target = inspect.unwrap(target.func)
        if inspect.ismethod(target):
            target = target.__func__
        code = getattr(target, "__code__", None)
        if code is None:
            call = getattr(type(target), "__call__", None)
            code = getattr(call, "__code__", None)
        if code is None:
            return cls(UNKNOWN_FILE, 0)
        return cls(relative_path(code.co_filename), code.co_firstlineno)


__all__ = ["UNKNOWN_FILE", "Location"]
