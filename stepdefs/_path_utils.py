"""Shared helpers for normalizing step definition file paths."""

from __future__ import annotations

import ntpath
import os

IS_WINDOWS = os.name == "nt"


def relative_path(path: os.PathLike[str] | str, start: str | None = None) -> str:
    """Return *path* relative to *start* when it lives beneath it.

    Paths outside *start* (default: the working directory) and pseudo paths
    such as ``<string>`` are returned normalized but otherwise unchanged.
    """
    raw = os.fspath(path)
    if raw.startswith("<"):
        return raw
    module = ntpath if IS_WINDOWS else os.path
    base_raw = start if start is not None else os.getcwd()
    normalized, base = module.normpath(raw), module.normpath(base_raw)
    if IS_WINDOWS:
        normalized, base = module.normcase(normalized), module.normcase(base)
    try:
        common = module.commonpath([normalized, base])
    except ValueError:
        # Different drives, or a relative path against an absolute base.
        return normalized
    if common != base:
        return normalized
    return module.relpath(normalized, base)
