"""Module loader: path segments to dotted module names to exported values."""

import importlib
import re
from collections.abc import Sequence
from typing import Any

from roost.errors import ModuleLoadError

_SEPARATOR_RE = re.compile(r"[/\\]+")


def split_path(path: str) -> list[str]:
    """Split a relative file path on ``/`` or ``\\`` into non-empty segments."""
    return [part for part in _SEPARATOR_RE.split(path) if part]


def module_name(segments: Sequence[str], suffix: str = ".py") -> str:
    """Build a dotted module name from file path segments.

    ``["blog", "controllers", "foo", "bar.py"]`` -> ``"blog.controllers.foo.bar"``
    """
    parts = list(segments)
    if parts and parts[-1].endswith(suffix):
        parts[-1] = parts[-1][: -len(suffix)]
    return ".".join(parts)


def strip_prefix(segments: Sequence[str], count: int = 2) -> tuple[str, ...]:
    """Drop the leading app-name and category segments.

    ``("blog", "models", "foo")`` -> ``("foo",)``
    """
    return tuple(segments[count:])


def load_export(name: str, symbol: str) -> Any:
    """Import module *name* and return its attribute *symbol*.

    Any failure (import error, exception in the module body, missing
    symbol) is raised as ``ModuleLoadError``.
    """
    try:
        module = importlib.import_module(name)
    except Exception as exc:
        raise ModuleLoadError(name, f"{type(exc).__name__}: {exc}") from exc

    try:
        return getattr(module, symbol)
    except AttributeError as exc:
        raise ModuleLoadError(name, f"module defines no {symbol!r}") from exc
