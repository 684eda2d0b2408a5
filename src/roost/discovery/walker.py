"""Discovery walker: drives the path filter and loader over a folder.

Yields one ``DiscoveredModule`` per accepted, successfully loaded file.
Filtering happens before loading, so an excluded file is never imported.

The file listing and the loader are both injected, which keeps the
walker independent of the filesystem::

    source = MemorySource({"blog/controllers/foo/bar.py": handler})
    found = list(discover(source.files("blog/controllers"),
                          lambda name: source.load(name, "controller")))
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from roost.discovery.filter import ensure_included
from roost.discovery.loader import load_export, module_name, split_path, strip_prefix
from roost.errors import DiscoveryWarning, ModuleLoadError

logger = logging.getLogger("roost.discovery")

# Python package plumbing, not app modules
_PACKAGE_FILES = frozenset({"__init__", "__main__"})


@dataclass(frozen=True, slots=True)
class DiscoveredModule:
    """A loaded module's export and its meaningful path segments.

    ``path`` is relative to the source root (``blog/controllers/foo/bar.py``),
    ``segments`` has the app-name and category prefix removed
    (``("foo", "bar")``).
    """

    path: str
    segments: tuple[str, ...]
    value: Any


class ModuleSource(Protocol):
    """Where discovered modules come from."""

    def files(self, folder: str) -> list[str]:
        """Relative paths of every file below *folder*, sorted."""
        ...

    def load(self, name: str, symbol: str) -> Any:
        """Load module *name* and return its *symbol* export."""
        ...


def list_module_files(base_dir: str | Path, folder: str) -> list[str]:
    """List files under ``base_dir/folder`` as sorted ``/``-separated paths.

    Paths are relative to *base_dir*. A missing folder yields an empty
    list; an app without admin modules is normal.
    """
    root = Path(base_dir).resolve()
    target = root / folder
    if not target.is_dir():
        logger.debug("%s does not exist, nothing to discover", target)
        return []
    return sorted(
        item.relative_to(root).as_posix()
        for item in target.rglob("*")
        if item.is_file() and "__pycache__" not in item.parts
    )


def discover(
    paths: Iterable[str],
    load: Callable[[str], Any],
    *,
    suffix: str = ".py",
    marker: str = "!",
    strip: int = 2,
) -> Iterator[DiscoveredModule]:
    """Filter, load and yield discovered modules lazily.

    Args:
        paths: Relative file paths (``app/category/...``).
        load: Callable taking a dotted module name and returning the
            module's export. Raises ``ModuleLoadError`` on failure.
        suffix: Source module file suffix.
        marker: Exclusion marker for folder and file names.
        strip: Number of leading segments to drop from each path.
    """
    for path in paths:
        segments = split_path(path)
        if segments and segments[-1].removesuffix(suffix) in _PACKAGE_FILES:
            continue
        try:
            ensure_included(path, suffix=suffix, marker=marker)
            value = load(module_name(segments, suffix))
        except (DiscoveryWarning, ModuleLoadError) as exc:
            logger.warning("%s", exc)
            continue

        segments[-1] = segments[-1].removesuffix(suffix)
        yield DiscoveredModule(path=path, segments=strip_prefix(segments, strip), value=value)


class FilesystemSource:
    """Modules found on disk below *base_dir* and imported by name.

    *base_dir* is put on ``sys.path`` (once) before the first import so
    ``<app>.controllers.foo`` resolves to ``base_dir/<app>/controllers/foo.py``.
    """

    __slots__ = ("base_dir",)

    def __init__(self, base_dir: str | Path = ".") -> None:
        self.base_dir = Path(base_dir).resolve()

    def files(self, folder: str) -> list[str]:
        return list_module_files(self.base_dir, folder)

    def load(self, name: str, symbol: str) -> Any:
        entry = str(self.base_dir)
        if entry not in sys.path:
            sys.path.insert(0, entry)
        return load_export(name, symbol)

    def __repr__(self) -> str:
        return f"FilesystemSource({str(self.base_dir)!r})"


class MemorySource:
    """Modules given as a ``{relative path: export}`` mapping.

    Used by tests and embedders that build their modules in code. The
    export symbol is ignored: each path maps to exactly one value.
    """

    __slots__ = ("_exports", "_paths")

    def __init__(self, exports: Mapping[str, Any], *, suffix: str = ".py") -> None:
        self._exports = {
            module_name(split_path(path), suffix): value for path, value in exports.items()
        }
        self._paths = sorted(exports)

    def files(self, folder: str) -> list[str]:
        prefix = folder.rstrip("/") + "/"
        return [path for path in self._paths if path.startswith(prefix)]

    def load(self, name: str, symbol: str) -> Any:
        try:
            return self._exports[name]
        except KeyError as exc:
            raise ModuleLoadError(name, f"module defines no {symbol!r}") from exc
