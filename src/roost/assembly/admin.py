"""Admin descriptors and the admin navigation tree.

Admin modules mirror the models folder. Each one exports a mapping (or
an object with public attributes) describing how its model is managed::

    # blog/admin/post/comment.py
    admin = {"label": "Comments", "list_display": ["body", "created"]}

The descriptor is linked to the model whose path is ``post/comment``,
and a file leaf ``comment`` is added under folder ``post`` of the tree.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from roost.assembly.models import Model, ModelRegistry

logger = logging.getLogger("roost.assembly")

_DROPPED = object()


def snapshot(value: Any) -> Any:
    """Deep copy *value* keeping only what JSON can represent.

    Callables, models and other live objects are dropped, as are
    non-string mapping keys, non-finite floats and reference cycles.
    Returns ``None`` when *value* itself cannot be represented.
    """
    result = _copy(value, set())
    return None if result is _DROPPED else result


def _copy(value: Any, active: set[int]) -> Any:
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else _DROPPED
    if not isinstance(value, (Mapping, list, tuple)) or id(value) in active:
        return _DROPPED

    active.add(id(value))
    try:
        if isinstance(value, Mapping):
            result: Any = {}
            for key, item in value.items():
                if not isinstance(key, str):
                    continue
                copied = _copy(item, active)
                if copied is not _DROPPED:
                    result[key] = copied
        else:
            result = [copied for item in value if (copied := _copy(item, active)) is not _DROPPED]
    finally:
        active.discard(id(value))
    return result


def admin_attrs(value: Any) -> dict[str, Any] | None:
    """User attributes of an admin export, or ``None`` if it has none."""
    if isinstance(value, Mapping):
        attrs = dict(value)
    elif isinstance(value, type):
        # class admin: label = "Posts"
        attrs = {k: v for k, v in vars(value).items() if not k.startswith("_")}
    elif hasattr(value, "__dict__") and not callable(value):
        attrs = {k: v for k, v in vars(value).items() if not k.startswith("_")}
    else:
        return None
    attrs.pop("model", None)
    return attrs


@dataclass(frozen=True, slots=True)
class AdminDescriptor:
    """An admin module's attributes, linked to a model when one matches."""

    key: str
    segments: tuple[str, ...]
    attrs: Mapping[str, Any]
    model: Model | None = None

    def snapshot(self) -> dict[str, Any]:
        """JSON-safe copy of the attributes, without the model reference."""
        return snapshot(self.attrs) or {}


def link_admin(
    attrs: Mapping[str, Any],
    segments: Sequence[str],
    registry: ModelRegistry,
) -> AdminDescriptor:
    """Build a descriptor and link it to the model at the same path.

    A missing model is logged; the descriptor is still returned.
    """
    key = "/".join(segments)
    model = registry.find_by_path(key)
    if model is None:
        logger.warning("admin %s has no corresponding model", key)
    return AdminDescriptor(
        key=key,
        segments=tuple(segments),
        attrs=MappingProxyType(dict(attrs)),
        model=model,
    )


@dataclass(frozen=True, slots=True)
class AdminFile:
    """A leaf of the admin tree: one admin module."""

    name: str
    data: Any

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "data": self.data}


@dataclass(frozen=True, slots=True)
class AdminFolder:
    """A folder of the admin tree. Children keep insertion order."""

    name: str
    folders: tuple[AdminFolder, ...] = ()
    files: tuple[AdminFile, ...] = ()

    def folder(self, name: str) -> AdminFolder | None:
        """The child folder called *name*, if any."""
        for child in self.folders:
            if child.name == name:
                return child
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "folders": [child.to_dict() for child in self.folders],
            "files": [leaf.to_dict() for leaf in self.files],
        }


@dataclass(slots=True)
class _FolderBuilder:
    """Mutable folder used while the tree is being built."""

    name: str
    folders: list[_FolderBuilder] = field(default_factory=list)
    files: list[AdminFile] = field(default_factory=list)

    def child(self, name: str) -> _FolderBuilder:
        for folder in self.folders:
            if folder.name == name:
                return folder
        folder = _FolderBuilder(name)
        self.folders.append(folder)
        return folder

    def freeze(self) -> AdminFolder:
        return AdminFolder(
            name=self.name,
            folders=tuple(folder.freeze() for folder in self.folders),
            files=tuple(self.files),
        )


class AdminTreeBuilder:
    """Folds admin paths into a folder/file tree.

    Usage::

        builder = AdminTreeBuilder()
        builder.insert(["post", "comment"], {"label": "Comments"})
        tree = builder.freeze()
        tree.folder("post").files[0].name  # "comment"

    Leaves are not deduplicated: inserting a path twice adds two leaves.
    """

    __slots__ = ("_root",)

    def __init__(self, root_name: str = "models") -> None:
        self._root = _FolderBuilder(root_name)

    def insert(self, segments: Sequence[str], data: Any) -> None:
        if not segments:
            msg = "admin path must have at least one segment"
            raise ValueError(msg)
        node = self._root
        for name in segments[:-1]:
            node = node.child(name)
        node.files.append(AdminFile(name=segments[-1], data=data))

    def freeze(self) -> AdminFolder:
        return self._root.freeze()


@dataclass(frozen=True, slots=True)
class AdminContext:
    """What an admin controller generator receives."""

    admins: Mapping[str, AdminDescriptor]
    tree: AdminFolder
    user_model: Model | None = None


AdminGenerator = Callable[[AdminContext], Iterable[Any]]
