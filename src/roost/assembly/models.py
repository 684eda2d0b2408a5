"""Model registry: models indexed by table name and by path.

A model module exports a ``Model`` or a mapping with a ``fields`` mapping::

    # blog/models/post/comment.py
    model = {"fields": {"body": {"type": "text"}}}

registers under table ``post_comment`` with path ``post/comment``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any

from roost.errors import DuplicateModelError


@dataclass(frozen=True, slots=True)
class Model:
    """A model definition. Field definitions are not validated."""

    fields: Mapping[str, Any]
    table_name: str | None = None
    path_segments: tuple[str, ...] = ()
    label: str | None = None

    @property
    def path_key(self) -> str:
        """Path segments joined with ``/`` (``post/comment``)."""
        return "/".join(self.path_segments)

    @classmethod
    def from_export(cls, value: Any) -> Model | None:
        """Coerce a model module's export, or ``None`` if it is not a model."""
        if isinstance(value, Model):
            return value
        if not isinstance(value, Mapping) or not isinstance(value.get("fields"), Mapping):
            return None
        table_name = value.get("table_name")
        label = value.get("label")
        return cls(
            fields=MappingProxyType(dict(value["fields"])),
            table_name=table_name if isinstance(table_name, str) and table_name else None,
            label=label if isinstance(label, str) else None,
        )


class ModelRegistry:
    """Models keyed by table name. Built once, then frozen.

    A table name claimed twice is a configuration error rather than a
    silent overwrite.
    """

    __slots__ = ("_frozen", "_models", "_origins")

    def __init__(self) -> None:
        self._models: dict[str, Model] = {}
        self._origins: dict[str, str] = {}
        self._frozen = False

    def register(self, model: Model, segments: Sequence[str], *, origin: str = "") -> Model:
        """Register *model* found at *segments*; returns the stored model.

        Fills ``table_name`` (segments joined with ``_``) when the model
        does not declare one, and records ``path_segments``.
        """
        if self._frozen:
            msg = "Cannot register models after the registry is frozen."
            raise RuntimeError(msg)

        segments = tuple(segments)
        table_name = model.table_name or "_".join(segments)
        stored = replace(model, table_name=table_name, path_segments=segments)

        origin = origin or "/".join(segments)
        if table_name in self._models:
            raise DuplicateModelError(table_name, self._origins[table_name], origin)

        self._models[table_name] = stored
        self._origins[table_name] = origin
        return stored

    def find_by_path(self, key: str) -> Model | None:
        """Return the model whose ``/``-joined path segments equal *key*."""
        for model in self._models.values():
            if model.path_key == key:
                return model
        return None

    def get(self, table_name: str) -> Model | None:
        return self._models.get(table_name)

    def __contains__(self, table_name: object) -> bool:
        return table_name in self._models

    def __iter__(self) -> Iterator[Model]:
        return iter(self._models.values())

    def __len__(self) -> int:
        return len(self._models)

    def freeze(self) -> Mapping[str, Model]:
        """Stop accepting models and return a read-only table-name mapping."""
        self._frozen = True
        return MappingProxyType(self._models)
