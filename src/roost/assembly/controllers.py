"""Controller normalizer: turns a controller export into routes.

A controller module's export is classified by its shape, first match wins:

1. **DirectHandler**: a callable. One route at the inferred url, any method::

       # blog/controllers/foo/bar.py -> /foo/bar
       def controller(request): ...

2. **ExplicitRoute**: a declaration whose ``path`` (or first slot) is a
   string. The inferred url is ignored::

       controller = {"path": "/custom", "controller": handler, "methods": ["GET"]}
       controller = ("/custom", handler, ["GET"])

3. **MultiMethod**: a mapping of HTTP method names to handlers, served at
   the inferred url::

       controller = {"GET": list_posts, "POST": create_post}

4. **ControllerGroup**: a list of declarations sharing the inferred url as
   base. ``""`` is the base itself, ``"sub"`` becomes ``<url>/sub``, and
   ``"/abs"`` is kept as is::

       controller = [{"path": "", "controller": index}, ("edit", edit, ["POST"])]

Anything else registers nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, TypeAlias

from roost._internal.invoke import invoke
from roost._internal.types import Handler
from roost.errors import ConfigurationError, MethodNotAllowed, ShapeValidationError
from roost.routing.route import Route, normalize_methods
from roost.routing.router import parse_path

logger = logging.getLogger("roost.assembly")

HTTP_METHODS = frozenset(
    {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"}
)


@dataclass(frozen=True, slots=True)
class DirectHandler:
    handler: Handler


@dataclass(frozen=True, slots=True)
class ExplicitRoute:
    path: str
    handler: Handler
    methods: frozenset[str] | None = None
    name: str | None = None


@dataclass(frozen=True, slots=True)
class MultiMethod:
    handlers: Mapping[str, Handler]


@dataclass(frozen=True, slots=True)
class ControllerGroup:
    members: tuple[ExplicitRoute, ...]


ControllerShape: TypeAlias = DirectHandler | ExplicitRoute | MultiMethod | ControllerGroup


class MethodDispatcher:
    """Route handler that picks a per-method handler from a mapping.

    ``HEAD`` falls back to ``GET``. Any other method without a handler
    raises ``MethodNotAllowed``.
    """

    __slots__ = ("handlers",)

    def __init__(self, handlers: Mapping[str, Handler]) -> None:
        self.handlers: Mapping[str, Handler] = MappingProxyType(dict(handlers))

    @property
    def allowed(self) -> frozenset[str]:
        return frozenset(self.handlers)

    async def __call__(self, request: Any) -> Any:
        handler = self.handlers.get(request.method)
        if handler is None and request.method == "HEAD":
            handler = self.handlers.get("GET")
        if handler is None:
            raise MethodNotAllowed(self.allowed)
        return await invoke(handler, request)

    def __repr__(self) -> str:
        return f"MethodDispatcher({', '.join(sorted(self.handlers))})"


def _field(value: Any, names: tuple[str, ...], index: int | None) -> Any:
    """Read a declaration field by name, falling back to a positional slot."""
    for name in names:
        if isinstance(value, Mapping):
            found = value.get(name)
        else:
            found = getattr(value, name, None)
        if found is not None:
            return found
    if index is not None and isinstance(value, (list, tuple)) and index < len(value):
        return value[index]
    return None


def _is_structured(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple)) or hasattr(value, "path")


def _declared_path(value: Any) -> Any:
    return _field(value, ("path",), 0)


def explicit_route(value: Any) -> ExplicitRoute:
    """Validate *value* as an explicit route declaration.

    Raises ``ShapeValidationError`` when the path is not a string, the
    handler is not callable, or the methods are malformed.
    """
    if not _is_structured(value):
        msg = f"route declaration must be structured, got {type(value).__name__}"
        raise ShapeValidationError(msg)
    path = _declared_path(value)
    if not isinstance(path, str):
        msg = f"route path must be a string, got {type(path).__name__}"
        raise ShapeValidationError(msg)
    handler = _field(value, ("controller", "handler"), 1)
    if not callable(handler):
        msg = f"route {path!r} has no callable controller"
        raise ShapeValidationError(msg)
    name = _field(value, ("name",), None)
    if name is not None and not isinstance(name, str):
        msg = f"route {path!r} name must be a string"
        raise ShapeValidationError(msg)
    methods = normalize_methods(_field(value, ("methods",), 2))
    return ExplicitRoute(path=path, handler=handler, methods=methods, name=name)


def _method_map(value: Any) -> dict[str, Handler]:
    """Validate *value* as a mapping of HTTP method names to handlers."""
    if not isinstance(value, Mapping) or not value:
        msg = "not a non-empty mapping"
        raise ShapeValidationError(msg)
    handlers: dict[str, Handler] = {}
    for key, handler in value.items():
        if not isinstance(key, str) or key.upper() not in HTTP_METHODS:
            msg = f"{key!r} is not an HTTP method"
            raise ShapeValidationError(msg)
        if not callable(handler):
            msg = f"handler for {key!r} is not callable"
            raise ShapeValidationError(msg)
        handlers[key.upper()] = handler
    return handlers


def classify(value: Any) -> ControllerShape | None:
    """Classify a controller export by shape.

    Returns ``None`` for values matching no shape. Raises
    ``ShapeValidationError`` when the value commits to a shape (explicit
    route, group) but one of its declarations is malformed.
    """
    if callable(value):
        return DirectHandler(value)

    if _is_structured(value) and isinstance(_declared_path(value), str):
        return explicit_route(value)

    try:
        return MultiMethod(MappingProxyType(_method_map(value)))
    except ShapeValidationError as exc:
        logger.debug("not a multi-method controller: %s", exc)

    if isinstance(value, (list, tuple)) and value and _is_structured(value[0]):
        return ControllerGroup(tuple(explicit_route(member) for member in value))

    return None


def resolve_member_path(url: str, path: str) -> str:
    """Resolve a group member path against the group's inferred url."""
    if path == "":
        return url
    if not path.startswith("/"):
        return f"{url}/{path}"
    return path


def _check_path(path: str) -> str:
    try:
        parse_path(path)
    except ConfigurationError as exc:
        raise ShapeValidationError(str(exc)) from exc
    return path


def routes_for(shape: ControllerShape, url: str) -> list[Route]:
    """Expand a classified controller into routes.

    Every path is checked before any route is returned, so a module
    contributes all of its routes or none.
    """
    match shape:
        case DirectHandler(handler=handler):
            return [Route(path=_check_path(url), handler=handler)]
        case ExplicitRoute():
            return [_to_route(shape, shape.path)]
        case MultiMethod(handlers=handlers):
            return [Route(path=_check_path(url), handler=MethodDispatcher(handlers))]
        case ControllerGroup(members=members):
            return [_to_route(m, resolve_member_path(url, m.path)) for m in members]
    msg = f"unknown controller shape {shape!r}"
    raise TypeError(msg)


def _to_route(declaration: ExplicitRoute, path: str) -> Route:
    return Route(
        path=_check_path(path),
        handler=declaration.handler,
        methods=declaration.methods,
        name=declaration.name,
    )


def normalize(value: Any, url: str) -> list[Route]:
    """Classify *value* and expand it into routes; ``[]`` if it has no shape."""
    shape = classify(value)
    if shape is None:
        return []
    return routes_for(shape, url)


def normalize_declaration(declaration: Any) -> Route:
    """Turn a single explicit declaration (or a ``Route``) into a route."""
    if isinstance(declaration, Route):
        _check_path(declaration.path)
        return declaration
    explicit = explicit_route(declaration)
    return _to_route(explicit, explicit.path)
