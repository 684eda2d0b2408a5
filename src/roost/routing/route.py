"""Route and RouteMatch frozen dataclasses."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from roost.errors import ShapeValidationError

# Key under which implicit-all routes are stored in the trie
ANY_METHOD = "*"


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:  ``/users``  (is_param=False)
    Param:   ``/{id}``   (is_param=True, param_name="id")
    Typed:   ``/{id:int}`` (is_param=True, param_name="id", param_type="int")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    ``methods=None`` accepts every HTTP method. Handlers that serve
    several methods themselves (see ``MethodDispatcher``) are
    registered this way.
    """

    path: str
    handler: Callable[..., Any]
    methods: frozenset[str] | None = None
    name: str | None = None

    @property
    def method_keys(self) -> frozenset[str]:
        """Methods as stored in the router, ``{"*"}`` for implicit-all."""
        if self.methods is None:
            return frozenset({ANY_METHOD})
        return self.methods


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, Any]


def normalize_methods(methods: Any) -> frozenset[str] | None:
    """Turn a declared method collection into an upper-case frozenset.

    ``None`` stays ``None`` (implicit-all). A single string is one method.
    """
    if methods is None:
        return None
    if isinstance(methods, str):
        methods = (methods,)
    if not isinstance(methods, Iterable):
        msg = f"methods must be a collection of strings, got {type(methods).__name__}"
        raise ShapeValidationError(msg)
    result: set[str] = set()
    for method in methods:
        if not isinstance(method, str) or not method:
            msg = f"invalid HTTP method {method!r}"
            raise ShapeValidationError(msg)
        result.add(method.upper())
    if not result:
        msg = "methods must not be empty"
        raise ShapeValidationError(msg)
    return frozenset(result)
