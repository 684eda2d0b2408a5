"""Compiled router with trie-based path matching.

Routes are collected during assembly and compiled into an immutable
lookup structure before the app serves its first request.
"""

import re
from dataclasses import dataclass
from typing import Any

from roost.errors import ConfigurationError, MethodNotAllowed, NotFound
from roost.routing.params import CONVERTERS, convert_param
from roost.routing.route import ANY_METHOD, PathSegment, Route, RouteMatch

# Flask/werkzeug-style parameters, a common mistake in declared paths
_ANGLE_PARAM_RE = re.compile(r"<[^>/]+>")


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"          -> [PathSegment("users")]
        "/users/{id}"     -> [PathSegment("users"), PathSegment("{id}", is_param=True, ...)]
        "/users/{id:int}" -> [PathSegment("{id:int}", is_param=True, param_type="int")]
        "/files/{path:path}" -> [PathSegment("{path:path}", is_param=True, param_type="path")]
    """
    if _ANGLE_PARAM_RE.search(path):
        msg = f"Route path {path!r} uses <param> syntax; roost expects {{param}}."
        raise ConfigurationError(msg)

    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
            if ":" in inner:
                param_name, param_type = inner.split(":", 1)
            else:
                param_name = inner
                param_type = "str"
            if param_type not in CONVERTERS:
                msg = f"Unknown converter {param_type!r} in route path {path!r}."
                raise ConfigurationError(msg)
            segments.append(
                PathSegment(
                    value=part,
                    is_param=True,
                    param_name=param_name,
                    param_type=param_type,
                )
            )
        else:
            segments.append(PathSegment(value=part))
    return segments


class _TrieNode:
    """A node in the route trie. Mutable during compilation only."""

    __slots__ = ("catch_all_route", "children", "param_child", "routes_by_method")

    def __init__(self) -> None:
        # Static segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single parameter child (only one param pattern per level)
        self.param_child: _ParamEdge | None = None
        # Catch-all route (path converter)
        self.catch_all_route: _CatchAllEdge | None = None
        # Routes at this node, keyed by HTTP method ("*" for implicit-all)
        self.routes_by_method: dict[str, Route] = {}


@dataclass(slots=True)
class _ParamEdge:
    """A parameter edge in the trie."""

    param_name: str
    param_type: str
    regex: re.Pattern[str]
    node: _TrieNode


@dataclass(slots=True)
class _CatchAllEdge:
    """A catch-all (path) edge that consumes the remaining path."""

    param_name: str
    route_by_method: dict[str, Route]


class Router:
    """Compiled router with trie-based path matching.

    Usage::

        router = Router()
        router.add(Route("/users", handler, frozenset({"GET"})))
        router.add(Route("/users/{id:int}", handler))  # any method
        router.compile()
        match = router.match("GET", "/users/42")

    A later route registered for the same path and method replaces the
    earlier one.
    """

    __slots__ = ("_compiled", "_order", "_root")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._compiled = False
        self._order: list[Route] = []

    def add(self, route: Route) -> None:
        """Add a route to the router. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        segments = parse_path(route.path)
        self._order.append(route)
        node = self._root

        for seg in segments:
            if seg.is_param and seg.param_type == "path":
                # Catch-all: consumes rest of path, must be last segment
                if node.catch_all_route is None:
                    node.catch_all_route = _CatchAllEdge(
                        param_name=seg.param_name or "path",
                        route_by_method={},
                    )
                for method in route.method_keys:
                    node.catch_all_route.route_by_method[method] = route
                return

            if seg.is_param:
                if node.param_child is None:
                    pattern = CONVERTERS[seg.param_type].pattern
                    node.param_child = _ParamEdge(
                        param_name=seg.param_name or "",
                        param_type=seg.param_type,
                        regex=re.compile(f"^{pattern}$"),
                        node=_TrieNode(),
                    )
                node = node.param_child.node
            else:
                if seg.value not in node.children:
                    node.children[seg.value] = _TrieNode()
                node = node.children[seg.value]

        for method in route.method_keys:
            node.routes_by_method[method] = route

    @property
    def routes(self) -> list[Route]:
        """Every route still reachable, in registration order.

        Routes fully shadowed by a later registration are left out.
        """
        live: set[int] = set()
        self._collect_route_ids(self._root, live)
        return [route for route in self._order if id(route) in live]

    def _collect_route_ids(self, node: _TrieNode, live: set[int]) -> None:
        """Recursively collect the ids of routes held by the trie."""
        live.update(id(route) for route in node.routes_by_method.values())

        for child in node.children.values():
            self._collect_route_ids(child, live)

        if node.param_child is not None:
            self._collect_route_ids(node.param_child.node, live)

        if node.catch_all_route is not None:
            live.update(id(route) for route in node.catch_all_route.route_by_method.values())

    @property
    def compiled(self) -> bool:
        return self._compiled

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request path and method against compiled routes.

        Returns a ``RouteMatch`` on success. An exact method entry wins
        over an implicit-all route at the same node.
        Raises ``NotFound`` if no route matches the path.
        Raises ``MethodNotAllowed`` if the path matches but the method doesn't.
        """
        parts = [p for p in path.strip("/").split("/") if p]
        result = self._match_node(self._root, parts, 0, {})

        if result is None:
            raise NotFound(f"No route matches {method} {path!r}")

        node, params = result
        route = node.routes_by_method.get(method) or node.routes_by_method.get(ANY_METHOD)
        if route is not None:
            return RouteMatch(route=route, path_params=params)

        raise MethodNotAllowed(frozenset(node.routes_by_method))

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, Any],
    ) -> tuple[_TrieNode, dict[str, Any]] | None:
        """Recursively match path parts against the trie."""
        if index == len(parts):
            if node.routes_by_method:
                return node, params
            return None

        part = parts[index]

        # 1. Static child first (exact match)
        if part in node.children:
            result = self._match_node(node.children[part], parts, index + 1, params)
            if result is not None:
                return result

        # 2. Parameter child
        if node.param_child is not None:
            edge = node.param_child
            value = convert_param(part, edge.param_type) if edge.regex.match(part) else None
            if value is not None:
                new_params = {**params, edge.param_name: value}
                result = self._match_node(edge.node, parts, index + 1, new_params)
                if result is not None:
                    return result

        # 3. Catch-all
        if node.catch_all_route is not None:
            remaining = "/".join(parts[index:])
            new_params = {**params, node.catch_all_route.param_name: remaining}
            synthetic = _TrieNode()
            synthetic.routes_by_method = node.catch_all_route.route_by_method
            return synthetic, new_params

        return None
