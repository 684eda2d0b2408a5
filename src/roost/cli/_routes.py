"""``roost routes``: list assembled routes.

Implicit-all routes (controllers that accept every method) show ``*``.
"""

import argparse

from roost.cli._resolve import load_app
from roost.routing.route import ANY_METHOD


def format_routes(routes: list) -> list[str]:
    """Render routes as a METHOD / PATH / HANDLER table."""
    rows: list[tuple[str, str, str]] = []
    for route in routes:
        methods_str = ANY_METHOD if route.methods is None else ", ".join(sorted(route.methods))
        handler_name = getattr(route.handler, "__name__", None) or repr(route.handler)
        if route.name:
            handler_name = f"{handler_name} ({route.name})"
        rows.append((methods_str, route.path, handler_name))

    max_methods = max(6, *(len(r[0]) for r in rows))  # "METHOD" header
    max_path = max(4, *(len(r[1]) for r in rows))  # "PATH" header

    fmt = f"{{:<{max_methods}}}  {{:<{max_path}}}  {{}}"
    lines = [fmt.format("METHOD", "PATH", "HANDLER").rstrip()]
    sep_len = max_methods + max_path + 4 + max(len(r[2]) for r in rows)
    lines.append("-" * min(sep_len, 80))
    lines.extend(fmt.format(*row) for row in rows)
    return lines


def run_routes(args: argparse.Namespace) -> None:
    """Assemble ``args.app`` and print its route table."""
    app = load_app(args.app)
    routes = app.router.routes
    if not routes:
        print("No routes registered.")
        return
    for line in format_routes(routes):
        print(line)
