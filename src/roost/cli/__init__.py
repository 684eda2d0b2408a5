"""Roost CLI: route listing, admin tree dump and the dev server.

Entry point registered as ``roost`` in ``pyproject.toml``::

    [project.scripts]
    roost = "roost.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``roost`` command."""
    parser = argparse.ArgumentParser(
        prog="roost",
        description="Roost: convention-driven web applications.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- roost routes -----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List assembled routes")
    routes_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    # -- roost tree -------------------------------------------------------
    tree_parser = subparsers.add_parser("tree", help="Print the admin navigation tree")
    tree_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    # -- roost run --------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Start the dev server")
    run_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from roost.cli._routes import run_routes

        run_routes(args)
    elif args.command == "tree":
        from roost.cli._tree import run_tree

        run_tree(args)
    elif args.command == "run":
        from roost.cli._run import run_server

        run_server(args)
