"""``roost run``: development server command.

Resolves an import string to a roost App and serves it with pounce
(``pip install roost[server]``).
"""

import argparse
import logging
import sys

from roost.cli._resolve import resolve_app
from roost.errors import ConfigurationError


def run_server(args: argparse.Namespace) -> None:
    """Configure logging, then start the dev server for ``args.app``."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    logging.basicConfig(
        level=app.config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        app.assembly  # noqa: B018
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    from roost.server.dev import run_dev_server

    run_dev_server(
        app,
        args.host or app.config.host,
        args.port or app.config.port,
        reload=app.config.debug,
        app_path=args.app,
    )
