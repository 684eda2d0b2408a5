"""``roost tree``: print the admin navigation tree as JSON."""

import argparse
import json

from roost.cli._resolve import load_app


def run_tree(args: argparse.Namespace) -> None:
    app = load_app(args.app)
    print(json.dumps(app.admin_tree.to_dict(), indent=2, ensure_ascii=False))
