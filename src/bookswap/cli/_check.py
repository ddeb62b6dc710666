"""``bookswap check``: validate configuration, routes and migrations.

Exits with status 1 and one line per problem if anything is wrong.
"""

import argparse
import sys
from pathlib import Path

from bookswap.cli._app import load_app_config
from bookswap.data.errors import DataError
from bookswap.data.migrate import discover_migrations
from bookswap.errors import ConfigurationError
from bookswap.exchange import create_app
from bookswap.exchange.factory import MIGRATIONS_DIR


def run_check(args: argparse.Namespace) -> None:
    problems: list[str] = []

    try:
        config = load_app_config(args)
    except ConfigurationError as exc:
        print(f"config: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    route_count = 0
    try:
        route_count = len(create_app(config).router.routes)
    except (ConfigurationError, DataError) as exc:
        problems.append(f"routes: {exc}")

    migration_count = 0
    try:
        migration_count = len(discover_migrations(config.migrations_dir or MIGRATIONS_DIR))
    except DataError as exc:
        problems.append(f"migrations: {exc}")

    if config.static_dir is not None and not Path(config.static_dir).is_dir():
        problems.append(f"static: directory not found: {config.static_dir}")

    if problems:
        for problem in problems:
            print(problem, file=sys.stderr)
        raise SystemExit(1)

    print(f"OK: {route_count} routes, {migration_count} migrations")
