"""``bookswap migrate``: apply pending migrations to the configured database."""

import argparse
import sys

import anyio

from bookswap.app import App
from bookswap.cli._app import build_app
from bookswap.data.errors import DataError
from bookswap.data.migrate import migrate
from bookswap.exchange.factory import MIGRATIONS_DIR


async def _migrate(app: App) -> str:
    async with app.db:
        result = await migrate(app.db, app.config.migrations_dir or MIGRATIONS_DIR)
    return result.summary


def run_migrate(args: argparse.Namespace) -> None:
    app = build_app(args)
    try:
        summary = anyio.run(_migrate, app)
    except DataError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    print(summary)
