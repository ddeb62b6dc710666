"""bookswap CLI: route listing, configuration checks, migrations.

Entry point registered as ``bookswap`` in ``pyproject.toml``::

    [project.scripts]
    bookswap = "bookswap.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``bookswap`` command."""
    parser = argparse.ArgumentParser(
        prog="bookswap",
        description="bookswap: book-exchange web application.",
    )
    subparsers = parser.add_subparsers(dest="command")

    for name, help_text in (
        ("routes", "List the registered routes"),
        ("check", "Validate configuration, routes and migrations"),
        ("migrate", "Apply pending database migrations"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--config",
            default=None,
            help="Path to a TOML configuration file",
        )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from bookswap.cli._routes import run_routes

        run_routes(args)
    elif args.command == "check":
        from bookswap.cli._check import run_check

        run_check(args)
    elif args.command == "migrate":
        from bookswap.cli._migrate import run_migrate

        run_migrate(args)
