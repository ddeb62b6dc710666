"""Build the exchange app from CLI arguments."""

import argparse
import sys

from bookswap.app import App
from bookswap.config import AppConfig, load_config
from bookswap.errors import ConfigurationError
from bookswap.exchange import create_app


def load_app_config(args: argparse.Namespace) -> AppConfig:
    if args.config is None:
        return AppConfig()
    return load_config(args.config)


def build_app(args: argparse.Namespace) -> App:
    """Config plus routes; exits with status 1 on a configuration problem."""
    try:
        return create_app(load_app_config(args))
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
