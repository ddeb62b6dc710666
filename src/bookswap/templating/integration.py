"""Kida environment setup.

The environment is created once when the app freezes and handed to
whatever renders views. URL helpers are registered as globals with the
configured ``base_url`` already bound.
"""

from collections.abc import Iterable
from functools import partial
from pathlib import Path
from typing import Any

from kida import ChoiceLoader, Environment, FileSystemLoader

from bookswap.config import AppConfig
from bookswap.urls import action_url, css_url, img_url, path_url


def url_globals(config: AppConfig) -> dict[str, Any]:
    """URL helper globals with the configured base URL bound."""
    return {
        "action_url": partial(action_url, config.base_url),
        "img_url": partial(img_url, config.base_url, static_url=config.static_url),
        "css_url": partial(css_url, config.base_url, static_url=config.static_url),
        "path_url": partial(path_url, config.base_url),
    }


def create_environment(
    config: AppConfig,
    globals_: dict[str, Any] | None = None,
    *,
    extra_dirs: Iterable[str | Path] = (),
) -> Environment:
    """Create a kida Environment from app configuration.

    Templates resolve against ``config.template_dir`` first, then each
    of *extra_dirs* in order.
    """
    loaders = [FileSystemLoader(str(config.template_dir))]
    loaders.extend(FileSystemLoader(str(d)) for d in extra_dirs)

    env = Environment(
        loader=ChoiceLoader(loaders),
        autoescape=True,
        auto_reload=config.debug,
    )

    for name, value in url_globals(config).items():
        env.add_global(name, value)
    for name, value in (globals_ or {}).items():
        env.add_global(name, value)

    return env
