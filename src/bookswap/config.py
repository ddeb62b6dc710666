"""Application configuration.

AppConfig is a frozen dataclass, immutable after creation. ``load_config``
builds one from a TOML file.
"""

import dataclasses
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from bookswap.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, db_url="sqlite:///:memory:")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Links generated by the URL helpers are prefixed with this
    base_url: str = ""

    # Database
    db_url: str = "sqlite:///bookswap.db"
    db_echo: bool = False

    # Templates
    template_dir: str | Path = "templates"

    # Static files (served by the router under static_url)
    static_dir: str | Path | None = "public"
    static_url: str = "/public"

    # Route definitions and schema
    routes_file: str | Path | None = None
    migrations_dir: str | Path | None = None

    # Logging
    error_log: str | Path | None = None
    log_level: str = "info"


_FIELD_NAMES = frozenset(f.name for f in dataclasses.fields(AppConfig))


def load_config(path: str | Path) -> AppConfig:
    """Load an ``AppConfig`` from a TOML file.

    Top-level keys map onto ``AppConfig`` fields. Two conveniences::

        env = "development"        # same as debug = true

        [database]
        url = "sqlite:///books.db"  # same as db_url
        echo = true                 # same as db_echo

    Raises ``ConfigurationError`` if the file is missing, is not valid
    TOML, or contains keys that are not configuration fields.
    """
    file_path = Path(path)
    if not file_path.is_file():
        msg = f"Configuration file not found: {file_path}"
        raise ConfigurationError(msg)

    try:
        with file_path.open("rb") as fh:
            raw = tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid configuration file format: {file_path}: {exc}"
        raise ConfigurationError(msg) from exc

    return config_from_mapping(raw, source=str(file_path))


def config_from_mapping(raw: dict[str, Any], *, source: str = "<mapping>") -> AppConfig:
    """Build an ``AppConfig`` from an already-parsed mapping."""
    values = dict(raw)

    env = values.pop("env", None)
    if env is not None:
        values.setdefault("debug", env == "development")

    database = values.pop("database", None)
    if database is not None:
        if not isinstance(database, dict):
            msg = f"{source}: [database] must be a table"
            raise ConfigurationError(msg)
        if "url" in database:
            values["db_url"] = database["url"]
        if "echo" in database:
            values["db_echo"] = bool(database["echo"])

    unknown = sorted(set(values) - _FIELD_NAMES)
    if unknown:
        msg = f"{source}: unknown configuration keys: {', '.join(unknown)}"
        raise ConfigurationError(msg)

    return AppConfig(**values)
