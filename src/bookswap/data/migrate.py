"""Forward-only SQL migrations.

Migrations are numbered ``.sql`` files in a directory::

    migrations/
        001_initial.sql
        002_add_book_isbn.sql

Applied versions are recorded in ``_bookswap_migrations``. Each file
runs in its own transaction together with its tracking row; a failing
file is rolled back and stops the run.

Usage::

    result = await migrate(db, "migrations/")
    print(result.summary)
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from bookswap.data.database import Database
from bookswap.data.errors import MigrationError

logger = logging.getLogger("bookswap.data")

TRACKING_TABLE = "_bookswap_migrations"

_CREATE_TRACKING_SQL = f"""
CREATE TABLE IF NOT EXISTS {TRACKING_TABLE} (
    version    INTEGER PRIMARY KEY,
    name       TEXT NOT NULL,
    applied_at TEXT NOT NULL
)
"""


@dataclass(frozen=True, slots=True)
class Migration:
    version: int
    name: str
    sql: str


@dataclass(frozen=True, slots=True)
class MigrationResult:
    """What a ``migrate()`` run did."""

    applied: tuple[str, ...]
    already_applied: int
    total_available: int

    @property
    def summary(self) -> str:
        if not self.applied:
            return f"Already up to date ({self.already_applied} migrations applied)"
        return f"Applied {len(self.applied)} migration(s): {', '.join(self.applied)}"


def discover_migrations(directory: str | Path) -> list[Migration]:
    """Parse ``NNN_description.sql`` files, ordered by version.

    Raises ``MigrationError`` for a missing directory, a badly named or
    empty file, or two files with the same version.
    """
    path = Path(directory)
    if not path.is_dir():
        msg = f"Migration directory does not exist: {path}"
        raise MigrationError(msg)

    migrations: list[Migration] = []
    seen: dict[int, str] = {}
    for sql_file in sorted(path.glob("*.sql")):
        prefix, sep, _ = sql_file.stem.partition("_")
        if not sep:
            msg = f"Invalid migration filename: {sql_file.name} (expected NNN_description.sql)"
            raise MigrationError(msg)
        if not prefix.isdigit():
            msg = f"Invalid migration version in {sql_file.name}: {prefix!r} is not an integer"
            raise MigrationError(msg)
        version = int(prefix)
        if version in seen:
            msg = f"Duplicate migration version {version}: {seen[version]} and {sql_file.name}"
            raise MigrationError(msg)
        seen[version] = sql_file.name

        sql = sql_file.read_text(encoding="utf-8").strip()
        if not sql:
            msg = f"Empty migration file: {sql_file.name}"
            raise MigrationError(msg)
        migrations.append(Migration(version=version, name=sql_file.stem, sql=sql))

    migrations.sort(key=lambda m: m.version)
    return migrations


async def applied_versions(db: Database) -> set[int]:
    """Versions recorded in the tracking table (created if missing)."""
    await db.execute(_CREATE_TRACKING_SQL)
    rows = await db.fetch(f"SELECT version FROM {TRACKING_TABLE}")
    return {int(row["version"]) for row in rows}


async def _apply(db: Database, migration: Migration) -> None:
    async with db.transaction():
        await db.execute_script(migration.sql)
        await db.execute(
            f"INSERT INTO {TRACKING_TABLE} (version, name, applied_at) VALUES (?, ?, ?)",
            migration.version,
            migration.name,
            datetime.now(UTC).isoformat(),
        )


async def migrate(db: Database, directory: str | Path) -> MigrationResult:
    """Apply the migrations in *directory* that have not run yet.

    Raises:
        MigrationError: If the directory is invalid or a migration fails.
    """
    migrations = discover_migrations(directory)
    done = await applied_versions(db)

    applied: list[str] = []
    for migration in migrations:
        if migration.version in done:
            continue
        try:
            await _apply(db, migration)
        except Exception as exc:
            msg = f"Migration {migration.name} failed: {exc}"
            raise MigrationError(msg) from exc
        logger.info("Applied migration %s", migration.name)
        applied.append(migration.name)

    return MigrationResult(
        applied=tuple(applied),
        already_applied=len(done),
        total_available=len(migrations),
    )
