"""Data layer error hierarchy."""

from bookswap.errors import BookswapError


class DataError(BookswapError):
    """Base for all bookswap.data errors."""


class DriverNotInstalledError(DataError):
    """Raised when the database URL names a driver bookswap cannot use."""


class ConnectionError(DataError):  # noqa: A001
    """Raised when a database connection cannot be established."""


class QueryError(DataError):
    """Raised when a SQL statement fails."""


class InvalidArgument(DataError, ValueError):
    """Raised when a query builder call receives an unusable argument."""


class GuardError(DataError):
    """Raised when UPDATE or DELETE is attempted without a WHERE condition."""


class BuilderConsumedError(DataError):
    """Raised when a query builder is used again after its terminal call."""


class MigrationError(DataError):
    """Raised when a migration cannot be discovered or applied."""
