"""
Exception hierarchy raised by the service layer.

Write operations wrap database failures in ``DataAccessError`` with a
static, human-readable message; the original ``sqlite3`` error is
chained as ``__cause__`` and logged by the service.  The remaining
classes describe domain outcomes the API layer maps to HTTP statuses.
"""


class PolitirateError(Exception):
    """Base class for errors raised by the services."""


class DataAccessError(PolitirateError):
    """A write against the database failed."""


class NotFoundError(PolitirateError):
    """The requested record does not exist."""


class PermissionDeniedError(PolitirateError):
    """The caller may not modify the record."""


class ConflictError(PolitirateError):
    """The write clashes with existing data."""


class ValidationError(PolitirateError):
    """A value is outside its allowed vocabulary or range."""
