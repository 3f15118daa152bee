"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError so callers can
handle every database failure with one except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""


class DatabaseConnectionError(PersistenceError):
    """Raised when the database URL is invalid or the database is unreachable."""


class RecordNotFoundError(PersistenceError):
    """Raised when an operation requires a record that does not exist.

    Plain lookups return None instead.
    """


class DataIntegrityError(PersistenceError):
    """Raised on constraint violations.

    Examples:
    - a second posting with the same url
    - a second assessment for the same posting and skill
    - a status outside its enumeration
    """
