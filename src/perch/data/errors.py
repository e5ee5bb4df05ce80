"""Persistence error hierarchy."""

from perch.errors import PerchError


class DataError(PerchError):
    """Base for all perch.data errors."""


class DriverNotInstalledError(DataError):
    """Raised when a database URL names a driver perch cannot load."""


class QueryError(DataError):
    """Raised when a SQL statement fails. The driver error is chained."""
