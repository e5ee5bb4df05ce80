"""Typed async database access for perch.

SQL in, frozen dataclasses out. Not an ORM.

Basic usage::

    from perch.data import Database

    db = Database("sqlite:///app.db")

    @dataclass(frozen=True, slots=True)
    class User:
        name: str
        email: str
        id: int | None = None

    users = await db.fetch(User, "SELECT * FROM users")
    user = await db.fetch_one(User, "SELECT * FROM users WHERE id = ?", 42)
"""

from perch.data.database import Database
from perch.data.errors import DataError, DriverNotInstalledError, QueryError

__all__ = [
    "DataError",
    "Database",
    "DriverNotInstalledError",
    "QueryError",
]
