"""User persistence over ``perch.data``."""

import logging
from dataclasses import replace

from perch.data import Database
from perch.site.models import User

logger = logging.getLogger("perch.site")

USERS_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT NOT NULL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""

_COLUMNS = "id, name, email, created_at"


class UserRepository:
    """Key-based CRUD for the ``users`` table.

    Every method may raise ``perch.data.QueryError``; callers let it
    propagate to the error interceptor.
    """

    __slots__ = ("db",)

    def __init__(self, db: Database) -> None:
        self.db = db

    async def create_schema(self) -> None:
        await self.db.execute_script(USERS_SCHEMA)

    async def find(self, user_id: int) -> User | None:
        return await self.db.fetch_one(
            User, f"SELECT {_COLUMNS} FROM users WHERE id = ?", user_id
        )

    async def find_all(self) -> list[User]:
        return await self.db.fetch(User, f"SELECT {_COLUMNS} FROM users ORDER BY id")

    async def save(self, user: User) -> User:
        """Insert *user* when it has no id, update it otherwise.

        Returns the stored user, carrying the id assigned on insert.
        """
        if user.id is None:
            new_id = await self.db.insert(
                "INSERT INTO users (name, email) VALUES (?, ?)", user.name, user.email
            )
            logger.info("Created user %d (%s)", new_id, user.email)
            stored = await self.find(new_id)
            return stored if stored is not None else replace(user, id=new_id)

        await self.db.execute(
            "UPDATE users SET name = ?, email = ? WHERE id = ?",
            user.name,
            user.email,
            user.id,
        )
        return user

    async def delete(self, user_id: int) -> bool:
        """Delete a user. ``True`` when a row was removed."""
        removed = await self.db.execute("DELETE FROM users WHERE id = ?", user_id)
        return removed > 0
