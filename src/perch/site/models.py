"""Domain models. Frozen dataclasses, the same object from row to template."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class User:
    name: str
    email: str
    id: int | None = None
    created_at: str | None = None
