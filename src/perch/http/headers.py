"""Request headers as an immutable, case-insensitive mapping.

Names are lower-cased once, on construction. Repeated headers keep every
value in arrival order; item access returns the first.
"""

from collections.abc import Iterable, Iterator, Mapping


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive view over ``(name, value)`` pairs.

    ``headers["X-Auth-Token"]`` and ``headers["x-auth-token"]`` are the
    same lookup. Use ``get_list`` for headers that may repeat.
    """

    __slots__ = ("_pairs",)

    def __init__(self, pairs: Mapping[str, str] | Iterable[tuple[str, str]] = ()) -> None:
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        self._pairs: tuple[tuple[str, str], ...] = tuple(
            (name.lower(), value) for name, value in items
        )

    @classmethod
    def from_asgi(cls, raw: Iterable[tuple[bytes, bytes]]) -> Headers:
        """Decode the byte pairs of an ASGI scope (latin-1, per RFC 9110)."""
        return cls((name.decode("latin-1"), value.decode("latin-1")) for name, value in raw)

    def __getitem__(self, key: str) -> str:
        wanted = key.lower()
        for name, value in self._pairs:
            if name == wanted:
                return value
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name for name, _ in self._pairs))

    def __len__(self) -> int:
        return len(dict.fromkeys(name for name, _ in self._pairs))

    def __repr__(self) -> str:
        return f"Headers({list(self._pairs)!r})"

    def get_list(self, key: str) -> list[str]:
        """Every value sent for *key*, in order."""
        wanted = key.lower()
        return [value for name, value in self._pairs if name == wanted]

    def with_header(self, name: str, value: str) -> Headers:
        """Copy with all values of *name* replaced by *value*."""
        wanted = name.lower()
        kept = [pair for pair in self._pairs if pair[0] != wanted]
        return Headers([*kept, (wanted, value)])

    @property
    def pairs(self) -> tuple[tuple[str, str], ...]:
        """The stored ``(lower-cased name, value)`` pairs."""
        return self._pairs
