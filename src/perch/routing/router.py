"""Compiled router with ordered, first-match-wins dispatch.

Routes are registered during setup and compiled into an immutable
table of anchored regular expressions when the kernel boots.
Registration order is significant: when several patterns accept the
same method and path, the first one registered wins.
"""

import re
from dataclasses import dataclass

from perch.errors import ConfigurationError
from perch.routing.params import constraint_pattern
from perch.routing.route import Found, MatchResult, MethodMismatch, NoMatch, PathSegment, Route


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"            -> [PathSegment("users")]
        "/users/{id}"       -> [PathSegment("users"), PathSegment("{id}", is_param=True, ...)]
        "/users/{id:int}"   -> [..., PathSegment("{id:int}", is_param=True, param_type="int")]
        "/users/{id:\\d+}"   -> [..., PathSegment("{id:\\d+}", is_param=True, param_type="\\d+")]
    """
    if not path.startswith("/"):
        msg = f"Route path must start with '/': {path!r}"
        raise ConfigurationError(msg)
    if "<" in path and ">" in path:
        msg = (
            f"Route path {path!r} uses <param> placeholders; "
            "perch expects {param} (optionally {param:constraint})."
        )
        raise ConfigurationError(msg)

    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
            if ":" in inner:
                param_name, param_type = inner.split(":", 1)
            else:
                param_name = inner
                param_type = "str"
            if not param_name.isidentifier():
                msg = f"Invalid placeholder name {param_name!r} in route {path!r}"
                raise ConfigurationError(msg)
            segments.append(
                PathSegment(
                    value=part,
                    is_param=True,
                    param_name=param_name,
                    param_type=param_type,
                )
            )
        else:
            segments.append(PathSegment(value=part))
    return segments


def compile_pattern(path: str) -> re.Pattern[str]:
    """Compile a route path into an anchored regex with named groups.

    Anchored with ``\\Z``: unlike ``$`` it does not accept a trailing newline.
    """
    segments = parse_path(path)
    names: set[str] = set()
    parts: list[str] = []
    for seg in segments:
        if not seg.is_param:
            parts.append(re.escape(seg.value))
            continue
        assert seg.param_name is not None
        if seg.param_name in names:
            msg = f"Duplicate placeholder {seg.param_name!r} in route {path!r}"
            raise ConfigurationError(msg)
        names.add(seg.param_name)
        parts.append(f"(?P<{seg.param_name}>{constraint_pattern(seg.param_type)})")
    return re.compile("^/" + "/".join(parts) + r"\Z")


@dataclass(frozen=True, slots=True)
class _CompiledRoute:
    route: Route
    regex: re.Pattern[str]


class Router:
    """Compiled router.

    Usage::

        router = Router()
        router.add(Route("GET", "/users", "users.index"))
        router.add(Route("GET", "/users/{id:\\d+}", "users.show"))
        router.compile()
        result = router.dispatch("GET", "/users/42")
    """

    __slots__ = ("_compiled", "_pending", "_table")

    def __init__(self) -> None:
        self._pending: list[Route] = []
        self._table: tuple[_CompiledRoute, ...] = ()
        self._compiled = False

    def add(self, route: Route) -> None:
        """Add a route to the router. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)
        self._pending.append(route)

    @property
    def routes(self) -> list[Route]:
        """All registered routes, in registration order."""
        return list(self._pending)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added.

        Raises ``ConfigurationError`` if two routes share a method and
        pattern, or if a pattern is malformed.
        """
        seen: dict[tuple[str, str], Route] = {}
        table: list[_CompiledRoute] = []
        for route in self._pending:
            key = (route.method.upper(), route.path)
            if key in seen:
                msg = (
                    f"Duplicate route {key[0]} {key[1]!r}: "
                    f"{seen[key].handler!r} and {route.handler!r}"
                )
                raise ConfigurationError(msg)
            seen[key] = route
            table.append(_CompiledRoute(route=route, regex=compile_pattern(route.path)))
        self._table = tuple(table)
        self._compiled = True

    def dispatch(self, method: str, path: str) -> MatchResult:
        """Match a request method and path against the compiled table.

        Returns ``Found`` for the first registered route accepting both,
        ``MethodMismatch`` if the path matches only for other methods,
        and ``NoMatch`` otherwise. Path variables stay strings.
        """
        method = method.upper()
        allowed: set[str] = set()
        for entry in self._table:
            m = entry.regex.fullmatch(path)
            if m is None:
                continue
            if entry.route.method.upper() == method:
                return Found(route=entry.route, path_params=m.groupdict())
            allowed.add(entry.route.method.upper())

        if allowed:
            return MethodMismatch(allowed=frozenset(allowed))
        return NoMatch()
