"""Route definition and dispatch results — frozen dataclasses."""

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:  ``/users``       (is_param=False)
    Param:   ``/{id}``        (is_param=True, param_name="id")
    Typed:   ``/{id:int}``    (is_param=True, param_name="id", param_type="int")
    Regex:   ``/{id:\\d+}``    (is_param=True, param_name="id", param_type="\\d+")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class Route:
    """One entry of the route table.

    ``handler`` is a ``"<controller>.<action>"`` id resolved through the
    service container. ``middleware`` lists route-scoped middleware ids,
    outermost first.
    """

    method: str
    path: str
    handler: str
    middleware: tuple[str, ...] = ()
    name: str | None = None


@dataclass(frozen=True, slots=True)
class Found:
    """The path and method matched ``route``."""

    route: Route
    path_params: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class NoMatch:
    """No registered pattern matches the path."""


@dataclass(frozen=True, slots=True)
class MethodMismatch:
    """The path matches, but not for the requested method."""

    allowed: frozenset[str]

    @property
    def allow_header(self) -> str:
        """Value for the ``Allow`` response header (sorted, stable)."""
        return ", ".join(sorted(self.allowed))


type MatchResult = Found | NoMatch | MethodMismatch
