"""Path parameter constraints.

Built-in converters for route path segments like ``{id:int}``. Any other
constraint is treated as an inline regular expression, so ``{id:\\d+}``
works as well.
"""

import re

from perch.errors import ConfigurationError

# Regex pattern for each named converter
CONVERTERS: dict[str, str] = {
    "str": r"[^/]+",
    "int": r"\d+",
    "float": r"\d+(?:\.\d+)?",
    "slug": r"[A-Za-z0-9_-]+",
}


def constraint_pattern(param_type: str) -> str:
    """Return the regex source for a placeholder constraint.

    Raises ``ConfigurationError`` if an inline constraint is not a valid
    regular expression.
    """
    if param_type in CONVERTERS:
        return CONVERTERS[param_type]
    try:
        re.compile(param_type)
    except re.error as exc:
        msg = f"Invalid route constraint {param_type!r}: {exc}"
        raise ConfigurationError(msg) from exc
    return param_type
