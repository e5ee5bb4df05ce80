"""``perch routes`` — print the route table in dispatch order."""

import argparse
import sys

from perch.cli._resolve import resolve_kernel
from perch.errors import ConfigurationError


def run_routes(args: argparse.Namespace) -> None:
    """Resolve ``args.app``, boot it, and print METHOD, PATH, HANDLER, MIDDLEWARE."""
    try:
        kernel = resolve_kernel(args.app)
        kernel._ensure_frozen()
    except (ModuleNotFoundError, AttributeError, TypeError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    routes = kernel.routes
    if not routes:
        print("No routes registered.")
        return

    rows = [
        (route.method, route.path, route.handler, ", ".join(route.middleware) or "-")
        for route in routes
    ]
    headers = ("METHOD", "PATH", "HANDLER", "MIDDLEWARE")
    widths = [max(len(h), *(len(row[i]) for row in rows)) for i, h in enumerate(headers[:-1])]

    fmt = "  ".join(f"{{:<{w}}}" for w in widths) + "  {}"
    print(fmt.format(*headers))
    print("-" * min(sum(widths) + 2 * len(widths) + len(headers[-1]), 80))
    for row in rows:
        print(fmt.format(*row))
