"""``perch run`` — serve a Kernel with pounce."""

import argparse
import sys

from perch.cli._resolve import resolve_kernel
from perch.errors import ConfigurationError
from perch.logs import configure_logging


def run_server(args: argparse.Namespace) -> None:
    """Resolve ``args.app``, configure logging and start the server.

    ``--host`` and ``--port`` override the kernel's config.
    """
    try:
        kernel = resolve_kernel(args.app)
        configure_logging(kernel.config)
    except (ModuleNotFoundError, AttributeError, TypeError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    from perch.server.dev import run_dev_server

    run_dev_server(
        kernel,
        args.host or kernel.config.host,
        args.port if args.port is not None else kernel.config.port,
        reload=args.reload,
        app_path=args.app if args.reload else None,
    )
