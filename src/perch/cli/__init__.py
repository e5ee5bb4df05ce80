"""The ``perch`` command: serve a kernel, or list its routes.

Installed through ``[project.scripts]`` as ``perch = "perch.cli:main"``.
Both subcommands take an optional ``module:attribute`` target that
defaults to the bundled demo site.
"""

import argparse
import sys

DEFAULT_TARGET = "perch.site:create_kernel"


def _add_target(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "app",
        nargs="?",
        default=DEFAULT_TARGET,
        help=f"Kernel or kernel factory as module:attribute (default: {DEFAULT_TARGET})",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="perch",
        description="Serve and inspect perch kernels.",
    )
    commands = parser.add_subparsers(dest="command")

    run = commands.add_parser("run", help="Serve the kernel over HTTP")
    _add_target(run)
    run.add_argument("--host", help="Bind address (default: APP_HOST or 127.0.0.1)")
    run.add_argument("--port", type=int, help="Bind port (default: APP_PORT or 8000)")
    run.add_argument("--reload", action="store_true", help="Restart when sources change")

    routes = commands.add_parser("routes", help="Print the route table in dispatch order")
    _add_target(routes)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ``perch`` command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    match args.command:
        case "run":
            from perch.cli._run import run_server

            run_server(args)
        case "routes":
            from perch.cli._routes import run_routes

            run_routes(args)
        case _:
            parser.print_help()
            sys.exit(0)
