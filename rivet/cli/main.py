"""Rivet CLI: rivet dev / rivet start."""

import argparse
import sys
from typing import List, Optional

from rivet.core.errors import RivetError


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the rivet CLI."""
    from rivet import __version__

    parser = argparse.ArgumentParser(
        prog="rivet",
        description="File-routed full-stack framework with server data loading.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # rivet dev
    dev_parser = subparsers.add_parser("dev", help="Start the development server with hot reload")
    dev_parser.add_argument("root", nargs="?", default=".", help="Project root directory")
    dev_parser.add_argument("--host", default=None, help="Bind address (default: RIVET_HOST or localhost)")
    dev_parser.add_argument("--port", type=int, default=None, help="Bind port (default: RIVET_PORT or 3000)")
    dev_parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    # rivet start
    start_parser = subparsers.add_parser("start", help="Start the production server")
    start_parser.add_argument("root", nargs="?", default=".", help="Project root directory")
    start_parser.add_argument("--host", default=None, help="Bind address (default: RIVET_HOST or localhost)")
    start_parser.add_argument("--port", type=int, default=None, help="Bind port (default: RIVET_PORT or 3000)")
    start_parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    from .commands.dev import check_project, run_server

    try:
        from rivet.core.config import RivetConfig

        config = RivetConfig.from_env(args.root)
        if not check_project(config.project_root, config.app_dir):
            return 1
        run_server(
            root=args.root,
            host=args.host,
            port=args.port,
            dev=args.command == "dev",
            verbose=args.verbose,
        )
    except RivetError as e:
        print(f"rivet: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
