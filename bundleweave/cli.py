"""CLI entrypoints for bundleweave commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .build import CompileError
from .config import ConfigError
from .logging import configure_logging
from .orchestrator import Orchestrator
from .serializer import SerializationError


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_root_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--root",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bundleweave",
        description="Bundle client components per server-rendered template.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    config_parser = subparsers.add_parser(
        "config",
        help="Scan templates and write the bundle document.",
    )
    _add_verbose_option(config_parser, suppress_default=True)
    _add_root_option(config_parser)
    config_parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the document instead of writing it.",
    )
    config_parser.add_argument(
        "--extra-path",
        dest="extra_paths",
        action="append",
        default=[],
        metavar="PATH",
        help="Additional template file or directory to scan (repeatable).",
    )

    build_parser = subparsers.add_parser(
        "build",
        help="Compile every bundle and inject script tags.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    _add_root_option(build_parser)

    clear_parser = subparsers.add_parser(
        "clear",
        help="Delete bundle files and remove script tags.",
    )
    _add_verbose_option(clear_parser, suppress_default=True)
    _add_root_option(clear_parser)

    update_parser = subparsers.add_parser(
        "update",
        help="Rebuild the bundles that contain the given component files.",
    )
    _add_verbose_option(update_parser, suppress_default=True)
    _add_root_option(update_parser)
    update_parser.add_argument("files", nargs="+", help="Component source files.")

    report_parser = subparsers.add_parser(
        "report",
        help="Print the template/component usage matrix as CSV.",
    )
    _add_verbose_option(report_parser, suppress_default=True)
    _add_root_option(report_parser)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP preview service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for bundleweave commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    to_stdout = bool(getattr(args, "stdout", False)) or args.command == "report"
    configure_logging(verbose=bool(args.verbose), quiet=to_stdout)

    orchestrator = Orchestrator()

    try:
        if args.command == "config":
            outcome = orchestrator.run_config(args.root, args.extra_paths, dry_run=to_stdout)
            if to_stdout:
                sys.stdout.write(outcome.text)
            else:
                print(f"Generated {_relativize(outcome.path)}")
        elif args.command == "build":
            results = orchestrator.run_build(args.root)
            for result in results:
                print(f"Built {result.bundle} -> {len(result.templates)} template(s)")
            print("Build complete!")
        elif args.command == "clear":
            cleared = orchestrator.run_clear(args.root)
            print(f"Cleared {len(cleared)} bundle(s)")
        elif args.command == "update":
            results = orchestrator.run_update(args.root, args.files)
            if not results:
                print("No bundles found containing the given components")
            for result in results:
                print(f"Updated {result.bundle} -> {len(result.templates)} template(s)")
        elif args.command == "report":
            sys.stdout.write(orchestrator.run_report(args.root))
        elif args.command == "serve":
            from .service import run_service

            run_service(host=args.host, port=args.port)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except FileNotFoundError as exc:
        parser.exit(1, f"{exc}\n")
    except (ConfigError, SerializationError, CompileError) as exc:
        parser.exit(1, f"bundleweave {args.command} failed: {exc}\nRun with --verbose for more details.\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
