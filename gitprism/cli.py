"""CLI entrypoints for gitprism commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable, TextIO

from .archive import ArchiveError
from .config import ConfigError, load_config
from .fetcher import GitHubError
from .logging import configure_logging
from .models import DetailLevel
from .pipeline import Ingestor
from .request_parser import ParseError, normalize_target, parse_structured


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitprism",
        description="Convert GitHub repositories into LLM-ready Markdown.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .gitprism.yml or the directory containing it.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest_parser = subparsers.add_parser(
        "ingest",
        help="Render a repository as Markdown.",
    )
    _add_verbose_option(ingest_parser, suppress_default=True)
    ingest_parser.add_argument(
        "target",
        help="GitHub URL or owner/repo[/tree/ref[/path]] shorthand.",
    )
    ingest_parser.add_argument(
        "--detail",
        choices=DetailLevel.tokens(),
        default=None,
        help="Output detail level (defaults to full).",
    )
    ingest_parser.add_argument("--ref", default=None, help="Branch, tag, or commit SHA.")
    ingest_parser.add_argument("--path", default=None, help="Subdirectory to scope results to.")
    ingest_parser.add_argument(
        "--archive",
        type=Path,
        default=None,
        help="Read a local zipball instead of downloading it from GitHub.",
    )
    ingest_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write Markdown to this file instead of stdout.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for gitprism commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    try:
        config = load_config(Path(args.config))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port, verbose=bool(args.verbose))
        return

    try:
        descriptor = normalize_target(args.target, detail=args.detail)
        if args.ref or args.path:
            descriptor = parse_structured(
                descriptor.repo_name,
                ref=args.ref or descriptor.ref,
                path=args.path or descriptor.path,
                detail=descriptor.detail,
            )
    except ParseError as exc:
        parser.exit(2, f"{exc}\n")

    ingestor = Ingestor(config)
    try:
        if args.archive is not None:
            outcome = ingestor.process_archive(
                descriptor, args.archive.read_bytes(), ref=descriptor.ref or "local"
            )
        else:
            outcome = ingestor.run(descriptor)
    except (GitHubError, ArchiveError, OSError) as exc:
        parser.exit(1, f"gitprism ingest failed: {exc}\nRun with --verbose for more details.\n")

    if args.output is not None:
        with args.output.open("w", encoding="utf-8") as handle:
            _write_chunks(outcome.chunks(), handle)
        print(f"Markdown written to {_relativize(args.output)}")
    else:
        _write_chunks(outcome.chunks(), sys.stdout)


def _write_chunks(chunks: Iterable[str], stream: TextIO) -> None:
    for chunk in chunks:
        stream.write(chunk)
    stream.flush()


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":  # pragma: no cover
    main(sys.argv[1:])
