"""CLI entrypoints for tokenfinder commands."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from .config import ConfigError, TokenFinderConfig, load_config
from .errors import ParseError
from .events import ConnectionProgress, Event, ScanProgressEvent, TokensProgress
from .logging import configure_logging, get_logger
from .session import Session, session_from_config
from .tokens import extract, load_document, validate_tokens

logger = get_logger("cli")


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


def _add_source_options(parser: argparse.ArgumentParser, *, branch: bool = True) -> None:
    parser.add_argument(
        "url",
        nargs="?",
        default=None,
        help="GitHub repository URL (defaults to repository.url from the config file).",
    )
    if branch:
        parser.add_argument("--branch", default=None, help="Branch to read tokens from.")
    parser.add_argument(
        "--dir",
        dest="directory",
        default=None,
        help="Directory inside the repository to scan (defaults to the root).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tokenfinder",
        description="Extract design tokens from JSON files in GitHub repositories.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log warnings and errors.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("."),
        help="Path to .tokenfinder.yml or the directory containing it.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract_parser = subparsers.add_parser(
        "extract",
        help="Extract tokens from a local JSON token file.",
    )
    _add_verbose_option(extract_parser, suppress_default=True)
    extract_parser.add_argument("file", type=Path, help="Token JSON file to read.")
    extract_parser.add_argument(
        "--validate",
        action="store_true",
        help="Report value and alias problems after extraction.",
    )

    branches_parser = subparsers.add_parser(
        "branches",
        help="Test the connection and list repository branches.",
    )
    _add_verbose_option(branches_parser, suppress_default=True)
    _add_source_options(branches_parser, branch=False)

    files_parser = subparsers.add_parser(
        "files",
        help="List candidate token files in a repository.",
    )
    _add_verbose_option(files_parser, suppress_default=True)
    _add_source_options(files_parser)

    fetch_parser = subparsers.add_parser(
        "fetch",
        help="Fetch and extract tokens from a repository.",
    )
    _add_verbose_option(fetch_parser, suppress_default=True)
    _add_source_options(fetch_parser)
    fetch_parser.add_argument(
        "--refresh",
        action="store_true",
        help="Ignore the token cache for this run.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for tokenfinder commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file
    )

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "extract":
        _run_extract(parser, args.file, validate=bool(args.validate))
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port, config=config)
    elif args.command in {"branches", "files", "fetch"}:
        url = args.url or config.repository.url
        if not url:
            parser.exit(1, "A repository URL is required (argument or repository.url in config)\n")
        session = session_from_config(config, emit=_log_progress)
        code = asyncio.run(_run_remote(args, session, url, config))
        if code:
            parser.exit(code, "Run with --verbose for more details.\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_extract(parser: argparse.ArgumentParser, path: Path, *, validate: bool) -> None:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        parser.exit(1, f"Cannot read {path}: {exc}\n")
    try:
        document = load_document(text)
    except ParseError as exc:
        parser.exit(1, f"{path}: {exc}\n")

    tokens = extract(document, str(path))
    for token in tokens:
        print(json.dumps(token.to_dict(), ensure_ascii=False))
    logger.info("Extracted %d tokens from %s", len(tokens), path)
    if validate:
        for issue in validate_tokens(tokens):
            print(issue.describe(), file=sys.stderr)


async def _run_remote(
    args: argparse.Namespace, session: Session, url: str, config: TokenFinderConfig
) -> int:
    directory = args.directory if args.directory is not None else config.repository.directory or ""

    if args.command == "branches":
        outcome = await session.test_connection(url, directory)
        if not outcome.success:
            print(f"Connection failed: {outcome.error}", file=sys.stderr)
            return 1
        for branch in outcome.branches:
            print(branch)
        return 0

    branch = args.branch or config.repository.branch or "main"
    if args.command == "files":
        files_outcome = await session.detect_token_files(url, branch, directory)
        if not files_outcome.success:
            print(f"Token file detection failed: {files_outcome.error}", file=sys.stderr)
            return 1
        for path in files_outcome.files:
            print(path)
        return 0

    tokens_outcome = await session.fetch_tokens(
        url, branch, directory, force_refresh=bool(args.refresh)
    )
    if not tokens_outcome.success or tokens_outcome.metadata is None:
        print(f"Token fetch failed: {tokens_outcome.error}", file=sys.stderr)
        return 1
    for token in tokens_outcome.tokens:
        print(json.dumps(token.to_dict(), ensure_ascii=False))
    metadata = tokens_outcome.metadata
    source = "cache" if metadata.from_cache else "repository"
    print(
        f"{metadata.total_tokens} tokens from {metadata.files_processed}/{metadata.total_files} files ({source})",
        file=sys.stderr,
    )
    for error in metadata.errors:
        print(f"  {error.file}: {error.message}", file=sys.stderr)
    return 0


def _log_progress(event: Event) -> None:
    if isinstance(event, (ConnectionProgress, TokensProgress, ScanProgressEvent)):
        logger.info("%s", event.message)


if __name__ == "__main__":
    main(sys.argv[1:])
