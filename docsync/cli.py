"""
Command-line access to the synchronization engine.

    python -m docsync parse docs/CAP-123456.md --type capability
    python -m docsync normalize docs/ENB-654321.md --type enabler
    python -m docsync new-id ENB --existing ENB-100000 ENB-100001

Every command writes to stdout; documents are never written back to disk.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Sequence

from docsync.config import load_config_from_pyproject
from docsync.errors import DocSyncError
from docsync.models import DocumentType, IdPrefix, document_from_dict
from docsync.parser import DocumentParser
from docsync.serializer import DocumentSerializer
from docsync.validation import validate_document

logger = logging.getLogger("docsync")

EXIT_OK = 0
EXIT_WARNINGS = 1
EXIT_ERROR = 2

MAX_LOG_BYTES = 1_000_000
LOG_BACKUP_COUNT = 3


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None) -> None:
    """Log to stderr, and to a rotating JSON-lines file when requested."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level = logging.DEBUG if verbose else logging.WARNING
    logger.setLevel(logging.DEBUG if log_file else level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(console)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_file,
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
        )
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(
            logging.Formatter(
                '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
                '"message": "%(message)s", "name": "%(name)s"}'
            )
        )
        logger.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docsync",
        description="Convert capability/enabler markdown to structured records and back",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show debug logging on stderr",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        metavar="PATH",
        help="Also write JSON-lines logs to a rotating file",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    type_choices = [t.value for t in DocumentType]

    parse_cmd = subcommands.add_parser("parse", help="Print a document as JSON")
    parse_cmd.add_argument("file", type=Path)
    parse_cmd.add_argument("--type", choices=type_choices, required=True)

    render_cmd = subcommands.add_parser("render", help="Print markdown for a JSON record")
    render_cmd.add_argument("file", type=Path)

    normalize_cmd = subcommands.add_parser(
        "normalize", help="Print the canonical markdown for a document"
    )
    normalize_cmd.add_argument("file", type=Path)
    normalize_cmd.add_argument("--type", choices=type_choices, required=True)

    check_cmd = subcommands.add_parser("check", help="List problems in a document")
    check_cmd.add_argument("file", type=Path)
    check_cmd.add_argument("--type", choices=type_choices, required=True)

    new_id_cmd = subcommands.add_parser("new-id", help="Allocate an unused ID")
    new_id_cmd.add_argument("prefix", choices=[p.value for p in IdPrefix])
    new_id_cmd.add_argument(
        "--existing",
        nargs="*",
        default=[],
        metavar="ID",
        help="IDs already in use",
    )
    new_id_cmd.add_argument(
        "--config-dir",
        type=Path,
        metavar="DIR",
        help="Directory whose pyproject.toml holds [tool.docsync] (default: cwd)",
    )
    return parser


def run(args: argparse.Namespace) -> int:
    """Execute a parsed command line and return the exit code."""
    if args.command == "parse":
        document = DocumentParser.parse_file(args.file, args.type)
        print(document.to_json())
        return EXIT_OK

    if args.command == "render":
        data = json.loads(args.file.read_text(encoding="utf-8"))
        document = document_from_dict(data)
        sys.stdout.write(DocumentSerializer.serialize(document))
        return EXIT_OK

    if args.command == "normalize":
        document = DocumentParser.parse_file(args.file, args.type)
        sys.stdout.write(DocumentSerializer.serialize(document, args.type))
        return EXIT_OK

    if args.command == "check":
        document = DocumentParser.parse_file(args.file, args.type)
        warnings = validate_document(document)
        for warning in warnings:
            print(f"- {warning}")
        if not warnings:
            print("No problems found")
        return EXIT_WARNINGS if warnings else EXIT_OK

    if args.command == "new-id":
        config = load_config_from_pyproject(args.config_dir)
        print(config.build_allocator().generate(args.prefix, args.existing))
        return EXIT_OK

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    try:
        return run(args)
    except (DocSyncError, OSError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
