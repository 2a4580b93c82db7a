"""``tfdoc`` command line: list normalized entities of Terraform files as JSON lines."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import IO

from .config import ConnectionConfig
from .entities import Entity
from .errors import TFDocCoreError
from .listing import LISTERS
from .parser import FilePath, ParserService

logger = logging.getLogger(__name__)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tfdoc",
        description="List Terraform configuration, plan and state entities with source locations.",
    )
    parser.add_argument("paths", nargs="*", help="files to read")
    parser.add_argument("-k", "--kind", choices=sorted(LISTERS), default="resource",
                        help="entity kind to list (default: resource)")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--state", action="store_true", help="treat the files as state exports")
    group.add_argument("--plan", action="store_true", help="treat the files as plan exports")
    parser.add_argument("-c", "--config", help="JSON connection configuration with path lists")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def _file_paths(args: argparse.Namespace) -> list[FilePath]:
    items: list[FilePath] = []
    if args.config:
        items.extend(ConnectionConfig.from_file(args.config).file_paths())
    for path in args.paths:
        if args.state or args.plan:
            items.append(FilePath(path=path, is_plan=args.plan, is_state=args.state))
        else:
            items.append(FilePath.from_path(path))
    return items


def run(args: argparse.Namespace, dest: IO[str]) -> int:
    """List every file; returns the process exit status."""
    lister = LISTERS[args.kind]
    parser = ParserService()

    def sink(entity: Entity) -> None:
        print(json.dumps(entity.to_row(), sort_keys=True, default=str), file=dest)

    status = 0
    for item in _file_paths(args):
        try:
            lister(item, sink, parser)
        except (TFDocCoreError, OSError) as exc:
            print(f"Error listing '{item.path}': {exc}", file=sys.stderr)
            status = 1
    return status


def main(argv: list[str] | None = None) -> int:
    """Entry point of the ``tfdoc`` console script."""
    args = _build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if not args.paths and not args.config:
        print("tfdoc: no files given (pass paths or --config)", file=sys.stderr)
        return 2
    return run(args, sys.stdout)


if __name__ == "__main__":
    sys.exit(main())
