"""Command line entrypoint for checking bans policies and explaining dependencies."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .bans.config import ConfigError, ConfigValidationError
from .bans.loader import load_config
from .diag import Files
from .grapher import Grapher, GraphLookupError
from .models.package_id import PackageId
from .parsers.package_lock import LockfileError
from .parsers.package_lock import parse as parse_package_lock
from .report import aggregate
from .spans import SpanIndex

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CONFLICTS = 2

DEFAULT_LOCKFILE = Path("package-lock.json")


def _check(args: argparse.Namespace) -> int:
    files = Files()
    try:
        raw, file_id = load_config(files, args.config)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_ERROR

    try:
        raw.validate(file_id)
    except ConfigValidationError as exc:
        print(json.dumps(aggregate(exc.diagnostics, files), indent=2))
        return EXIT_CONFLICTS

    print(json.dumps(aggregate([], files), indent=2))
    return EXIT_OK


def _why(args: argparse.Namespace) -> int:
    try:
        target = PackageId.parse(args.package)
        graph = parse_package_lock(args.lockfile)
        tree = Grapher(graph).write_graph(target)
    except ValueError as exc:
        print(f"ERROR: Invalid package requirement {args.package!r}: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except LockfileError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except GraphLookupError as exc:
        print(f"ERROR: {exc} in {args.lockfile}", file=sys.stderr)
        return EXIT_ERROR

    sys.stdout.write(tree)
    return EXIT_OK


def _spans(args: argparse.Namespace) -> int:
    try:
        graph = parse_package_lock(args.lockfile)
    except LockfileError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_ERROR

    _, text = SpanIndex.build(graph)
    sys.stdout.write(text)
    return EXIT_OK


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="npm-bans", description=__doc__)
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Validate a bans policy file")
    check.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the policy (defaults to $NPM_BANS_CONFIG, then bans.yaml)",
    )
    check.set_defaults(func=_check)

    why = sub.add_parser("why", help="Show every path that pulls a package into the graph")
    why.add_argument("package", help="Package to explain, e.g. 'debug' or 'debug@^4'")
    why.add_argument("--lockfile", type=Path, default=DEFAULT_LOCKFILE)
    why.set_defaults(func=_why)

    spans = sub.add_parser("spans", help="Print the synthesized lockfile used to anchor diagnostics")
    spans.add_argument("--lockfile", type=Path, default=DEFAULT_LOCKFILE)
    spans.set_defaults(func=_spans)

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
