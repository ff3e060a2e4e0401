"""Batch command-line surface over the snapshot store.

Usage examples:
  sightline-cli list-snapshots --active
  sightline-cli validate-snapshot 3 "h1.title" "Welcome"
  sightline-cli compare-snapshots 3 4 --threshold 0.05 --output diff.png
  sightline-cli export-data snapshots snapshots.json
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path

from modules.snapshot.adapters.presenters import (
    comparison_json,
    snapshot_summary_json,
    validation_json,
)
from modules.snapshot.adapters.schemas import ValidationMode, ValidationRule
from modules.snapshot.application.comparison import DEFAULT_THRESHOLD
from modules.snapshot.application.service import SnapshotService
from modules.snapshot.domain.errors import MalformedInputError, SightlineError
from modules.snapshot.infrastructure.persistence import SqlSnapshotStore
from modules.snapshot.infrastructure.persistence.interchange import dumps_rows, loads_rows

logger = logging.getLogger("sightline.cli")

_SNAPSHOT_COLUMNS = ("id", "timestamp", "label", "tags", "archived")
_VALIDATION_COLUMNS = ("id", "snapshot_id", "timestamp", "result")
_DIFF_COLUMNS = ("id", "snapshot_id_a", "snapshot_id_b", "timestamp", "score")


def _print_table(rows: list[dict], columns: tuple[str, ...]) -> None:
    if not rows:
        print("(no rows)")
        return
    cells = [[_cell(row.get(column)) for column in columns] for row in rows]
    widths = [
        max(len(column), *(len(line[index]) for line in cells))
        for index, column in enumerate(columns)
    ]
    print("  ".join(column.ljust(width) for column, width in zip(columns, widths)))
    print("  ".join("-" * width for width in widths))
    for line in cells:
        print("  ".join(value.ljust(width) for value, width in zip(line, widths)))


def _cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _emit(rows: list[dict], columns: tuple[str, ...], as_json: bool) -> None:
    if as_json:
        print(json.dumps(rows, indent=2))
    else:
        _print_table(rows, columns)


def _cmd_list_snapshots(service: SnapshotService, args: argparse.Namespace) -> None:
    summaries = service.list_snapshots(archived=args.archived)
    rows = [snapshot_summary_json(summary) for summary in summaries]
    for row in rows:
        row["archived"] = int(row["archived"])
    _emit(rows, _SNAPSHOT_COLUMNS, args.json)


def _cmd_archive(service: SnapshotService, args: argparse.Namespace) -> None:
    service.set_archived(args.snapshot_id, True)
    print(f"Archived snapshot {args.snapshot_id}")


def _cmd_unarchive(service: SnapshotService, args: argparse.Namespace) -> None:
    service.set_archived(args.snapshot_id, False)
    print(f"Unarchived snapshot {args.snapshot_id}")


def _cmd_delete(service: SnapshotService, args: argparse.Namespace) -> None:
    removed = service.delete_snapshot(args.snapshot_id)
    print(
        f"Deleted snapshot {args.snapshot_id} "
        f"({removed['validations']} validations, {removed['diffs']} diffs)"
    )


def _cmd_list_validations(service: SnapshotService, args: argparse.Namespace) -> None:
    rows = [validation_json(record) for record in service.list_validations(args.snapshot)]
    _emit(rows, _VALIDATION_COLUMNS, args.json)


def _cmd_list_diffs(service: SnapshotService, args: argparse.Namespace) -> None:
    rows = [comparison_json(record) for record in service.list_diffs(args.snapshot)]
    _emit(rows, _DIFF_COLUMNS, args.json)


def _cmd_export(service: SnapshotService, args: argparse.Namespace) -> None:
    rows = service.export_table(args.table)
    Path(args.file).write_text(dumps_rows(rows), encoding="utf-8")
    print(f"Exported {len(rows)} rows from {args.table} to {args.file}")


def _cmd_import(service: SnapshotService, args: argparse.Namespace) -> None:
    path = Path(args.file)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise MalformedInputError(f"cannot read {path}: {exc}") from exc
    count = service.import_table(args.table, loads_rows(content))
    print(f"Imported {count} rows into {args.table} from {args.file}")


def _cmd_validate(service: SnapshotService, args: argparse.Namespace) -> None:
    rule = ValidationRule(selector=args.selector, text=args.text)
    record = service.validate(args.snapshot_id, [rule], args.profile, ValidationMode(args.mode))
    payload = record.result.to_json_dict()
    payload["validation_id"] = record.id
    print(f"Validation result: {json.dumps(payload, indent=2)}")


def _cmd_compare(service: SnapshotService, args: argparse.Namespace) -> None:
    result = service.compare(args.snapshot_id_a, args.snapshot_id_b, args.threshold)
    if args.output:
        diff = service.latest_diff(args.snapshot_id_a, args.snapshot_id_b)
        Path(args.output).write_bytes(diff.diff_image or b"")
        print(f"Diff image written to {args.output}")
    print(f"Diff score: {result.score:g}")


def _cmd_take_snapshot(service: SnapshotService, args: argparse.Namespace) -> None:
    snapshot = service.take_snapshot(
        url=args.url,
        label=args.label,
        tags=args.tag or None,
        provider_name=args.provider,
    )
    print(f"Captured snapshot {snapshot.id} of {args.url}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sightline-cli", description="CLI utilities for the Sightline snapshot store"
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL (default: DATABASE_URL or ./sightline.sqlite)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list-snapshots", help="List snapshots")
    state = p.add_mutually_exclusive_group()
    state.add_argument("--archived", dest="archived", action="store_const", const=True)
    state.add_argument("--active", dest="archived", action="store_const", const=False)
    p.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    p.set_defaults(handler=_cmd_list_snapshots, archived=None)

    for name, handler, help_text in (
        ("archive-snapshot", _cmd_archive, "Archive (soft-delete) a snapshot by ID"),
        ("unarchive-snapshot", _cmd_unarchive, "Unarchive a snapshot by ID"),
        ("delete-snapshot", _cmd_delete, "Permanently delete a snapshot and its records"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("snapshot_id", type=int)
        p.set_defaults(handler=handler)

    for name, handler, help_text in (
        ("list-validations", _cmd_list_validations, "List validation results"),
        ("list-diffs", _cmd_list_diffs, "List diffs (without images)"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--snapshot", type=int, default=None, help="Only rows for this snapshot")
        p.add_argument("--json", action="store_true", help="Print JSON instead of a table")
        p.set_defaults(handler=handler)

    p = sub.add_parser("export-data", help="Export a table to a JSON file")
    p.add_argument("table", help="snapshots, validations or diffs")
    p.add_argument("file")
    p.set_defaults(handler=_cmd_export)

    p = sub.add_parser("import-data", help="Import a JSON file into a table")
    p.add_argument("table", help="snapshots, validations or diffs")
    p.add_argument("file")
    p.set_defaults(handler=_cmd_import)

    p = sub.add_parser("validate-snapshot", help="Check a selector's text in a snapshot's DOM")
    p.add_argument("snapshot_id", type=int)
    p.add_argument("selector")
    p.add_argument("text")
    p.add_argument("--profile", default=None)
    p.add_argument(
        "--mode",
        choices=[mode.value for mode in ValidationMode],
        default=ValidationMode.selector.value,
    )
    p.set_defaults(handler=_cmd_validate)

    p = sub.add_parser("compare-snapshots", help="Pixel-diff two snapshots and store the result")
    p.add_argument("snapshot_id_a", type=int)
    p.add_argument("snapshot_id_b", type=int)
    p.add_argument("--threshold", type=float, default=DEFAULT_THRESHOLD)
    p.add_argument("--output", default=None, help="Write the diff PNG to this file")
    p.set_defaults(handler=_cmd_compare)

    p = sub.add_parser("take-snapshot", help="Capture a URL and store the snapshot")
    p.add_argument("url")
    p.add_argument("--label", default=None)
    p.add_argument("--tag", action="append", default=[])
    p.add_argument("--provider", default=None, help="playwright_mcp, http or stub")
    p.set_defaults(handler=_cmd_take_snapshot)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler: Callable[[SnapshotService, argparse.Namespace], None] = args.handler
    try:
        store = SqlSnapshotStore.from_url(args.database_url)
    except SightlineError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    try:
        handler(SnapshotService(store), args)
    except SightlineError as exc:
        logger.debug("command %s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        store.close()
    return 0


def run() -> None:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s %(message)s")
    sys.exit(main())


if __name__ == "__main__":
    run()
