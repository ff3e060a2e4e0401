from __future__ import annotations

import json
from collections.abc import Callable

from jsonschema import Draft202012Validator
from pydantic import BaseModel, ValidationError

from modules.snapshot.adapters.presenters import (
    comparison_json,
    comparison_result_json,
    snapshot_summary_json,
    validation_json,
)
from modules.snapshot.adapters.schemas import (
    CompareSnapshotsArgsV1,
    ListRecordsArgsV1,
    ListSnapshotsArgsV1,
    SnapshotIdArgsV1,
    TakeSnapshotArgsV1,
    UpdateSnapshotArgsV1,
    ValidateSnapshotArgsV1,
)
from modules.snapshot.application.service import SnapshotService
from modules.snapshot.domain.errors import MalformedInputError, UnsupportedOperationError

_SNAPSHOT_ID = {"type": "integer", "description": "Snapshot ID"}

TOOLS: list[dict] = [
    {
        "name": "take_snapshot",
        "description": "Capture a UI snapshot (rendered DOM and full-page screenshot) of a URL",
        "inputSchema": {
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "URL to capture"},
                "label": {"type": "string", "description": "Optional label for snapshot"},
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Optional tags",
                },
                "env_info": {"type": "object", "description": "Optional environment info"},
                "provider": {
                    "type": "string",
                    "description": "Capture provider override (playwright_mcp, http, stub)",
                },
            },
            "required": ["url"],
            "additionalProperties": False,
        },
    },
    {
        "name": "validate_snapshot",
        "description": "Validate a snapshot's DOM against selector and expected-text rules",
        "inputSchema": {
            "type": "object",
            "properties": {
                "snapshot_id": _SNAPSHOT_ID,
                "rules": {
                    "type": "array",
                    "description": "Validation rules (selector + expected text)",
                    "items": {
                        "type": "object",
                        "properties": {
                            "selector": {"type": "string", "description": "CSS selector"},
                            "text": {"type": "string", "description": "Expected text content"},
                        },
                        "required": ["selector", "text"],
                        "additionalProperties": False,
                    },
                },
                "profile": {"type": "string", "description": "Validation profile name"},
                "mode": {
                    "type": "string",
                    "enum": ["selector", "substring"],
                    "description": "selector (default) or approximate raw substring matching",
                },
            },
            "required": ["snapshot_id", "rules"],
            "additionalProperties": False,
        },
    },
    {
        "name": "compare_snapshots",
        "description": "Compare two snapshots pixel by pixel and store the diff",
        "inputSchema": {
            "type": "object",
            "properties": {
                "snapshot_id_a": {"type": "integer", "description": "First snapshot ID"},
                "snapshot_id_b": {"type": "integer", "description": "Second snapshot ID"},
                "threshold": {
                    "type": "number",
                    "description": "Per-pixel colour sensitivity (default 0.1)",
                    "minimum": 0,
                    "maximum": 1,
                },
            },
            "required": ["snapshot_id_a", "snapshot_id_b"],
            "additionalProperties": False,
        },
    },
    {
        "name": "list_snapshots",
        "description": "List snapshot summaries",
        "inputSchema": {
            "type": "object",
            "properties": {
                "archived": {"type": "boolean", "description": "Filter on archived flag"},
                "label": {"type": "string"},
                "tag": {"type": "string"},
            },
            "additionalProperties": False,
        },
    },
    {
        "name": "archive_snapshot",
        "description": "Archive (soft-delete) a snapshot",
        "inputSchema": {
            "type": "object",
            "properties": {"snapshot_id": _SNAPSHOT_ID},
            "required": ["snapshot_id"],
            "additionalProperties": False,
        },
    },
    {
        "name": "unarchive_snapshot",
        "description": "Restore an archived snapshot",
        "inputSchema": {
            "type": "object",
            "properties": {"snapshot_id": _SNAPSHOT_ID},
            "required": ["snapshot_id"],
            "additionalProperties": False,
        },
    },
    {
        "name": "update_snapshot",
        "description": "Change the label or tags of a snapshot",
        "inputSchema": {
            "type": "object",
            "properties": {
                "snapshot_id": _SNAPSHOT_ID,
                "label": {"type": ["string", "null"]},
                "tags": {"type": ["array", "null"], "items": {"type": "string"}},
            },
            "required": ["snapshot_id"],
            "additionalProperties": False,
        },
    },
    {
        "name": "delete_snapshot",
        "description": "Permanently delete a snapshot with its validations and diffs",
        "inputSchema": {
            "type": "object",
            "properties": {"snapshot_id": _SNAPSHOT_ID},
            "required": ["snapshot_id"],
            "additionalProperties": False,
        },
    },
    {
        "name": "list_validations",
        "description": "List stored validation results",
        "inputSchema": {
            "type": "object",
            "properties": {"snapshot_id": _SNAPSHOT_ID},
            "additionalProperties": False,
        },
    },
    {
        "name": "list_diffs",
        "description": "List stored comparison results (without images)",
        "inputSchema": {
            "type": "object",
            "properties": {"snapshot_id": _SNAPSHOT_ID},
            "additionalProperties": False,
        },
    },
]

_VALIDATORS = {tool["name"]: Draft202012Validator(tool["inputSchema"]) for tool in TOOLS}


def parse_params(model: type[BaseModel], arguments: dict) -> BaseModel:
    try:
        return model.model_validate(arguments)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise MalformedInputError(f"invalid arguments: {details}") from exc


def _take_snapshot(service: SnapshotService, arguments: dict) -> dict:
    args = parse_params(TakeSnapshotArgsV1, arguments)
    snapshot = service.take_snapshot(
        url=args.url,
        label=args.label,
        tags=args.tags,
        env_info=args.env_info,
        provider_name=args.provider,
    )
    return {"snapshot_id": snapshot.id}


def _validate_snapshot(service: SnapshotService, arguments: dict) -> dict:
    args = parse_params(ValidateSnapshotArgsV1, arguments)
    record = service.validate(args.snapshot_id, args.rules, args.profile, args.mode)
    payload = record.result.to_json_dict()
    payload["validation_id"] = record.id
    payload["snapshot_id"] = record.snapshot_id
    return payload


def _compare_snapshots(service: SnapshotService, arguments: dict) -> dict:
    args = parse_params(CompareSnapshotsArgsV1, arguments)
    result = service.compare(args.snapshot_id_a, args.snapshot_id_b, args.threshold)
    return comparison_result_json(result)


def _list_snapshots(service: SnapshotService, arguments: dict) -> dict:
    args = parse_params(ListSnapshotsArgsV1, arguments)
    summaries = service.list_snapshots(archived=args.archived, label=args.label, tag=args.tag)
    return {"snapshots": [snapshot_summary_json(summary) for summary in summaries]}


def _archive_snapshot(service: SnapshotService, arguments: dict) -> dict:
    args = parse_params(SnapshotIdArgsV1, arguments)
    service.set_archived(args.snapshot_id, True)
    return {"snapshot_id": args.snapshot_id, "archived": True}


def _unarchive_snapshot(service: SnapshotService, arguments: dict) -> dict:
    args = parse_params(SnapshotIdArgsV1, arguments)
    service.set_archived(args.snapshot_id, False)
    return {"snapshot_id": args.snapshot_id, "archived": False}


def _update_snapshot(service: SnapshotService, arguments: dict) -> dict:
    args = parse_params(UpdateSnapshotArgsV1, arguments)
    changes = {
        field: getattr(args, field)
        for field in ("label", "tags")
        if field in args.model_fields_set
    }
    record = service.update_snapshot(args.snapshot_id, **changes)
    return {"snapshot_id": record.id, "label": record.label, "tags": record.tags}


def _delete_snapshot(service: SnapshotService, arguments: dict) -> dict:
    args = parse_params(SnapshotIdArgsV1, arguments)
    removed = service.delete_snapshot(args.snapshot_id)
    return {"snapshot_id": args.snapshot_id, "deleted": True, "removed": removed}


def _list_validations(service: SnapshotService, arguments: dict) -> dict:
    args = parse_params(ListRecordsArgsV1, arguments)
    records = service.list_validations(args.snapshot_id)
    return {"validations": [validation_json(record) for record in records]}


def _list_diffs(service: SnapshotService, arguments: dict) -> dict:
    args = parse_params(ListRecordsArgsV1, arguments)
    records = service.list_diffs(args.snapshot_id)
    return {"diffs": [comparison_json(record) for record in records]}


HANDLERS: dict[str, Callable[[SnapshotService, dict], dict]] = {
    "take_snapshot": _take_snapshot,
    "validate_snapshot": _validate_snapshot,
    "compare_snapshots": _compare_snapshots,
    "list_snapshots": _list_snapshots,
    "archive_snapshot": _archive_snapshot,
    "unarchive_snapshot": _unarchive_snapshot,
    "update_snapshot": _update_snapshot,
    "delete_snapshot": _delete_snapshot,
    "list_validations": _list_validations,
    "list_diffs": _list_diffs,
}


def list_tools() -> dict:
    return {"tools": TOOLS}


def call_tool(service: SnapshotService, name: str, arguments: dict) -> dict:
    handler = HANDLERS.get(name)
    if handler is None:
        raise UnsupportedOperationError(f"Unknown tool: {name}")
    errors = sorted(_VALIDATORS[name].iter_errors(arguments), key=lambda error: error.path)
    if errors:
        details = "; ".join(error.message for error in errors)
        raise MalformedInputError(f"invalid arguments for {name}: {details}")
    payload = handler(service, arguments)
    return {"content": [{"type": "text", "text": json.dumps(payload)}]}
