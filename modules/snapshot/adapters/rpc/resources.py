from __future__ import annotations

import json
import re

from modules.snapshot.adapters.presenters import (
    RESOURCE_SCHEME,
    comparison_json,
    snapshot_detail_json,
    snapshot_summary_json,
)
from modules.snapshot.application.service import SnapshotService
from modules.snapshot.domain.errors import NotFoundError

_SNAPSHOTS_URI = f"{RESOURCE_SCHEME}://snapshots"
_SNAPSHOT_URI = re.compile(rf"^{RESOURCE_SCHEME}://snapshots/(\d+)$")
_DIFF_URI = re.compile(rf"^{RESOURCE_SCHEME}://diffs/(\d+)/(\d+)$")

RESOURCES: list[dict] = [
    {
        "uri": _SNAPSHOTS_URI,
        "name": "Snapshots",
        "description": "All snapshots, archived included, with thumbnails",
        "mimeType": "application/json",
    },
]

RESOURCE_TEMPLATES: list[dict] = [
    {
        "uriTemplate": f"{RESOURCE_SCHEME}://snapshots/{{id}}",
        "name": "Snapshot",
        "description": "Snapshot detail with DOM and full image",
        "mimeType": "application/json",
    },
    {
        "uriTemplate": f"{RESOURCE_SCHEME}://diffs/{{idA}}/{{idB}}",
        "name": "Diff",
        "description": "Most recent diff image between two snapshots",
        "mimeType": "application/json",
    },
]


def list_resources() -> dict:
    return {"resources": RESOURCES, "resourceTemplates": RESOURCE_TEMPLATES}


def _contents(uri: str, payload: object) -> dict:
    return {
        "contents": [
            {"uri": uri, "mimeType": "application/json", "text": json.dumps(payload)},
        ]
    }


def read_resource(service: SnapshotService, uri: str) -> dict:
    if uri == _SNAPSHOTS_URI:
        summaries = service.list_snapshots(archived=None, include_image=True)
        return _contents(
            uri,
            [snapshot_summary_json(summary, with_thumbnail=True) for summary in summaries],
        )

    match = _SNAPSHOT_URI.match(uri)
    if match:
        record = service.get_snapshot(int(match.group(1)))
        return _contents(uri, snapshot_detail_json(record))

    match = _DIFF_URI.match(uri)
    if match:
        record = service.latest_diff(int(match.group(1)), int(match.group(2)))
        return _contents(uri, comparison_json(record, with_image=True))

    raise NotFoundError(f"Resource not found: {uri}")
