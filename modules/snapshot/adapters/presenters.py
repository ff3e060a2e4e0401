from __future__ import annotations

import base64
import logging

from modules.snapshot.adapters.schemas import (
    ComparisonRecord,
    ComparisonResult,
    SnapshotRecord,
    SnapshotSummary,
    ValidationRecord,
)
from modules.snapshot.domain.errors import MalformedInputError
from modules.snapshot.domain.pixel_diff import thumbnail_png

logger = logging.getLogger(__name__)

RESOURCE_SCHEME = "sightline"


def _b64(data: bytes | None) -> str | None:
    if data is None:
        return None
    return base64.b64encode(data).decode("ascii")


def _data_uri(data: bytes | None) -> str | None:
    encoded = _b64(data)
    return f"data:image/png;base64,{encoded}" if encoded else None


def snapshot_summary_json(summary: SnapshotSummary, with_thumbnail: bool = False) -> dict:
    payload = {
        "id": summary.id,
        "timestamp": summary.timestamp.isoformat(),
        "url": summary.metadata.get("url"),
        "metadata": summary.metadata,
        "label": summary.label,
        "tags": summary.tags,
        "env_info": summary.env_info,
        "archived": summary.archived,
        "has_image": summary.has_image,
        "uri": f"{RESOURCE_SCHEME}://snapshots/{summary.id}",
    }
    if with_thumbnail:
        thumbnail = None
        if summary.image is not None:
            try:
                thumbnail = _data_uri(thumbnail_png(summary.image))
            except MalformedInputError:
                logger.warning("snapshot %s image could not be thumbnailed", summary.id)
        payload["thumbnail"] = thumbnail
    return payload


def snapshot_detail_json(record: SnapshotRecord) -> dict:
    return {
        "id": record.id,
        "timestamp": record.timestamp.isoformat(),
        "metadata": record.metadata,
        "label": record.label,
        "tags": record.tags,
        "env_info": record.env_info,
        "archived": record.archived,
        "dom": record.dom,
        "image": _data_uri(record.image),
    }


def validation_json(record: ValidationRecord) -> dict:
    return {
        "id": record.id,
        "snapshot_id": record.snapshot_id,
        "timestamp": record.timestamp.isoformat(),
        "result": record.result.to_json_dict(),
    }


def comparison_json(record: ComparisonRecord, with_image: bool = False) -> dict:
    payload = {
        "id": record.id,
        "snapshot_id_a": record.snapshot_id_a,
        "snapshot_id_b": record.snapshot_id_b,
        "timestamp": record.timestamp.isoformat(),
        "score": record.score,
    }
    if with_image:
        payload["diff_image"] = _data_uri(record.diff_image)
    return payload


def comparison_result_json(result: ComparisonResult) -> dict:
    payload = result.model_dump()
    payload["diff_uri"] = (
        f"{RESOURCE_SCHEME}://diffs/{result.snapshot_id_a}/{result.snapshot_id_b}"
    )
    return payload
