from __future__ import annotations

import logging

from modules.snapshot.adapters.schemas import ComparisonResult
from modules.snapshot.application.ports import SnapshotStore
from modules.snapshot.domain.errors import MalformedInputError, NotFoundError
from modules.snapshot.domain.pixel_diff import compare_png_bytes

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.1


def compare_snapshots(
    store: SnapshotStore,
    snapshot_id_a: int,
    snapshot_id_b: int,
    threshold: float = DEFAULT_THRESHOLD,
) -> ComparisonResult:
    if not 0.0 <= threshold <= 1.0:
        raise MalformedInputError(f"threshold must be within [0, 1], got {threshold}")
    snapshot_a = store.get_snapshot(snapshot_id_a)
    snapshot_b = store.get_snapshot(snapshot_id_b)
    for snapshot in (snapshot_a, snapshot_b):
        if snapshot.image is None:
            raise NotFoundError(f"snapshot {snapshot.id} has no image")

    diff = compare_png_bytes(snapshot_a.image, snapshot_b.image, threshold)
    diff_id = store.record_comparison(
        snapshot_id_a, snapshot_id_b, diff.diff_png, float(diff.mismatched)
    )
    logger.info(
        "compared a=%s b=%s threshold=%s score=%s diff_id=%s",
        snapshot_id_a,
        snapshot_id_b,
        threshold,
        diff.mismatched,
        diff_id,
    )
    return ComparisonResult(
        diff_id=diff_id,
        snapshot_id_a=snapshot_id_a,
        snapshot_id_b=snapshot_id_b,
        threshold=threshold,
        score=float(diff.mismatched),
        width=diff.width,
        height=diff.height,
    )
