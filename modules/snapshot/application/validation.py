from __future__ import annotations

import logging

from modules.snapshot.adapters.schemas import (
    ValidationMode,
    ValidationPayload,
    ValidationRecord,
    ValidationRule,
)
from modules.snapshot.application.ports import SnapshotStore
from modules.snapshot.domain.dom_query import evaluate_rules

logger = logging.getLogger(__name__)


def validate_snapshot(
    store: SnapshotStore,
    snapshot_id: int,
    rules: list[ValidationRule],
    profile: str | None = None,
    mode: ValidationMode = ValidationMode.selector,
) -> ValidationRecord:
    """Check each rule against the stored DOM and persist the outcome.

    ``selector`` mode queries the parsed document; ``substring`` mode is a
    best-effort fallback that only checks both strings occur in the raw markup.
    """
    snapshot = store.get_snapshot(snapshot_id)
    results = evaluate_rules(snapshot.dom, rules, mode)
    payload = ValidationPayload(profile=profile, rules=results)
    validation_id = store.record_validation(snapshot_id, payload)
    passed = sum(1 for result in results if result.found)
    logger.info(
        "validated snapshot_id=%s mode=%s passed=%s/%s validation_id=%s",
        snapshot_id,
        mode.value,
        passed,
        len(results),
        validation_id,
    )
    return store.get_validation(validation_id)
