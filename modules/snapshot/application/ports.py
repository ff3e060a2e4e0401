from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from modules.snapshot.adapters.schemas import (
    ComparisonRecord,
    SnapshotProviderConfig,
    SnapshotRecord,
    SnapshotSummary,
    ValidationPayload,
    ValidationRecord,
)


@dataclass(frozen=True)
class CapturedPage:
    requested_url: str
    final_url: str
    http_status: int | None
    dom: str
    image: bytes | None
    metadata: dict = field(default_factory=dict)


class SnapshotProvider(Protocol):
    def capture(self, url: str, config: SnapshotProviderConfig) -> CapturedPage:
        raise NotImplementedError


class SnapshotStore(Protocol):
    def create_snapshot(
        self,
        image: bytes | None,
        dom: str,
        metadata: dict,
        label: str | None = None,
        tags: list[str] | None = None,
        env_info: dict | None = None,
    ) -> int:
        raise NotImplementedError

    def get_snapshot(self, snapshot_id: int) -> SnapshotRecord:
        raise NotImplementedError

    def list_snapshots(
        self,
        archived: bool | None = None,
        include_image: bool = False,
        label: str | None = None,
        tag: str | None = None,
    ) -> list[SnapshotSummary]:
        raise NotImplementedError

    def set_archived(self, snapshot_id: int, archived: bool) -> None:
        raise NotImplementedError

    def delete_snapshot(self, snapshot_id: int) -> dict[str, int]:
        raise NotImplementedError

    def record_validation(self, snapshot_id: int, payload: ValidationPayload) -> int:
        raise NotImplementedError

    def record_comparison(
        self, snapshot_id_a: int, snapshot_id_b: int, diff_image: bytes, score: float
    ) -> int:
        raise NotImplementedError

    def get_validation(self, validation_id: int) -> ValidationRecord:
        raise NotImplementedError

    def list_validations(self, snapshot_id: int | None = None) -> list[ValidationRecord]:
        raise NotImplementedError

    def list_comparisons(
        self, snapshot_id: int | None = None, include_image: bool = False
    ) -> list[ComparisonRecord]:
        raise NotImplementedError

    def latest_comparison(self, snapshot_id_a: int, snapshot_id_b: int) -> ComparisonRecord:
        raise NotImplementedError
