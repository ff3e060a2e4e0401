from __future__ import annotations

from collections.abc import Callable

from modules.snapshot.adapters.schemas import (
    ComparisonRecord,
    ComparisonResult,
    SnapshotRecord,
    SnapshotSummary,
    ValidationMode,
    ValidationRecord,
    ValidationRule,
)
from modules.snapshot.application.comparison import DEFAULT_THRESHOLD, compare_snapshots
from modules.snapshot.application.facade import capture_snapshot
from modules.snapshot.application.ports import SnapshotProvider
from modules.snapshot.application.settings import (
    SnapshotProviderSettings,
    get_snapshot_provider_settings,
)
from modules.snapshot.application.validation import validate_snapshot
from modules.snapshot.infrastructure.persistence import SqlSnapshotStore
from modules.snapshot.infrastructure.providers.factory import (
    build_provider_config,
    build_snapshot_provider,
)

EventSink = Callable[[str, dict], None]


class SnapshotService:
    """Operations shared by the RPC façade and the CLI.

    Holds the store handle it is given; it never opens one itself.
    """

    def __init__(
        self,
        store: SqlSnapshotStore,
        provider_settings: SnapshotProviderSettings | None = None,
        provider: SnapshotProvider | None = None,
        on_event: EventSink | None = None,
    ) -> None:
        self.store = store
        self._provider_settings = provider_settings
        self._provider = provider
        self._on_event = on_event

    @property
    def provider_settings(self) -> SnapshotProviderSettings:
        if self._provider_settings is None:
            self._provider_settings = get_snapshot_provider_settings()
        return self._provider_settings

    def _emit(self, event: str, params: dict) -> None:
        if self._on_event is not None:
            self._on_event(event, params)

    def take_snapshot(
        self,
        url: str,
        label: str | None = None,
        tags: list[str] | None = None,
        env_info: dict | None = None,
        provider_name: str | None = None,
    ) -> SnapshotRecord:
        config = build_provider_config(provider_name, self.provider_settings)
        provider = self._provider or build_snapshot_provider(config, self.provider_settings)
        snapshot = capture_snapshot(
            url=url,
            provider_config=config,
            provider=provider,
            store=self.store,
            label=label,
            tags=tags,
            env_info=env_info,
        )
        self._emit("notifications/snapshot_created", {"snapshot_id": snapshot.id, "url": url})
        return snapshot

    def validate(
        self,
        snapshot_id: int,
        rules: list[ValidationRule],
        profile: str | None = None,
        mode: ValidationMode = ValidationMode.selector,
    ) -> ValidationRecord:
        record = validate_snapshot(self.store, snapshot_id, rules, profile, mode)
        self._emit(
            "notifications/validation_recorded",
            {"validation_id": record.id, "snapshot_id": snapshot_id},
        )
        return record

    def compare(
        self, snapshot_id_a: int, snapshot_id_b: int, threshold: float = DEFAULT_THRESHOLD
    ) -> ComparisonResult:
        result = compare_snapshots(self.store, snapshot_id_a, snapshot_id_b, threshold)
        self._emit(
            "notifications/comparison_recorded",
            {
                "diff_id": result.diff_id,
                "snapshot_id_a": snapshot_id_a,
                "snapshot_id_b": snapshot_id_b,
                "score": result.score,
            },
        )
        return result

    def list_snapshots(
        self,
        archived: bool | None = None,
        include_image: bool = False,
        label: str | None = None,
        tag: str | None = None,
    ) -> list[SnapshotSummary]:
        return self.store.list_snapshots(
            archived=archived, include_image=include_image, label=label, tag=tag
        )

    def get_snapshot(self, snapshot_id: int) -> SnapshotRecord:
        return self.store.get_snapshot(snapshot_id)

    def set_archived(self, snapshot_id: int, archived: bool) -> None:
        self.store.set_archived(snapshot_id, archived)
        self._emit(
            "notifications/snapshot_updated", {"snapshot_id": snapshot_id, "archived": archived}
        )

    def update_snapshot(self, snapshot_id: int, **changes: object) -> SnapshotRecord:
        record = self.store.update_snapshot_meta(snapshot_id, **changes)
        self._emit("notifications/snapshot_updated", {"snapshot_id": snapshot_id})
        return record

    def delete_snapshot(self, snapshot_id: int) -> dict[str, int]:
        removed = self.store.delete_snapshot(snapshot_id)
        self._emit("notifications/snapshot_deleted", {"snapshot_id": snapshot_id, **removed})
        return removed

    def list_validations(self, snapshot_id: int | None = None) -> list[ValidationRecord]:
        return self.store.list_validations(snapshot_id)

    def list_diffs(self, snapshot_id: int | None = None) -> list[ComparisonRecord]:
        return self.store.list_comparisons(snapshot_id)

    def latest_diff(self, snapshot_id_a: int, snapshot_id_b: int) -> ComparisonRecord:
        return self.store.latest_comparison(snapshot_id_a, snapshot_id_b)

    def export_table(self, table_name: str) -> list[dict]:
        return self.store.export_table(table_name)

    def import_table(self, table_name: str, rows: object) -> int:
        return self.store.import_table(table_name, rows)
