from __future__ import annotations

import logging
from datetime import UTC, datetime

from modules.snapshot.adapters.schemas import SnapshotProviderConfig, SnapshotRecord
from modules.snapshot.application.ports import SnapshotProvider, SnapshotStore
from modules.snapshot.infrastructure.providers.factory import build_snapshot_provider

logger = logging.getLogger(__name__)


def capture_snapshot(
    url: str,
    provider_config: SnapshotProviderConfig,
    provider: SnapshotProvider | None,
    store: SnapshotStore,
    label: str | None = None,
    tags: list[str] | None = None,
    env_info: dict | None = None,
) -> SnapshotRecord:
    provider_instance = provider or build_snapshot_provider(provider_config)
    captured = provider_instance.capture(url, provider_config)
    metadata = {
        "url": url,
        "final_url": captured.final_url,
        "provider": provider_config.provider_name,
        "http_status": captured.http_status,
        "captured_at": datetime.now(UTC).isoformat(),
    }
    if captured.metadata:
        metadata["capture"] = captured.metadata
    snapshot_id = store.create_snapshot(
        image=captured.image,
        dom=captured.dom,
        metadata=metadata,
        label=label,
        tags=tags,
        env_info=env_info,
    )
    logger.info(
        "captured url=%s provider=%s snapshot_id=%s image=%s",
        url,
        provider_config.provider_name,
        snapshot_id,
        captured.image is not None,
    )
    return store.get_snapshot(snapshot_id)
