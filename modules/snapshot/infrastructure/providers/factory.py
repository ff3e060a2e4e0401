from __future__ import annotations

from modules.snapshot.adapters.schemas import SnapshotProviderConfig
from modules.snapshot.application.ports import SnapshotProvider
from modules.snapshot.application.settings import (
    SnapshotProviderSettings,
    get_snapshot_provider_settings,
)
from modules.snapshot.domain.errors import MalformedInputError
from modules.snapshot.infrastructure.providers.http_provider import HttpSnapshotProvider
from modules.snapshot.infrastructure.providers.playwright_mcp_provider import (
    PlaywrightMcpSnapshotProvider,
)
from modules.snapshot.infrastructure.providers.stubs import StubSnapshotProvider

PROVIDER_ALIASES = {"playwright": "playwright_mcp", "puppeteer": "playwright_mcp"}


def resolve_provider_name(provider: str | None, settings: SnapshotProviderSettings) -> str:
    if not provider:
        provider = settings.snapshot_provider
    normalized = provider.strip().lower()
    return PROVIDER_ALIASES.get(normalized, normalized)


def build_provider_config(
    provider: str | None = None,
    settings: SnapshotProviderSettings | None = None,
) -> SnapshotProviderConfig:
    settings = settings or get_snapshot_provider_settings()
    return SnapshotProviderConfig(
        provider_name=resolve_provider_name(provider, settings),
        timeout_seconds=settings.capture_timeout_seconds,
        user_agent=settings.capture_user_agent,
        flags={"full_page": settings.capture_full_page},
    )


def build_snapshot_provider(
    config: SnapshotProviderConfig,
    settings: SnapshotProviderSettings | None = None,
) -> SnapshotProvider:
    provider_name = config.provider_name.lower()
    settings = settings or get_snapshot_provider_settings()
    if provider_name == "http":
        return HttpSnapshotProvider()
    if provider_name == "playwright_mcp":
        return PlaywrightMcpSnapshotProvider(settings=settings)
    if provider_name == "stub":
        return StubSnapshotProvider()
    raise MalformedInputError(f"unsupported snapshot provider: {config.provider_name}")
