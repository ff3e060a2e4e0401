from modules.snapshot.infrastructure.providers.http_provider import HttpSnapshotProvider
from modules.snapshot.infrastructure.providers.playwright_mcp_provider import (
    PlaywrightMcpSnapshotProvider,
)
from modules.snapshot.infrastructure.providers.stubs import StubSnapshotProvider

__all__ = [
    "HttpSnapshotProvider",
    "PlaywrightMcpSnapshotProvider",
    "StubSnapshotProvider",
]
