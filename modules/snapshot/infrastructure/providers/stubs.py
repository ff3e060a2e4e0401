from __future__ import annotations

from modules.snapshot.adapters.schemas import SnapshotProviderConfig
from modules.snapshot.application.ports import CapturedPage, SnapshotProvider
from modules.snapshot.domain.pixel_diff import blank_png


class StubSnapshotProvider(SnapshotProvider):
    """Offline provider: fixed markup and a blank white screenshot."""

    def __init__(self, width: int = 64, height: int = 48) -> None:
        self.width = width
        self.height = height

    def capture(self, url: str, config: SnapshotProviderConfig) -> CapturedPage:
        dom = f'<html><body><div id="url">{url}</div></body></html>'
        return CapturedPage(
            requested_url=url,
            final_url=url,
            http_status=200,
            dom=dom,
            image=blank_png(self.width, self.height),
            metadata={"stub": True},
        )
