from __future__ import annotations

import httpx

from modules.snapshot.adapters.schemas import SnapshotProviderConfig
from modules.snapshot.application.ports import CapturedPage, SnapshotProvider
from modules.snapshot.domain.errors import CaptureError, CaptureTimeoutError


class HttpSnapshotProvider(SnapshotProvider):
    """Fetches raw markup without rendering; the snapshot carries no screenshot.

    An injected client is left open for its owner. Without one, each capture
    opens and closes its own client.
    """

    def __init__(self, client: httpx.Client | None = None) -> None:
        self._client = client

    def capture(self, url: str, config: SnapshotProviderConfig) -> CapturedPage:
        if self._client is not None:
            return self._fetch(self._client, url, config)
        with httpx.Client(follow_redirects=True) as client:
            return self._fetch(client, url, config)

    def _fetch(
        self, client: httpx.Client, url: str, config: SnapshotProviderConfig
    ) -> CapturedPage:
        headers = {}
        if config.user_agent:
            headers["User-Agent"] = config.user_agent
        try:
            response = client.get(url, timeout=config.timeout_seconds, headers=headers)
        except httpx.TimeoutException as exc:
            raise CaptureTimeoutError(
                f"capture of {url} exceeded {config.timeout_seconds}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise CaptureError(f"capture of {url} failed: {exc}") from exc
        metadata = {
            "headers": {
                "content-type": response.headers.get("content-type"),
                "server": response.headers.get("server"),
            }
        }
        return CapturedPage(
            requested_url=url,
            final_url=str(response.url),
            http_status=response.status_code,
            dom=response.text,
            image=None,
            metadata=metadata,
        )
