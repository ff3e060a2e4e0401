from __future__ import annotations

import shlex

from modules.snapshot.adapters.schemas import SnapshotProviderConfig
from modules.snapshot.application.ports import CapturedPage, SnapshotProvider
from modules.snapshot.application.settings import SnapshotProviderSettings
from modules.snapshot.domain.errors import CaptureError, CaptureTimeoutError
from modules.snapshot.infrastructure.mcp_clients.playwright import (
    HttpPlaywrightMcpClient,
    PlaywrightCaptureRequest,
    PlaywrightMcpClient,
    PlaywrightMcpError,
    PlaywrightMcpRegistry,
    PlaywrightMcpTimeout,
)


class PlaywrightMcpSnapshotProvider(SnapshotProvider):
    """Renders the page in a Playwright sidecar and keeps DOM plus full-page PNG."""

    def __init__(
        self,
        settings: SnapshotProviderSettings,
        client: PlaywrightMcpClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = client

    def _build_client(self) -> PlaywrightMcpClient:
        if self._settings.playwright_mcp_mode == "stdio":
            command = [self._settings.playwright_mcp_command]
            command.extend(shlex.split(self._settings.playwright_mcp_args))
            return PlaywrightMcpRegistry.get_stdio_client(
                command=command,
                cwd=self._settings.playwright_mcp_cwd,
                timeout_seconds=self._settings.capture_timeout_seconds,
            )
        if not self._settings.playwright_mcp_url:
            raise CaptureError("playwright_mcp_not_configured: PLAYWRIGHT_MCP_URL is missing")
        return HttpPlaywrightMcpClient(self._settings.playwright_mcp_url)

    def capture(self, url: str, config: SnapshotProviderConfig) -> CapturedPage:
        client = self._client or self._build_client()
        request = PlaywrightCaptureRequest(
            url=url,
            timeout_seconds=config.timeout_seconds,
            user_agent=config.user_agent,
            screenshot=True,
            full_page=bool(config.flags.get("full_page", True)),
        )
        try:
            response = client.capture(request)
        except PlaywrightMcpTimeout as exc:
            raise CaptureTimeoutError(
                f"capture of {url} exceeded {config.timeout_seconds}s"
            ) from exc
        except PlaywrightMcpError as exc:
            raise CaptureError(f"capture of {url} failed: {exc}") from exc
        if response.html is None:
            raise CaptureError(f"capture of {url} returned no DOM")
        return CapturedPage(
            requested_url=url,
            final_url=response.url_final or url,
            http_status=response.status_code,
            dom=response.html,
            image=response.screenshot,
            metadata=response.metadata,
        )
