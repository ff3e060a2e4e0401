import httpx
import pytest

from modules.snapshot.adapters.schemas import SnapshotProviderConfig
from modules.snapshot.application.settings import SnapshotProviderSettings
from modules.snapshot.domain.errors import CaptureError, CaptureTimeoutError, MalformedInputError
from modules.snapshot.infrastructure.mcp_clients.playwright import (
    PlaywrightCaptureResponse,
    PlaywrightMcpError,
    PlaywrightMcpTimeout,
)
from modules.snapshot.infrastructure.providers.factory import (
    build_provider_config,
    build_snapshot_provider,
)
from modules.snapshot.infrastructure.providers.http_provider import HttpSnapshotProvider
from modules.snapshot.infrastructure.providers.playwright_mcp_provider import (
    PlaywrightMcpSnapshotProvider,
)
from modules.snapshot.infrastructure.providers.stubs import StubSnapshotProvider


def _settings(**overrides) -> SnapshotProviderSettings:  # type: ignore[no-untyped-def]
    values = {
        "playwright_mcp_mode": "stdio",
        "playwright_mcp_command": "echo",
        "playwright_mcp_args": "{}",
        "playwright_mcp_cwd": None,
        "playwright_mcp_url": None,
    }
    values.update(overrides)
    return SnapshotProviderSettings(**values)


def test_provider_factory_returns_expected_types() -> None:
    settings = _settings()
    assert isinstance(
        build_snapshot_provider(SnapshotProviderConfig(provider_name="http"), settings=settings),
        HttpSnapshotProvider,
    )
    assert isinstance(
        build_snapshot_provider(
            SnapshotProviderConfig(provider_name="playwright_mcp"), settings=settings
        ),
        PlaywrightMcpSnapshotProvider,
    )
    assert isinstance(
        build_snapshot_provider(SnapshotProviderConfig(provider_name="stub"), settings=settings),
        StubSnapshotProvider,
    )


def test_provider_factory_rejects_unknown_provider() -> None:
    with pytest.raises(MalformedInputError):
        build_snapshot_provider(SnapshotProviderConfig(provider_name="selenium"), _settings())


def test_provider_config_uses_settings_and_aliases() -> None:
    settings = _settings(snapshot_provider="playwright", capture_timeout_seconds=12)
    config = build_provider_config(None, settings)
    assert config.provider_name == "playwright_mcp"
    assert config.timeout_seconds == 12
    assert build_provider_config(" HTTP ", settings).provider_name == "http"


def test_http_provider_capture_with_mock_transport() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code=200,
            headers={"Content-Type": "text/html; charset=utf-8"},
            text="<html>ok</html>",
        )

    transport = httpx.MockTransport(handler)
    client = httpx.Client(transport=transport, follow_redirects=True)
    provider = HttpSnapshotProvider(client=client)
    result = provider.capture(
        url="https://example.com",
        config=SnapshotProviderConfig(provider_name="http"),
    )
    assert result.http_status == 200
    assert result.dom == "<html>ok</html>"
    assert result.image is None
    assert result.metadata["headers"]["content-type"] == "text/html; charset=utf-8"


def test_http_provider_timeout_maps_to_capture_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    provider = HttpSnapshotProvider(client=httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(CaptureTimeoutError):
        provider.capture("https://example.com", SnapshotProviderConfig(provider_name="http"))


def test_http_provider_connection_error_maps_to_capture_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    provider = HttpSnapshotProvider(client=httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(CaptureError):
        provider.capture("https://example.com", SnapshotProviderConfig(provider_name="http"))


def test_playwright_provider_uses_client_override() -> None:
    class DummyClient:
        def __init__(self) -> None:
            self.requests = []

        def capture(self, request):  # type: ignore[no-untyped-def]
            self.requests.append(request)
            return PlaywrightCaptureResponse(
                url_final=request.url + "/landing",
                status_code=200,
                html="<html>ok</html>",
                screenshot=b"png-bytes",
                metadata={"stub": True},
            )

    client = DummyClient()
    settings = _settings(playwright_mcp_mode="http", playwright_mcp_url="http://x")
    provider = PlaywrightMcpSnapshotProvider(settings=settings, client=client)
    result = provider.capture(
        url="https://example.com",
        config=SnapshotProviderConfig(provider_name="playwright_mcp", timeout_seconds=9),
    )
    assert result.dom == "<html>ok</html>"
    assert result.image == b"png-bytes"
    assert result.final_url == "https://example.com/landing"
    assert result.metadata["stub"] is True
    assert client.requests[0].timeout_seconds == 9
    assert client.requests[0].full_page is True


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (PlaywrightMcpTimeout("mcp_stdio_timeout"), CaptureTimeoutError),
        (PlaywrightMcpError("mcp_stdio_no_output"), CaptureError),
    ],
)
def test_playwright_provider_maps_client_errors(error, expected) -> None:
    class FailingClient:
        def capture(self, request):  # type: ignore[no-untyped-def]
            raise error

    provider = PlaywrightMcpSnapshotProvider(settings=_settings(), client=FailingClient())
    with pytest.raises(expected):
        provider.capture("https://example.com", SnapshotProviderConfig(provider_name="x"))


def test_playwright_provider_missing_url_is_capture_error() -> None:
    provider = PlaywrightMcpSnapshotProvider(settings=_settings(playwright_mcp_mode="http"))
    with pytest.raises(CaptureError):
        provider.capture("https://example.com", SnapshotProviderConfig(provider_name="x"))


def test_http_provider_closes_the_client_it_opens(monkeypatch) -> None:
    opened: list[httpx.Client] = []
    real_client = httpx.Client

    def client_factory(**kwargs):  # type: ignore[no-untyped-def]
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html></html>"))
        client = real_client(transport=transport, **kwargs)
        opened.append(client)
        return client

    monkeypatch.setattr(httpx, "Client", client_factory)
    provider = HttpSnapshotProvider()
    config = SnapshotProviderConfig(provider_name="http")
    provider.capture("https://example.com", config)
    provider.capture("https://example.com/next", config)

    assert len(opened) == 2
    assert all(client.is_closed for client in opened)


def test_http_provider_leaves_injected_client_open() -> None:
    client = httpx.Client(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html></html>"))
    )
    HttpSnapshotProvider(client=client).capture(
        "https://example.com", SnapshotProviderConfig(provider_name="http")
    )
    assert not client.is_closed
    client.close()
