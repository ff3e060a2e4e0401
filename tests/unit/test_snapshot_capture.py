import pytest

from modules.snapshot.adapters.schemas import SnapshotProviderConfig
from modules.snapshot.application.facade import capture_snapshot
from modules.snapshot.application.ports import CapturedPage
from modules.snapshot.domain.errors import CaptureTimeoutError
from modules.snapshot.infrastructure.providers.stubs import StubSnapshotProvider


class TimingOutProvider:
    def capture(self, url, config):  # type: ignore[no-untyped-def]
        raise CaptureTimeoutError(f"capture of {url} exceeded {config.timeout_seconds}s")


class RedirectingProvider:
    def capture(self, url, config):  # type: ignore[no-untyped-def]
        return CapturedPage(
            requested_url=url,
            final_url=url + "/login",
            http_status=302,
            dom="<form></form>",
            image=None,
        )


def test_capture_stores_dom_image_and_metadata(store) -> None:
    snapshot = capture_snapshot(
        url="https://example.com",
        provider_config=SnapshotProviderConfig(provider_name="stub"),
        provider=StubSnapshotProvider(width=10, height=5),
        store=store,
        label="home",
        tags=["smoke"],
        env_info={"viewport": "1280x720"},
    )
    assert snapshot.id > 0
    assert 'id="url"' in snapshot.dom
    assert snapshot.image is not None
    assert snapshot.metadata["url"] == "https://example.com"
    assert snapshot.metadata["provider"] == "stub"
    assert snapshot.metadata["http_status"] == 200
    assert snapshot.metadata["capture"] == {"stub": True}
    assert snapshot.label == "home"
    assert snapshot.tags == ["smoke"]
    assert snapshot.env_info == {"viewport": "1280x720"}


def test_capture_keeps_final_url(store) -> None:
    snapshot = capture_snapshot(
        url="https://example.com",
        provider_config=SnapshotProviderConfig(provider_name="http"),
        provider=RedirectingProvider(),
        store=store,
    )
    assert snapshot.metadata["final_url"] == "https://example.com/login"
    assert snapshot.image is None
    assert "capture" not in snapshot.metadata


def test_capture_timeout_stores_nothing(store) -> None:
    with pytest.raises(CaptureTimeoutError):
        capture_snapshot(
            url="https://slow.example.com",
            provider_config=SnapshotProviderConfig(provider_name="stub", timeout_seconds=1),
            provider=TimingOutProvider(),
            store=store,
        )
    assert store.list_snapshots() == []


def test_successive_captures_get_new_ids(store) -> None:
    config = SnapshotProviderConfig(provider_name="stub")
    first = capture_snapshot("https://example.com", config, StubSnapshotProvider(), store)
    second = capture_snapshot("https://example.com", config, StubSnapshotProvider(), store)
    assert second.id > first.id
