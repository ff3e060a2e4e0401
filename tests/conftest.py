import pytest

from modules.snapshot.application.service import SnapshotService
from modules.snapshot.application.settings import SnapshotProviderSettings
from modules.snapshot.infrastructure.persistence import SqlSnapshotStore
from modules.snapshot.infrastructure.providers.stubs import StubSnapshotProvider


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'sightline.sqlite'}"


@pytest.fixture
def store(database_url):
    snapshot_store = SqlSnapshotStore.from_url(database_url)
    yield snapshot_store
    snapshot_store.close()


@pytest.fixture
def stub_settings() -> SnapshotProviderSettings:
    return SnapshotProviderSettings(snapshot_provider="stub")


@pytest.fixture
def service(store, stub_settings) -> SnapshotService:
    return SnapshotService(store, provider_settings=stub_settings, provider=StubSnapshotProvider())
