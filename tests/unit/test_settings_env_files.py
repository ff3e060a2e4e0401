from apps.api.settings import get_api_settings
from modules.snapshot.application.settings import get_snapshot_provider_settings
from shared.db.settings import DEFAULT_DATABASE_URL, get_db_settings


def test_settings_without_env_files(monkeypatch, tmp_path) -> None:
    with monkeypatch.context() as mp:
        mp.chdir(tmp_path)
        for name in ("SIGHTLINE_SNAPSHOT_PROVIDER", "PORT", "DATABASE_URL"):
            mp.delenv(name, raising=False)
        # Ensure no error on instantiation even if env files are missing.
        assert get_snapshot_provider_settings().snapshot_provider == "playwright_mcp"
        assert get_snapshot_provider_settings().capture_timeout_seconds == 30
        assert get_api_settings().port == 3000
        assert get_db_settings().database_url == DEFAULT_DATABASE_URL


def test_env_local_overrides_env(monkeypatch, tmp_path) -> None:
    (tmp_path / ".env").write_text("SIGHTLINE_SNAPSHOT_PROVIDER=http\n", encoding="utf-8")
    (tmp_path / ".env.local").write_text("SIGHTLINE_SNAPSHOT_PROVIDER=stub\n", encoding="utf-8")

    with monkeypatch.context() as mp:
        mp.chdir(tmp_path)
        mp.delenv("SIGHTLINE_SNAPSHOT_PROVIDER", raising=False)
        settings = get_snapshot_provider_settings()
        assert settings.snapshot_provider == "stub"

        mp.setenv("SIGHTLINE_SNAPSHOT_PROVIDER", "playwright_mcp")
        settings = get_snapshot_provider_settings()
        assert settings.snapshot_provider == "playwright_mcp"


def test_database_url_from_env_file(monkeypatch, tmp_path) -> None:
    (tmp_path / ".env").write_text("DATABASE_URL='sqlite:///other.sqlite'\n", encoding="utf-8")
    with monkeypatch.context() as mp:
        mp.chdir(tmp_path)
        mp.delenv("DATABASE_URL", raising=False)
        assert get_db_settings().database_url == "sqlite:///other.sqlite"


def test_cors_origins_are_split(monkeypatch, tmp_path) -> None:
    with monkeypatch.context() as mp:
        mp.chdir(tmp_path)
        mp.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test")
        assert get_api_settings().cors_origins == ["http://a.test", "http://b.test"]
