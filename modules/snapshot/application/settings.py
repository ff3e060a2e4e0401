from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SnapshotProviderSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    snapshot_provider: str = Field(default="playwright_mcp", alias="SIGHTLINE_SNAPSHOT_PROVIDER")
    capture_timeout_seconds: int = Field(default=30, alias="SIGHTLINE_CAPTURE_TIMEOUT_SECONDS")
    capture_user_agent: str | None = Field(default=None, alias="SIGHTLINE_CAPTURE_USER_AGENT")
    capture_full_page: bool = Field(default=True, alias="SIGHTLINE_CAPTURE_FULL_PAGE")

    playwright_mcp_mode: str = Field(default="http", alias="PLAYWRIGHT_MCP_MODE")
    playwright_mcp_command: str = Field(default="npx", alias="PLAYWRIGHT_MCP_COMMAND")
    playwright_mcp_args: str = Field(default="@playwright/mcp@latest", alias="PLAYWRIGHT_MCP_ARGS")
    playwright_mcp_cwd: str | None = Field(default=None, alias="PLAYWRIGHT_MCP_CWD")
    playwright_mcp_url: str | None = Field(default=None, alias="PLAYWRIGHT_MCP_URL")


def get_snapshot_provider_settings() -> SnapshotProviderSettings:
    return SnapshotProviderSettings()
