"""Settings for the sharing engine, read from ``SHAREGATE_*`` env vars or ``.env``."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ShareGateSettings(BaseSettings):
    """Engine configuration.

    Explicit constructor arguments to ``ShareGateAsync`` take precedence
    over these values.
    """

    model_config = SettingsConfigDict(
        env_prefix="SHAREGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = "sqlite+aiosqlite:///./sharegate.db"
    echo_sql: bool = False

    # Base the HTTP layer serves share links under
    share_base_url: str = "http://localhost:8000/api"

    # 16 bytes = 128 bits of randomness per token
    link_token_bytes: int = Field(default=16, ge=16)
    link_token_attempts: int = Field(default=5, ge=1)
