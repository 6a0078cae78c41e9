from __future__ import annotations

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=os.environ.get("ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Target platform
    platform_domain: str = "instagram.com"
    platform_name: str = "Instagram"

    # Hostname substrings trusted as media origins (extraction + download proxy)
    cdn_hosts: list[str] = Field(
        default_factory=lambda: ["cdninstagram.com", "fbcdn.net"]
    )

    # Browser identity sent with every navigation
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/124.0.0.0 Safari/537.36"
    )
    accept_language: str = "en-US,en;q=0.9"

    # Performance
    navigation_timeout_seconds: int = 60
    download_timeout_seconds: int = 30

    # Inbound rate limiting, per client IP
    rate_limit_requests: int = 20
    rate_limit_window_seconds: int = 60
    # Reverse proxies in front of the server. 0 ignores X-Forwarded-For entirely.
    trusted_proxy_count: int = 0

    # Logging
    log_level: str = "INFO"

    # Debug mode: verbose per-step logging in the resolver
    debug_mode: bool = False


settings = Settings()
