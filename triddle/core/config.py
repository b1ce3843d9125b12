"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root (one level above the triddle package)
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    environment: str = "development"
    log_level: str = "INFO"

    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "triddle"
    mongodb_timeout_ms: int = 5000

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 30
    jwt_cookie_expire_days: int = 30

    # CORS (comma-separated allow-list)
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Rate limiting: 500 requests per 10 minutes per client
    rate_limit_window_seconds: int = 600
    rate_limit_max_requests: int = 500
    trust_proxy: bool = False

    # Query parameters allowed to repeat (comma-separated)
    hpp_whitelist: str = ""

    # Timeouts
    request_timeout_seconds: float = 30.0
    shutdown_grace_seconds: float = 30.0

    # Static files and uploads
    public_dir: Path = PROJECT_ROOT / "public"
    upload_dir: Optional[Path] = None
    max_upload_mb: int = 5

    # API docs
    api_prefix: str = "/api/v1"
    docs_path: str = "/api-docs"
    docs_enabled: bool = True
    production_url: str = "https://triddle-backend-ruddy.vercel.app/api/v1"
    public_base_url: Optional[str] = None

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def cors_allow_list(self) -> List[str]:
        """CORS origins as a list, blanks dropped."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def hpp_whitelist_set(self) -> frozenset:
        return frozenset(name.strip() for name in self.hpp_whitelist.split(",") if name.strip())

    @property
    def uploads_path(self) -> Path:
        """Where uploaded files land; defaults to <public_dir>/uploads."""
        return self.upload_dir or self.public_dir / "uploads"

    @property
    def development_url(self) -> str:
        return f"http://localhost:{self.port}{self.api_prefix}"

    @property
    def current_server_url(self) -> str:
        """Base URL of the API in the running environment."""
        if self.public_base_url:
            return self.public_base_url.rstrip("/")
        return self.production_url if self.is_production else self.development_url

    @property
    def docs_url(self) -> str:
        return f"http://localhost:{self.port}{self.docs_path}"

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
