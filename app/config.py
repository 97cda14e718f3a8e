# app/config.py
"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Database ──────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./suistage.db"
    DATABASE_ECHO: bool = False       # Set True to log all SQL queries (debug only)
    BACKUP_DIR: str = "backups"

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 3000
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: str = "http://localhost:5173"   # comma-separated

    # ── Security ──────────────────────────────────────────────────────────
    API_KEY: Optional[str] = None   # Set in .env to enable auth on API endpoints

    # ── Sui Network ───────────────────────────────────────────────────────
    SUI_NETWORK: str = "testnet"
    SUI_RPC_URL: str = "https://fullnode.testnet.sui.io:443"
    PACKAGE_ID: str = ""
    EVENT_REGISTRY_ID: str = ""

    # ── Walrus ────────────────────────────────────────────────────────────
    WALRUS_AGGREGATOR_URL: str = "https://aggregator.walrus-testnet.walrus.space"
    WALRUS_PUBLISHER_URL: str = "https://publisher.walrus-testnet.walrus.space"
    WALRUS_EPOCHS: int = 5
    MAX_IMAGE_SIZE_MB: int = 10

    # ── Background jobs ───────────────────────────────────────────────────
    SYNC_INTERVAL_SECONDS: int = 0      # 0 disables the chain poller
    SYNC_BATCH_LIMIT: int = 50
    AUTO_OPTIMIZE: bool = False
    OPTIMIZE_INTERVAL_SECONDS: int = 3600

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    @property
    def CORS_ORIGIN_LIST(self) -> list:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    def missing_required(self) -> list:
        """Names of settings the backend can start without but should not."""
        return [name for name in ("PACKAGE_ID", "EVENT_REGISTRY_ID") if not getattr(self, name)]

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
