"""Application configuration via pydantic-settings.

Reads from .env file or environment variables. All settings are validated
at startup. If a setting is malformed, the app fails fast with a clear
error message.

Usage:
    from agent_payment_gateway.config import get_settings
    settings = get_settings()
    print(settings.solana_rpc_url)
"""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the Agent Payment Gateway."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True
    app_log_level: str = "DEBUG"
    app_host: str = "0.0.0.0"
    app_port: int = 4100
    app_public_url: str = "http://localhost:4100"

    # --- Solana ---
    solana_rpc_url: str = "https://api.devnet.solana.com"
    solana_network: str = "devnet"
    solana_commitment: Literal["processed", "confirmed", "finalized"] = "confirmed"
    ledger_rpc_timeout_seconds: float = 10.0

    # --- Verification ---
    verification_timeout_seconds: float = 15.0
    underpayment_tolerance: Decimal = Field(default=Decimal("0.01"), ge=0, lt=1)

    # --- Task Execution ---
    task_timeout_seconds: float = 60.0
    task_simulated_delay_seconds: float = 1.0

    # --- Storage ---
    storage_backend: Literal["memory", "database"] = "memory"
    database_url: str = (
        "postgresql+asyncpg://gateway:gateway_dev"
        "@localhost:5432/agent_payment_gateway"
    )
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_echo_sql: bool = False

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def uses_database(self) -> bool:
        return self.storage_backend == "database"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()
