"""
Application configuration using Pydantic Settings.
All environment-specific values are centralized here.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── App ──────────────────────────────────────────────
    app_name: str = "Client Service Pricing"
    debug: bool = False
    api_prefix: str = "/api/v1/client-pricing"

    # ── Storage ──────────────────────────────────────────
    storage_backend: str = "memory"  # "memory" | "mongo"
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "service_tracker"
    catalog_collection: str = "client_pricing"

    # ── Access ───────────────────────────────────────────
    # Identity is resolved upstream; these headers carry it in.
    role_header: str = "X-User-Role"
    user_header: str = "X-User-Id"
    redacted_role: str = "worker"
    calculate_min_role: str = "worker"

    # ── Logging ──────────────────────────────────────────
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings (singleton)."""
    return Settings()
