"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration.

    Values are read from environment variables (or a `.env` file).
    """

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_key: str = ""
    supabase_http_max_connections: int = 100
    supabase_http_max_keepalive_connections: int = 50

    # Store
    store_backend: str = "supabase"
    store_table: str = "kv_nodes"
    store_increment_function: str = "kv_increment"
    store_cast_vote_function: str = "kv_cast_vote"
    store_page_size: int = 1000
    store_timeout_seconds: int = 10
    store_retry_attempts: int = 3
    store_cas_attempts: int = 5
    slow_store_call_log_threshold_ms: int = 0

    # App
    app_name: str = "Ballot API"
    app_version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000"
    public_base_url: str = "http://localhost:3000"
    enable_scheduler: bool = True

    # Scheduling
    timezone: str = "UTC"
    credential_purge_retention_days: int = 30

    # Phone matching
    phone_country_code: str = "92"
    phone_trunk_prefix: str = "0"

    # Credential lifetimes (seconds)
    link_min_ttl_seconds: int = 60
    link_max_ttl_seconds: int = 86_400
    token_min_ttl_seconds: int = 10
    token_max_ttl_seconds: int = 2_592_000
    personal_token_bytes: int = 18

    # Self-encoded tokens
    self_encoded_signing_key: str = ""
    accept_unsigned_self_encoded: bool = True

    # Performance tuning
    auth_token_cache_ttl_seconds: int = 15
    auth_token_cache_max_entries: int = 1024
    slow_request_log_threshold_ms: int = 0

    @property
    def origins_list(self) -> list[str]:
        """Parse comma-separated ALLOWED_ORIGINS into a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()  # type: ignore[call-arg]
