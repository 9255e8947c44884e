from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="APP_",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    cors_origin_regex: str | None = None
    trusted_hosts: list[str] = ["*"]
    root_path: str = ""

    # Storage
    storage_backend: Literal["memory", "supabase"] = "memory"
    ontology_table: str = "ontology_snapshots"
    ontology_storage_key: str = "tree"
    notes_table: str = "notes"
    seed_default_ontology: bool = False  # Start with the #AI / #Project / @Person vocabulary

    # Supabase (required when storage_backend == "supabase")
    supabase_url: str | None = None
    supabase_service_role_key: str | None = None
    supabase_timeout_seconds: int = 10

    # OpenAI
    openai_api_key: str | None = None
    embedding_model: str = "text-embedding-3-small"
    enrichment_model: str = "gpt-5-nano"
    enrichment_model_reasoning: str = "medium"
    openai_timeout_seconds: float = 30.0
    openai_max_retries: int = 2

    # Search
    similarity_default_limit: int = 10


settings = Settings()
