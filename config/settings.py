"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )

    # ===================
    # EMBEDDINGS / SEARCH
    # ===================
    openai_api_key: Optional[str] = Field(
        None,
        description="OpenAI key for query embeddings (local hashing used when absent)"
    )
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model name"
    )
    embedding_timeout_seconds: float = Field(
        default=5.0,
        ge=1,
        le=30,
        description="Upper bound for a single embedding provider call"
    )
    rag_index_path: str = Field(
        default="data/rag-index-comprehensive.json",
        description="Path to the reference corpus index (JSON)"
    )
    rag_index_dimensions: int = Field(
        default=512,
        ge=16,
        le=4096,
        description="Vector size used when the index does not declare one"
    )

    # ===================
    # CACHE TTLS
    # ===================
    link_cache_ttl_seconds: int = Field(
        default=300,
        ge=0,
        le=3600,
        description="TTL for paginated product-link listings"
    )
    unlinked_cache_ttl_seconds: int = Field(
        default=120,
        ge=0,
        le=3600,
        description="TTL for the unclassified products view"
    )
    classification_cache_ttl_seconds: int = Field(
        default=600,
        ge=0,
        le=86400,
        description="TTL for freight classification listings"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def embeddings_configured(self) -> bool:
        """Check if a remote embedding provider is configured."""
        return bool(self.openai_api_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
