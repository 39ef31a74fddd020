"""Configuration management for AnalystPro Doc Engine."""

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Anthropic configuration (required)
    ANTHROPIC_API_KEY: str = Field(..., description="Anthropic API key")

    # Supabase configuration (remote store + auth)
    SUPABASE_URL: str = Field(default="", description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(default="", description="Supabase service role key")

    # Admin API key for local tools (X-API-Key header)
    ADMIN_API_KEY: str = Field(default="", description="Admin API key; empty disables key auth")

    # Environment
    DOCGEN_ENV: str = Field(default="dev", description="Environment: dev, test, staging, prod")

    # Persistence
    STORE_BACKEND: Literal["local", "supabase"] = Field(
        default="local", description="Artifact store backend"
    )
    LOCAL_DB_URL: str = Field(
        default="sqlite:///analyst_pro.db", description="SQLAlchemy URL for the local store"
    )

    # Reference file limits
    MAX_COMPRESSED_FILE_BYTES: int = Field(
        default=700 * 1024, description="Ceiling for a compressed reference file payload"
    )

    # Models
    GENERATION_MODEL: str = Field(
        default="claude-sonnet-4-5-20250929", description="Model for document generation"
    )
    FAST_MODEL: str = Field(
        default="claude-haiku-4-5-20251001",
        description="Model for grounding, auto-answer and question generation",
    )
    LITE_MODEL: str = Field(
        default="claude-haiku-4-5-20251001", description="Model for answer suggestions"
    )
    GENERATION_MAX_TOKENS: int = Field(default=16000, description="Max output tokens per document")
    REFINE_MAX_TOKENS: int = Field(default=16000, description="Max output tokens per refinement")

    # Grounding
    GROUNDING_ENABLED: bool = Field(default=True, description="Fetch external research context")
    GROUNDING_MAX_SEARCHES: int = Field(default=3, description="Web searches per grounding call")

    # Sessions
    SESSION_IDLE_MINUTES: int = Field(
        default=60, description="Idle minutes before a session is dropped; 0 disables"
    )

    # Interview
    QUESTION_FALLBACK_POLICY: Literal["default", "ai"] = Field(
        default="default",
        description="Question source for custom document types",
    )

    # Refinement
    REFINE_VERIFY_SECTIONS: bool = Field(
        default=False,
        description="Reject refinements that change text outside the targeted section",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
