"""
Application configuration using Pydantic Settings.

Automatically loads environment variables from .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ModelCandidate

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
NANONETS_EXTRACT_URL = "https://extraction-api.nanonets.com/extract"

# Free-tier models tried in this order until one answers
DEFAULT_MODEL_CANDIDATES = (
    "meta-llama/llama-3.3-70b-instruct:free,"
    "mistralai/mistral-7b-instruct:free,"
    "google/gemma-2-9b-it:free"
)

ExtractionProvider = Literal["structured", "text_api", "pypdf", "vision", "stub"]
StorageBackend = Literal["database", "supabase"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Chat completion (OpenRouter or any OpenAI-compatible endpoint)
    openrouter_api_key: str | None = None
    openrouter_base_url: str = OPENROUTER_BASE_URL
    model_candidates: str = DEFAULT_MODEL_CANDIDATES
    allow_canned_answers: bool = False

    # Text extraction
    extraction_provider: ExtractionProvider | None = None
    docstrange_api_key: str | None = None
    extraction_api_url: str = NANONETS_EXTRACT_URL
    text_api_url: str | None = None
    text_api_key: str | None = None
    vision_model: str = "openai/gpt-4o-mini"
    vision_max_pages: int = 5
    http_timeout_seconds: float = 30.0

    # Storage
    storage_backend: StorageBackend | None = None
    supabase_url: str | None = None
    supabase_service_role_key: str | None = None
    supabase_bucket: str = "resumes"
    supabase_table: str = "resumes"
    database_url: str = "sqlite:///./resumes.db"

    # Comma-separated list of frontend origins
    cors_origins: str = (
        "http://localhost:3000,http://127.0.0.1:3000,"
        "http://localhost:5173,http://127.0.0.1:5173"
    )

    # Debug flags
    sql_debug: bool = False
    debug: bool = False

    model_config = SettingsConfigDict(
        # Load from .env file in the package directory
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        # Case insensitive environment variable names
        case_sensitive=False,
        # MODEL_CANDIDATES would otherwise clash with pydantic's model_ prefix
        protected_namespaces=("settings_",),
    )

    @field_validator("extraction_provider", "storage_backend", mode="before")
    @classmethod
    def blank_selects_default(cls, v):
        """An empty value such as `EXTRACTION_PROVIDER=` means automatic selection."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def candidates(self) -> list[ModelCandidate]:
        """
        Parse the ordered model candidate list.

        Entries are comma-separated; each is either ``model`` or
        ``model@base_url`` to route a single candidate to another endpoint.
        """
        candidates = []
        for entry in self.model_candidates.split(","):
            entry = entry.strip()
            if not entry:
                continue
            model, _, base_url = entry.partition("@")
            candidates.append(
                ModelCandidate(
                    model=model.strip(),
                    base_url=base_url.strip() or self.openrouter_base_url,
                )
            )
        return candidates

    @property
    def resolved_extraction_provider(self) -> ExtractionProvider:
        """Explicit provider if set, otherwise structured when keyed, else pypdf."""
        if self.extraction_provider:
            return self.extraction_provider
        if self.docstrange_api_key:
            return "structured"
        return "pypdf"

    @property
    def resolved_storage_backend(self) -> StorageBackend:
        """Explicit backend if set, otherwise Supabase when credentials exist."""
        if self.storage_backend:
            return self.storage_backend
        if self.supabase_url and self.supabase_service_role_key:
            return "supabase"
        return "database"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration loaded from environment.
    """
    return Settings()
