"""Application configuration: reads from environment variables and Docker Swarm secrets."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

from promptea.errors import ConfigurationError

REQUIRED_SETTINGS = {
    "qdrant_url": "QDRANT_URL",
    "qdrant_api_key": "QDRANT_API_KEY",
    "openai_api_key": "OPENAI_API_KEY",
}

_SECRET_FIELDS = ("qdrant_url", "qdrant_api_key", "openai_api_key", "supabase_url", "supabase_key")


def _read_secret(name: str) -> str | None:
    """Read a Docker Swarm secret from /run/secrets/."""
    secret_path = Path(f"/run/secrets/{name}")
    if secret_path.exists():
        return secret_path.read_text().strip()
    return None


class Settings(BaseSettings):
    """Application settings with env var and secret support."""

    qdrant_url: str = ""
    qdrant_api_key: str = ""
    collection_name: str = "prompts"

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    chat_model: str = "gpt-4"
    refine_model: str = "gpt-4o"

    supabase_url: str = ""
    supabase_key: str = ""

    allowed_origins: str = "http://localhost:5173,http://localhost:8080,http://localhost:3000"
    port: int = 3001
    environment: str = "development"
    log_level: str = "INFO"
    request_timeout: float = 30.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Override with Docker Swarm secrets if available
        for field_name in _SECRET_FIELDS:
            if secret := _read_secret(field_name):
                setattr(self, field_name, secret)

    @property
    def cors_origins(self) -> list[str]:
        """Allowed CORS origins, parsed from the comma-separated setting."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    def missing_required(self) -> list[str]:
        """Environment names of required settings that are empty."""
        return [env for field, env in REQUIRED_SETTINGS.items() if not getattr(self, field)]

    def validate_required(self) -> None:
        """Raise ConfigurationError listing every missing required setting."""
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(missing)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
