"""Application settings loaded from environment variables and .env."""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """CoverWise configuration.

    Every field maps to an upper-case environment variable of the same name
    (``gemini_api_key`` -> ``GEMINI_API_KEY``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:5173"])

    # Gemini
    gemini_api_key: str = ""
    gemini_model: Optional[str] = None
    gemini_model_previsit: Optional[str] = None
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_http_timeout_seconds: float = 120.0
    model_cache_ttl_seconds: float = 300.0

    # Voice readout
    elevenlabs_api_key: str = ""
    elevenlabs_voice_id: str = "21m00Tcm4TlvDq8ikWAM"
    elevenlabs_api_base: str = "https://api.elevenlabs.io/v1"

    # Donations
    donation_wallet: str = ""
    solana_cluster: str = "devnet"
    solana_rpc_url: Optional[str] = None


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
