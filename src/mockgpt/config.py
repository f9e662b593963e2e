"""Unified configuration via Pydantic Settings + YAML model registry."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MOCKGPT_", env_file=".env", extra="ignore")

    # Server
    host: str = "0.0.0.0"
    port: int = 8383
    log_level: str = "INFO"

    # Model registry
    models_config_path: str = str(_PROJECT_ROOT / "config" / "models.yaml")
    organization_name: str = "mockgpt"

    # Auth (empty list disables auth)
    api_keys: list[str] = Field(default_factory=list)

    # Artificial latency for chat completions
    response_delay_enabled: bool = False
    response_delay_min_ms: int = 0
    response_delay_max_ms: int = 0

    # Observability
    summary_log_interval_ms: int = 5000

    # Body limit
    max_body_size: int = 1_048_576

    # Synthetic content
    random_seed: int | None = None
    embedding_max_dimensions: int = 2048
    embedding_encoding_formats: list[str] = Field(default_factory=lambda: ["float", "base64"])
    image_response_formats: list[str] = Field(default_factory=lambda: ["b64_json"])
    speech_response_formats: list[str] = Field(default_factory=lambda: ["wav", "flac", "pcm"])
    speech_speed_range: list[float] = Field(default_factory=lambda: [0.25, 4.0])
    speech_sample_rate: int = 24_000


@lru_cache
def get_settings() -> Settings:
    return Settings()
