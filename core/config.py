"""Configuration loading and validation."""

from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL = "llama3.2"
DEFAULT_CONTEXT_WINDOW = 8192

LOCAL_PROVIDERS = {"ollama"}


class CleaningMethod(StrEnum):
    """Strategy used to turn raw HTML into LLM-ready text."""

    READABILITY = "readability"
    HTML_STRIP = "html-strip"


class FetchMethod(StrEnum):
    """How a URL is retrieved."""

    STANDARD = "standard"
    STANDARD_WITH_FALLBACK = "standard-with-fallback"
    ALWAYS_PLAYWRIGHT = "always-playwright"


class PipelineSettings(BaseModel):
    """Caller-supplied pipeline policy. Not persisted server-side."""

    model_config = ConfigDict(populate_by_name=True)

    cleaning_method: CleaningMethod = Field(
        default=CleaningMethod.READABILITY, alias="cleaningMethod"
    )
    fetch_method: FetchMethod = Field(
        default=FetchMethod.STANDARD_WITH_FALLBACK, alias="fetchMethod"
    )


class ProviderConfig(BaseModel):
    """The caller's model selection."""

    model_config = ConfigDict(populate_by_name=True)

    provider: str
    model: str = ""
    context_window: int | None = Field(default=None, alias="numCtx", gt=0)

    @property
    def model_name(self) -> str:
        return self.model or DEFAULT_MODEL

    @property
    def num_ctx(self) -> int:
        return self.context_window or DEFAULT_CONTEXT_WINDOW


class PipelineConfig(BaseModel):
    """Everything that influences extraction output for a given raw page.

    Only the fingerprint of this model is used as identity.
    """

    model_config = ConfigDict(frozen=True)

    cleaner: CleaningMethod
    model: str
    provider: str
    context_window: int
    temperature: float
    max_input_chars: int

    def serialize(self) -> str:
        """Canonical key-sorted JSON, stable across processes."""
        return json.dumps(
            self.model_dump(mode="json"), sort_keys=True, separators=(",", ":")
        )


class Settings(BaseSettings):
    """Application settings from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    runs_dir: str = "./data/pipeline_runs"

    # Providers
    ollama_base_url: str = "http://127.0.0.1:11435"
    openai_api_key: str = ""
    deepseek_api_key: str = ""
    provider_check_attempts: int = 3

    # Fetching
    fetch_timeout_seconds: float = 15.0
    render_timeout_seconds: float = 30.0
    render_settle_ms: int = 3000
    user_agent: str = "Mozilla/5.0 (compatible; JobSync/1.0; +https://github.com/jobsync)"
    browser_user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # Content gates
    meaningful_content_chars: int = 500
    min_content_chars: int = 100

    # Extraction
    extraction_temperature: float = 0.1
    remote_max_input_chars: int = 60000

    # Runtime
    verbose: int = 0
    log_level: str = "INFO"

    @field_validator("verbose", mode="before")
    @classmethod
    def _coerce_verbose(cls, v: Any) -> int:
        if isinstance(v, bool):
            return 2 if v else 0
        if isinstance(v, str):
            low = v.strip().lower()
            # Try numeric first so "1", "2", "3" stay as-is
            try:
                return int(low)
            except ValueError:
                pass
            if low in ("true", "yes"):
                return 2
            return 0
        return int(v)


class PipelineDefaults(BaseModel):
    """Defaults used when a caller does not supply a selection."""

    provider: ProviderConfig = Field(
        default_factory=lambda: ProviderConfig(provider="ollama", model=DEFAULT_MODEL)
    )
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)


def get_text_limit(provider: str, context_window: int, settings: Settings | None = None) -> int:
    """Character budget for the cleaned text sent to the model.

    Local models are bounded by their context window (roughly 3 chars per
    token, keeping 2048 tokens for prompts and output).
    """
    settings = settings or Settings()
    if provider in LOCAL_PROVIDERS:
        return max(4000, (context_window - 2048) * 3)
    return settings.remote_max_input_chars


def build_pipeline_config(
    provider: ProviderConfig,
    cleaner: CleaningMethod,
    settings: Settings | None = None,
) -> PipelineConfig:
    """Assemble the PipelineConfig for a request."""
    settings = settings or Settings()
    return PipelineConfig(
        cleaner=cleaner,
        model=provider.model_name,
        provider=provider.provider,
        context_window=provider.num_ctx,
        temperature=settings.extraction_temperature,
        max_input_chars=get_text_limit(provider.provider, provider.num_ctx, settings),
    )


def load_pipeline_defaults(path: Path) -> PipelineDefaults:
    """Load pipeline defaults from a YAML file."""
    if not path.exists():
        return PipelineDefaults()

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return PipelineDefaults(**data)


def load_config(
    config_path: Path | None = None,
    settings: Settings | None = None,
) -> tuple[Settings, PipelineDefaults]:
    """Load all configuration.

    Returns:
        Tuple of (Settings, PipelineDefaults)
    """
    settings = settings or Settings()
    config_path = config_path or Path("configs/pipeline.yaml")
    defaults = load_pipeline_defaults(config_path)

    return settings, defaults
