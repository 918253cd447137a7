"""Core infrastructure: config, request context, errors, logging, and utilities."""

from core import verbose
from core.config import (
    CleaningMethod,
    FetchMethod,
    PipelineConfig,
    PipelineDefaults,
    PipelineSettings,
    ProviderConfig,
    Settings,
    build_pipeline_config,
    get_text_limit,
    load_config,
)
from core.context import PipelineContext, RequestOrigin
from core.errors import PipelineError
from core.ids import config_fingerprint, content_hash, generate_run_id

__all__ = [
    "CleaningMethod",
    "FetchMethod",
    "PipelineConfig",
    "PipelineDefaults",
    "PipelineSettings",
    "ProviderConfig",
    "Settings",
    "build_pipeline_config",
    "get_text_limit",
    "load_config",
    "PipelineContext",
    "RequestOrigin",
    "PipelineError",
    "config_fingerprint",
    "content_hash",
    "generate_run_id",
    "verbose",
]
