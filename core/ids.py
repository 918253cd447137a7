"""ID generation and hashing utilities."""

from __future__ import annotations

import hashlib
import uuid

from core.config import PipelineConfig


def generate_run_id() -> str:
    """Generate a unique pipeline run ID."""
    return uuid.uuid4().hex


def content_hash(content: str | bytes) -> str:
    """Generate SHA-256 hash of content.

    Returns first 16 characters for brevity while maintaining uniqueness.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()[:16]


def config_fingerprint(config: PipelineConfig) -> str:
    """Deterministic identity of a pipeline configuration.

    Two configs with identical field values hash identically regardless of
    how they were constructed.
    """
    return hashlib.sha256(config.serialize().encode("utf-8")).hexdigest()
