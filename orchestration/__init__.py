"""Orchestration: sequences fetch, clean, extract and run tracking per request."""

from orchestration.runner import PipelineInfo, PipelineOrchestrator, is_valid_url

__all__ = [
    "PipelineInfo",
    "PipelineOrchestrator",
    "is_valid_url",
]
