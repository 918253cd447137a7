"""Caller-facing error taxonomy for the extraction pipeline.

Every orchestrator operation either returns structured data or raises one
of these. Each carries a user-readable message and the HTTP status used by
the API layer.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for terminal pipeline outcomes."""

    kind: str = "pipeline_error"
    status_code: int = 500

    def __init__(self, message: str, raw_content: str | None = None):
        super().__init__(message)
        self.message = message
        # Page content fetched before the failure, if any
        self.raw_content = raw_content

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message}


class BadRequestError(PipelineError):
    kind = "bad_request"
    status_code = 400


class RemoteBlockedError(PipelineError):
    kind = "remote_blocked"
    status_code = 422


class RemoteFetchFailedError(PipelineError):
    kind = "remote_fetch_failed"
    status_code = 422


class FetchTimeoutError(PipelineError):
    kind = "timeout"
    status_code = 504


class NetworkUnreachableError(PipelineError):
    kind = "network_unreachable"
    status_code = 502


class InsufficientContentError(PipelineError):
    kind = "insufficient_content"
    status_code = 422


class ReprocessNotFoundError(PipelineError):
    kind = "reprocess_not_found"
    status_code = 404


class ProviderUnavailableError(PipelineError):
    """The model service itself is unreachable."""

    kind = "provider_unavailable"
    status_code = 503

    def __init__(self, provider: str, message: str | None = None):
        super().__init__(
            message
            or f"Cannot connect to {provider} service. Please ensure the service is running."
        )
        self.provider = provider


class ExtractionFailedError(PipelineError):
    kind = "extraction_failed"
    status_code = 500
