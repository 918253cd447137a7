"""Fetch-level failure taxonomy surfaced to the orchestrator."""

from __future__ import annotations


class FetchError(Exception):
    """Base class for page retrieval failures."""


class FetchTimeout(FetchError):
    """The standard fetch exceeded its time bound."""


class NetworkUnreachable(FetchError):
    """Connection-level failure before any HTTP response."""


class SoftBlocked(FetchError):
    """The origin answered but refused service to an automated client."""

    def __init__(self, status: int, html: str = ""):
        super().__init__(f"HTTP {status}")
        self.status = status
        self.html = html


class HttpStatusError(FetchError):
    """Any other non-2xx response."""

    def __init__(self, status: int):
        super().__init__(f"HTTP {status}")
        self.status = status


class RenderFailure(FetchError):
    """The headless browser could not produce a rendered page."""

    def __init__(self, cause: BaseException | str):
        super().__init__(str(cause))
        self.cause = cause


class RequestFailed(FetchError):
    """No usable response: a redirect loop or a body that could not be decoded."""
