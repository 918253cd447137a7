"""
Page collection for the extraction pipeline.

A standard HTTP fetch is tried first; a headless browser render is the
single fallback for pages that block bots or need JavaScript.
"""

from collectors.errors import (
    FetchError,
    FetchTimeout,
    HttpStatusError,
    NetworkUnreachable,
    RenderFailure,
    SoftBlocked,
)
from collectors.fetcher import PageFetcher
from collectors.http_client import FetchResult, HttpClient

__all__ = [
    "FetchError",
    "FetchResult",
    "FetchTimeout",
    "HttpClient",
    "HttpStatusError",
    "NetworkUnreachable",
    "PageFetcher",
    "RenderFailure",
    "SoftBlocked",
]
