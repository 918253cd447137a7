"""Cleaner registry: one entry per CleaningMethod."""

from __future__ import annotations

from core.config import CleaningMethod
from parsing.cleaners.base import BaseCleaner
from parsing.cleaners.html_strip import HtmlStripCleaner, html_strip
from parsing.cleaners.readability import ReadabilityCleaner, readability_clean

CLEANER_REGISTRY: dict[CleaningMethod, type[BaseCleaner]] = {
    CleaningMethod.READABILITY: ReadabilityCleaner,
    CleaningMethod.HTML_STRIP: HtmlStripCleaner,
}


def get_cleaner(method: CleaningMethod | str) -> BaseCleaner:
    """Get a cleaner instance for the given method."""
    return CLEANER_REGISTRY[CleaningMethod(method)]()


def clean(html: str | None, method: CleaningMethod | str) -> str:
    """Convert raw HTML (or pasted text) to LLM-ready plain text."""
    return get_cleaner(method).clean(html)


__all__ = [
    "CLEANER_REGISTRY",
    "BaseCleaner",
    "HtmlStripCleaner",
    "ReadabilityCleaner",
    "clean",
    "get_cleaner",
    "html_strip",
    "readability_clean",
]
