"""Base cleaner for turning raw HTML into LLM-ready text."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseCleaner(ABC):
    """Abstract cleaning strategy."""

    @abstractmethod
    def clean(self, html: str | None) -> str:
        """Return normalized plain text for the given HTML or pasted text.

        Implementations never raise; internal failures degrade to a
        simpler strategy.
        """
