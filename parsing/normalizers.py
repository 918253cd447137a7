"""Pure utility functions for text normalization and quality checks."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

_JSON_LD_RE = re.compile(
    r"<script[^>]*type=[\"']application/ld\+json[\"'][^>]*>(.*?)</script>",
    re.IGNORECASE | re.DOTALL,
)
_SCRIPT_RE = re.compile(r"<script\b.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style\b.*?</style\s*>", re.IGNORECASE | re.DOTALL)

_LI_OPEN_RE = re.compile(r"<li\b[^>]*>", re.IGNORECASE)
_BLOCK_CLOSE_RE = re.compile(r"</(?:li|p|div|br)\b[^>]*>", re.IGNORECASE)
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")

# "$" followed by comma-grouped digits, e.g. $128,000 or $95,500.00
_DOLLAR_RE = re.compile(r"\$\d{1,3}(?:,\d{3})+(?:\.\d{2})?")

_EMAIL_RE = re.compile(r"[\w.-]+@[\w.-]+\.\w+")
_PHONE_RE = re.compile(r"\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")

MAX_CONSECUTIVE_SPECIAL_CHARS = 20
_CORRUPTION_RE = re.compile(
    rf"[^a-zA-Z0-9\s]{{{MAX_CONSECUTIVE_SPECIAL_CHARS + 1},}}"
)

BULLET = "•"


def normalize_whitespace(text: str) -> str:
    """Collapse horizontal whitespace and blank-line runs, keep line breaks."""
    text = text.replace("\x00", "")
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[^\S\n]+", " ", text)
    text = re.sub(r" ?\n ?", "\n", text)
    text = re.sub(r"\n{2,}", "\n", text)
    return text.strip()


def extract_json_ld(html: str) -> list[str]:
    """Bodies of all application/ld+json script blocks, verbatim."""
    return [body.strip() for body in _JSON_LD_RE.findall(html) if body.strip()]


def strip_scripts_and_styles(html: str) -> str:
    """Remove script and style blocks, bodies included."""
    html = _SCRIPT_RE.sub("", html)
    return _STYLE_RE.sub("", html)


def remove_html_tags(html: str | None) -> str:
    """Turn markup into plain text, keeping list items and block breaks."""
    if not html:
        return ""
    text = _LI_OPEN_RE.sub(f"{BULLET} ", html)
    text = _BLOCK_CLOSE_RE.sub("\n", text)
    text = _BR_RE.sub("\n", text)
    text = _TAG_RE.sub(" ", text)
    return normalize_whitespace(text)


def find_dollar_amounts(text: str) -> list[str]:
    """Dollar amounts in order of first appearance, without duplicates."""
    seen: dict[str, None] = {}
    for amount in _DOLLAR_RE.findall(text):
        seen.setdefault(amount, None)
    return list(seen)


def truncate(text: str, max_chars: int) -> str:
    """Cut text to the model's character budget."""
    if len(text) > max_chars:
        return text[:max_chars]
    return text


@dataclass
class TextMetadata:
    """Basic shape of a text."""

    character_count: int
    word_count: int
    line_count: int
    has_contact_info: bool


def text_metadata(text: str) -> TextMetadata:
    return TextMetadata(
        character_count=len(text),
        word_count=len(text.split()),
        line_count=len(text.split("\n")),
        has_contact_info=bool(_EMAIL_RE.search(text) or _PHONE_RE.search(text)),
    )


@dataclass
class ValidationResult:
    """Outcome of validate_text."""

    is_valid: bool
    code: str | None = None
    message: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


def validate_text(
    text: str,
    min_chars: int = 200,
    max_chars: int = 50000,
    label: str = "Content",
) -> ValidationResult:
    """Length and corruption heuristic for cleaned text.

    Corruption means a run of more than 20 consecutive characters that are
    neither alphanumeric nor whitespace, typical of binary or mangled input.
    """
    if not text or not text.strip():
        return ValidationResult(
            is_valid=False,
            code="NO_CONTENT",
            message=f"{label} appears to be empty or contains only whitespace",
        )

    if len(text) < min_chars:
        return ValidationResult(
            is_valid=False,
            code="TOO_SHORT",
            message=(
                f"{label} is too short. Found {len(text)} characters, "
                f"minimum required: {min_chars} characters."
            ),
            details={"character_count": len(text), "min_chars": min_chars},
        )

    if len(text) > max_chars:
        return ValidationResult(
            is_valid=False,
            code="TOO_LONG",
            message=(
                f"{label} is too long. Found {len(text)} characters, "
                f"maximum allowed: {max_chars} characters."
            ),
            details={"character_count": len(text), "max_chars": max_chars},
        )

    if _CORRUPTION_RE.search(text):
        return ValidationResult(
            is_valid=False,
            code="CORRUPTED",
            message=(
                f"{label} appears to be corrupted. "
                "Found excessive consecutive special characters."
            ),
            details={"max_consecutive_special_chars": MAX_CONSECUTIVE_SPECIAL_CHARS},
        )

    return ValidationResult(is_valid=True)
