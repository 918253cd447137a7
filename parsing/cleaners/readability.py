"""Main-content extraction with readability, falling back to html-strip."""

from __future__ import annotations

import structlog
from bs4 import BeautifulSoup
from readability import Document

from core import verbose
from parsing.cleaners.base import BaseCleaner
from parsing.cleaners.html_strip import html_strip
from parsing.normalizers import (
    extract_json_ld,
    find_dollar_amounts,
    normalize_whitespace,
    remove_html_tags,
    strip_scripts_and_styles,
)

logger = structlog.get_logger()

# Below this, the article heuristic is assumed to have picked the wrong node
MIN_ARTICLE_CHARS = 100


def _article_text(html: str) -> str:
    summary_html = Document(html).summary(html_partial=True)
    soup = BeautifulSoup(summary_html, "lxml")
    return normalize_whitespace(soup.get_text(separator="\n", strip=True))


def readability_clean(html: str | None) -> str:
    """Boilerplate-free article text for a full page.

    Salary lines often live in footers or disclosure blocks that the
    heuristic throws away; any dollar amount on the page that is missing
    from the result is restored in a leading "Compensation:" line.
    """
    if not html:
        return ""

    try:
        article = _article_text(html)
    except Exception as e:
        logger.warning("readability_failed", error=str(e))
        verbose.detail(f"Readability failed ({e}), using html-strip")
        return html_strip(html)

    if len(article) < MIN_ARTICLE_CHARS:
        verbose.detail(
            f"Readability produced {len(article)} chars, using html-strip"
        )
        return html_strip(html)

    parts = extract_json_ld(html)
    composed = "\n".join([*parts, article])

    page_text = remove_html_tags(strip_scripts_and_styles(html))
    missing = [a for a in find_dollar_amounts(page_text) if a not in composed]
    if missing:
        verbose.detail(f"Restoring compensation amounts: {', '.join(missing)}")
        parts.append(f"Compensation: {', '.join(missing)}")

    parts.append(article)
    return "\n".join(parts).strip()


class ReadabilityCleaner(BaseCleaner):
    """Article extraction for full pages."""

    def clean(self, html: str | None) -> str:
        return readability_clean(html)
