"""Regex-based tag stripping that keeps embedded JSON-LD job data."""

from __future__ import annotations

from parsing.cleaners.base import BaseCleaner
from parsing.normalizers import (
    extract_json_ld,
    remove_html_tags,
    strip_scripts_and_styles,
)


def html_strip(html: str | None) -> str:
    """Strip a page (or pasted fragment) down to its text.

    Many job boards embed the whole posting as a Schema.org JobPosting in
    <script type="application/ld+json">, so those blocks are pulled out
    first and placed ahead of the page text. All other scripts and styles
    are dropped; <noscript> content is kept.
    """
    if not html:
        return ""

    json_ld = "\n".join(extract_json_ld(html))
    text = remove_html_tags(strip_scripts_and_styles(html))

    if json_ld:
        return f"{json_ld}\n{text}".strip()
    return text


class HtmlStripCleaner(BaseCleaner):
    """Whole-document tag stripping."""

    def clean(self, html: str | None) -> str:
        return html_strip(html)
