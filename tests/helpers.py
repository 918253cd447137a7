"""Builders for test pages and fetch results."""

from collectors.http_client import FetchResult

JOB_URL = "https://jobs.example.com/postings/42"


def posting_html(paragraphs: int = 8) -> str:
    """A plain job page whose html-strip text grows by ~80 chars per paragraph."""
    body = "".join(
        f"<p>Paragraph {i}: you will design, build and operate the data services our teams use.</p>"
        for i in range(paragraphs)
    )
    return (
        "<html><head><title>Senior Engineer</title><script>track();</script></head>"
        f"<body><h1>Senior Engineer</h1>{body}</body></html>"
    )


def fetched(html: str, url: str = JOB_URL) -> FetchResult:
    return FetchResult(
        url=url, status_code=200, html=html, content_type="text/html", duration_ms=1.0
    )
