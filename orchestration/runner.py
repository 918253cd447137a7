"""PipelineOrchestrator: fetch → clean → gate → truncate → extract → track."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from datetime import datetime
from urllib.parse import urlparse

import structlog
from pydantic import BaseModel

from collectors.errors import (
    FetchTimeout,
    HttpStatusError,
    NetworkUnreachable,
    RenderFailure,
    RequestFailed,
    SoftBlocked,
)
from collectors.fetcher import PageFetcher
from core import verbose
from core.config import (
    CleaningMethod,
    FetchMethod,
    PipelineConfig,
    PipelineDefaults,
    PipelineSettings,
    ProviderConfig,
    Settings,
    build_pipeline_config,
)
from core.context import PipelineContext, RequestOrigin
from core.errors import (
    BadRequestError,
    ExtractionFailedError,
    FetchTimeoutError,
    InsufficientContentError,
    NetworkUnreachableError,
    PipelineError,
    RemoteBlockedError,
    RemoteFetchFailedError,
    ReprocessNotFoundError,
)
from core.ids import config_fingerprint
from evidence.runs import RunStatus, RunStore
from evidence.tracker import PipelineRunTracker, RunHandle
from parsing.cleaners import clean
from parsing.llm import ExtractionInvoker
from parsing.models import ExtractedJob
from parsing.normalizers import text_metadata, truncate, validate_text
from parsing.providers import require_supported_provider

logger = structlog.get_logger()

INSUFFICIENT_MESSAGES = {
    RequestOrigin.URL: (
        "Could not extract enough text from this page. "
        "The site may require JavaScript or login."
    ),
    RequestOrigin.PASTED: (
        "Not enough text to extract job details. "
        "Please paste more of the job posting."
    ),
    RequestOrigin.REPROCESS: "Re-processing produced insufficient text content.",
}

BLOCKED_MESSAGE = "This site blocked the request. Try pasting the job description manually."


class PipelineInfo(BaseModel):
    """What the latest run of a job looks like next to the caller's settings."""

    has_pipeline_data: bool
    config_hash: str | None = None
    processed_at: datetime | None = None
    status: RunStatus | None = None
    config_changed: bool = False


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class PipelineOrchestrator:
    """Runs one extraction request end to end.

    Every public operation returns an ExtractedJob or raises exactly one
    core.errors.PipelineError subclass.
    """

    def __init__(
        self,
        store: RunStore,
        fetcher: PageFetcher | None = None,
        invoker: ExtractionInvoker | None = None,
        tracker: PipelineRunTracker | None = None,
        settings: Settings | None = None,
        defaults: PipelineDefaults | None = None,
    ):
        self.settings = settings or Settings()
        self.defaults = defaults or PipelineDefaults()
        self.store = store
        self.fetcher = fetcher or PageFetcher(self.settings)
        self.invoker = invoker or ExtractionInvoker(self.settings)
        self.tracker = tracker or PipelineRunTracker(store)

    # Entry points

    async def extract_from_url(
        self,
        url: str | None,
        provider: ProviderConfig | None,
        pipeline_settings: PipelineSettings | None = None,
        job_id: str | None = None,
    ) -> ExtractedJob:
        ctx = PipelineContext(origin=RequestOrigin.URL)
        verbose.header(f"Extract from URL {url} ({ctx.request_id[:8]})")
        return await self._observe(
            ctx,
            self._extract_from_url(
                ctx, url, provider, pipeline_settings or self.defaults.pipeline, job_id
            ),
        )

    async def extract_from_pasted_text(
        self,
        text: str | None,
        provider: ProviderConfig | None,
        job_id: str | None = None,
    ) -> ExtractedJob:
        ctx = PipelineContext(origin=RequestOrigin.PASTED)
        verbose.header(f"Extract from pasted text ({ctx.request_id[:8]})")
        return await self._observe(
            ctx, self._extract_from_pasted_text(ctx, text, provider, job_id)
        )

    async def reprocess_job(
        self,
        job_id: str | None,
        provider: ProviderConfig | None,
        pipeline_settings: PipelineSettings | None = None,
    ) -> ExtractedJob:
        ctx = PipelineContext(origin=RequestOrigin.REPROCESS)
        verbose.header(f"Re-process job {job_id} ({ctx.request_id[:8]})")
        return await self._observe(
            ctx,
            self._reprocess_job(
                ctx, job_id, provider, pipeline_settings or self.defaults.pipeline
            ),
        )

    async def pipeline_info(
        self,
        job_id: str,
        provider: ProviderConfig | None = None,
        pipeline_settings: PipelineSettings | None = None,
    ) -> PipelineInfo:
        """Latest run summary for a job, and whether current settings differ."""
        try:
            latest = await asyncio.to_thread(self.store.find_latest_run_for_job, job_id)
        except Exception as e:
            logger.exception("pipeline_info_failed", job_id=job_id)
            raise ExtractionFailedError(
                f"Could not read pipeline history for this job ({e})."
            ) from e
        if latest is None:
            return PipelineInfo(has_pipeline_data=False)

        config_changed = False
        if provider is not None:
            settings = pipeline_settings or self.defaults.pipeline
            current = build_pipeline_config(provider, settings.cleaning_method, self.settings)
            config_changed = latest.config_hash != config_fingerprint(current)

        return PipelineInfo(
            has_pipeline_data=True,
            config_hash=latest.config_hash[:8],
            processed_at=latest.created_at,
            status=latest.status,
            config_changed=config_changed,
        )

    # Modes

    async def _extract_from_url(
        self,
        ctx: PipelineContext,
        url: str | None,
        provider: ProviderConfig | None,
        pipeline_settings: PipelineSettings,
        job_id: str | None,
    ) -> ExtractedJob:
        provider = self._require_provider(provider)
        if not url:
            raise BadRequestError("URL or pasted content is required.")
        if not is_valid_url(url):
            raise BadRequestError("Invalid URL format.")

        config = build_pipeline_config(
            provider, pipeline_settings.cleaning_method, self.settings
        )

        try:
            raw_content, text = await self._fetch_page(
                ctx, url, pipeline_settings.fetch_method, config.cleaner
            )
        except PipelineError as e:
            # A page was fetched but was not usable: keep it on record
            if e.raw_content:
                handle = self.tracker.open(
                    e.raw_content, config, job_id=job_id, source_url=url
                )
                self.tracker.mark_failed(handle, e.message)
            raise

        handle = self.tracker.open(raw_content, config, job_id=job_id, source_url=url)
        return await self._complete(ctx, handle, text, config)

    async def _extract_from_pasted_text(
        self,
        ctx: PipelineContext,
        text: str | None,
        provider: ProviderConfig | None,
        job_id: str | None,
    ) -> ExtractedJob:
        provider = self._require_provider(provider)
        if not text:
            raise BadRequestError("URL or pasted content is required.")

        # Pasted content is a fragment, not a page: readability does not apply
        config = build_pipeline_config(
            provider, CleaningMethod.HTML_STRIP, self.settings
        )
        handle = self.tracker.open(text, config, job_id=job_id)
        cleaned = self._clean(ctx, text, config.cleaner)
        return await self._complete(ctx, handle, cleaned, config)

    async def _reprocess_job(
        self,
        ctx: PipelineContext,
        job_id: str | None,
        provider: ProviderConfig | None,
        pipeline_settings: PipelineSettings,
    ) -> ExtractedJob:
        if not job_id or provider is None or not provider.provider:
            raise BadRequestError("Job ID and model selection are required.")
        require_supported_provider(provider.provider)

        latest = await asyncio.to_thread(self.store.find_latest_run_for_job, job_id)
        if latest is None or not latest.raw_content:
            raise ReprocessNotFoundError(
                "No previous pipeline data found for this job. Cannot re-process."
            )
        verbose.step(f"Using raw content of run {latest.run_id} ({len(latest.raw_content)} chars)")

        config = build_pipeline_config(
            provider, pipeline_settings.cleaning_method, self.settings
        )
        # Always a new run: history is append-only
        handle = self.tracker.open(
            latest.raw_content, config, job_id=job_id, source_url=latest.source_url
        )
        cleaned = self._clean(ctx, latest.raw_content, config.cleaner)
        return await self._complete(ctx, handle, cleaned, config)

    # Stages

    async def _fetch_page(
        self,
        ctx: PipelineContext,
        url: str,
        fetch_method: FetchMethod,
        cleaner: CleaningMethod,
    ) -> tuple[str, str]:
        """Fetch and clean a page according to the fetch policy.

        Returns (raw html, cleaned text).
        """
        ctx.start_stage("fetch")
        verbose.stage("Fetch", f"{fetch_method.value} retrieval of the page")

        if fetch_method == FetchMethod.ALWAYS_PLAYWRIGHT:
            try:
                html = await self.fetcher.fetch_rendered(url)
            except RenderFailure as e:
                raise RemoteFetchFailedError(
                    f"Failed to load the page in a headless browser ({e})."
                ) from e
            text = clean(html, cleaner)
            ctx.complete_stage("fetch", method="rendered", chars=len(text))
            return html, text

        meaningful = self.settings.meaningful_content_chars
        blocked_status: int | None = None
        thin_html: str | None = None

        try:
            result = await self.fetcher.fetch_standard(url)
        except FetchTimeout as e:
            raise FetchTimeoutError(
                "Request timed out. The site took too long to respond."
            ) from e
        except NetworkUnreachable as e:
            raise NetworkUnreachableError(
                "Could not reach the URL. Check the link and try again."
            ) from e
        except HttpStatusError as e:
            raise RemoteFetchFailedError(
                f"Failed to fetch the page (HTTP {e.status})."
            ) from e
        except RequestFailed as e:
            raise RemoteFetchFailedError(f"Failed to fetch the page ({e}).") from e
        except SoftBlocked as e:
            if fetch_method == FetchMethod.STANDARD:
                raise RemoteBlockedError(BLOCKED_MESSAGE) from e
            blocked_status = e.status
            first_reason = f"the site blocked the request (HTTP {e.status})"
        else:
            text = clean(result.html, cleaner)
            if len(text) >= meaningful:
                ctx.complete_stage("fetch", method="standard", chars=len(text))
                return result.html, text
            if fetch_method == FetchMethod.STANDARD:
                raise InsufficientContentError(
                    INSUFFICIENT_MESSAGES[RequestOrigin.URL], raw_content=result.html
                )
            thin_html = result.html
            first_reason = f"the page only yielded {len(text)} characters of text"

        verbose.step(f"Falling back to headless browser: {first_reason}")
        logger.info("render_fallback", url=url, reason=first_reason)

        try:
            html = await self.fetcher.fetch_rendered(url)
        except RenderFailure as e:
            if blocked_status is not None:
                raise RemoteBlockedError(
                    f"This site blocked the request (HTTP {blocked_status}) and the "
                    f"browser fallback failed ({e}). Try pasting the job description manually."
                ) from e
            raise RemoteFetchFailedError(
                f"Could not load this page: {first_reason}, and the browser "
                f"fallback failed ({e}).",
                raw_content=thin_html,
            ) from e

        text = clean(html, cleaner)
        if len(text) < meaningful:
            raise InsufficientContentError(
                f"Could not extract enough text from this page: {first_reason}, and "
                f"the browser-rendered page only yielded {len(text)} characters. "
                "The site may require login.",
                raw_content=html,
            )

        ctx.complete_stage("fetch", method="rendered-fallback", chars=len(text))
        return html, text

    def _clean(self, ctx: PipelineContext, raw_content: str, cleaner: CleaningMethod) -> str:
        ctx.start_stage("clean")
        verbose.stage("Clean", f"{cleaner.value} on {len(raw_content)} chars")
        text = clean(raw_content, cleaner)
        ctx.complete_stage("clean", chars=len(text))
        return text

    async def _complete(
        self,
        ctx: PipelineContext,
        handle: RunHandle | None,
        text: str,
        config: PipelineConfig,
    ) -> ExtractedJob:
        """Common tail: gate, truncate, record cleaned, extract, record outcome."""
        try:
            ctx.start_stage("prepare")
            if len(text) < self.settings.min_content_chars:
                raise InsufficientContentError(INSUFFICIENT_MESSAGES[ctx.origin])

            text = truncate(text, config.max_input_chars)
            quality = validate_text(
                text,
                min_chars=self.settings.min_content_chars,
                max_chars=config.max_input_chars,
                label="Cleaned text",
            )
            if quality.code == "CORRUPTED":
                logger.warning("cleaned_text_suspect", run_id=handle.run_id if handle else None)
            meta = text_metadata(text)
            ctx.complete_stage(
                "prepare",
                chars=meta.character_count,
                words=meta.word_count,
                quality=quality.code or "ok",
            )
            self.tracker.mark_cleaned(handle, text)

            ctx.start_stage("extract")
            verbose.stage("Extract", f"{config.provider}/{config.model}")
            job = await self.invoker.extract(text, config)
            ctx.complete_stage("extract")
        except PipelineError as e:
            self.tracker.mark_failed(handle, e.message)
            raise
        except Exception as e:
            self.tracker.mark_failed(handle, str(e) or type(e).__name__)
            raise ExtractionFailedError(str(e) or "AI request failed") from e

        self.tracker.mark_extracted(handle, job.to_output())
        return job

    # Helpers

    def _require_provider(self, provider: ProviderConfig | None) -> ProviderConfig:
        if provider is None or not provider.provider:
            raise BadRequestError("Model selection is required.")
        require_supported_provider(provider.provider)
        return provider

    async def _observe(
        self, ctx: PipelineContext, work: Awaitable[ExtractedJob]
    ) -> ExtractedJob:
        """Await a request, map stray exceptions, and log the outcome."""
        try:
            job = await work
        except PipelineError as e:
            self._close(ctx, e.kind, e.message)
            raise
        except Exception as e:
            logger.exception("pipeline_unexpected_error")
            self._close(ctx, ExtractionFailedError.kind, str(e))
            raise ExtractionFailedError(str(e) or "Unexpected pipeline error") from e

        self._close(ctx, "extracted")
        return job

    def _close(self, ctx: PipelineContext, outcome: str, error: str | None = None) -> None:
        if error:
            ctx.fail_open_stages(error)
        ctx.finish(outcome)
        summary = ctx.summary()
        logger.info("pipeline_request_finished", error=error, **summary)
        verbose.result(outcome, summary["duration"] or 0.0)
