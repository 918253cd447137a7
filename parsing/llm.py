"""LLM extraction client using litellm for provider abstraction."""

from __future__ import annotations

import json
import re
import time

import httpx
import litellm  # type: ignore[import-untyped]
import structlog
from pydantic import ValidationError

from core import verbose
from core.config import PipelineConfig, Settings
from core.errors import ExtractionFailedError, ProviderUnavailableError
from parsing.models import ExtractedJob
from parsing.prompts import JOB_EXTRACT_SYSTEM_PROMPT, build_job_extract_prompt
from parsing.providers import ModelHandle, check_reachable, get_model

logger = structlog.get_logger()

# Substrings of transport-level failures as reported by various SDKs
_CONNECTION_MARKERS = (
    "fetch failed",
    "econnrefused",
    "connection refused",
    "connecterror",
    "name or service not known",
    "nodename nor servname",
    "failed to establish a new connection",
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def _build_messages(page_text: str, schema_json: str) -> list[dict[str, str]]:
    """Build chat messages for the LLM call."""
    return [
        {
            "role": "system",
            "content": JOB_EXTRACT_SYSTEM_PROMPT.format(schema=schema_json),
        },
        {
            "role": "user",
            "content": build_job_extract_prompt(page_text),
        },
    ]


def is_transport_error(error: BaseException) -> bool:
    """True when the provider could not be reached at all."""
    if isinstance(error, (litellm.APIConnectionError, httpx.TransportError, ConnectionError)):
        return True
    message = str(error).lower()
    return any(marker in message for marker in _CONNECTION_MARKERS)


def parse_job(raw_text: str) -> ExtractedJob:
    """Validate raw model output against the job schema.

    Raises:
        ExtractionFailedError: output is not JSON or does not match the schema
    """
    text = raw_text.strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        data = json.loads(text)
        return ExtractedJob.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise ExtractionFailedError(
            f"Model output did not match the job schema: {e}"
        ) from e


class ExtractionInvoker:
    """Builds the extraction request, calls the model and returns typed data."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()

    def resolve(self, config: PipelineConfig) -> ModelHandle:
        return get_model(
            config.provider, config.model, config.context_window, self.settings
        )

    async def extract(self, cleaned_text: str, config: PipelineConfig) -> ExtractedJob:
        """Extract an ExtractedJob from cleaned page text.

        Raises:
            ProviderUnavailableError: the model service could not be reached
            ExtractionFailedError: the call failed or returned invalid output
        """
        handle = self.resolve(config)
        if handle.is_local:
            await check_reachable(handle, attempts=self.settings.provider_check_attempts)

        schema_json = json.dumps(
            ExtractedJob.model_json_schema(by_alias=True), indent=2
        )
        messages = _build_messages(cleaned_text, schema_json)

        verbose.step(f"LLM call → {handle.litellm_model} ({len(cleaned_text)} chars)")
        start = time.monotonic()

        try:
            response = await litellm.acompletion(
                messages=messages,
                response_format={"type": "json_object"},
                temperature=config.temperature,
                **handle.completion_kwargs(),
            )
        except Exception as e:
            logger.warning(
                "llm_call_failed", provider=handle.provider, model=handle.model, error=str(e)
            )
            if is_transport_error(e):
                raise ProviderUnavailableError(handle.provider) from e
            raise ExtractionFailedError(str(e) or "AI request failed") from e

        elapsed_ms = (time.monotonic() - start) * 1000
        usage = getattr(response, "usage", None)
        tokens = getattr(usage, "total_tokens", 0) if usage else 0

        raw_text: str = response.choices[0].message.content or ""  # type: ignore[union-attr]
        verbose.detail(f"LLM response: {len(raw_text)} chars, {tokens} tokens, {elapsed_ms:.0f}ms")

        job = parse_job(raw_text)
        logger.info(
            "job_extracted",
            provider=handle.provider,
            model=handle.model,
            title=job.title,
            tokens=tokens,
            duration_ms=round(elapsed_ms),
        )
        return job
