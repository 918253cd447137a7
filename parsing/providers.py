"""Model provider registry.

Maps a (provider, model, context window) selection onto the arguments
litellm needs. Local providers are self-hosted and get an explicit
reachability check before each call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from core.config import LOCAL_PROVIDERS, Settings
from core.errors import BadRequestError, ProviderUnavailableError

logger = structlog.get_logger()

SUPPORTED_PROVIDERS = ("ollama", "openai", "deepseek")


def require_supported_provider(provider: str) -> None:
    """Reject a provider name before any fetch or model call is made."""
    if provider not in SUPPORTED_PROVIDERS:
        raise BadRequestError(
            f"Unknown AI provider '{provider}'. "
            f"Expected one of: {', '.join(SUPPORTED_PROVIDERS)}."
        )


@dataclass
class ModelHandle:
    """Everything needed to call one model through litellm."""

    provider: str
    model: str
    litellm_model: str
    api_base: str | None = None
    api_key: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_local(self) -> bool:
        return self.provider in LOCAL_PROVIDERS

    def completion_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"model": self.litellm_model, **self.extra}
        if self.api_base:
            kwargs["api_base"] = self.api_base
        if self.api_key:
            kwargs["api_key"] = self.api_key
        return kwargs


def get_model(
    provider: str,
    model_name: str,
    context_window: int | None = None,
    settings: Settings | None = None,
) -> ModelHandle:
    """Resolve a model selection to a ModelHandle."""
    require_supported_provider(provider)
    settings = settings or Settings()

    if provider == "openai":
        return ModelHandle(
            provider=provider,
            model=model_name,
            litellm_model=f"openai/{model_name}",
            api_key=settings.openai_api_key or None,
        )

    if provider == "deepseek":
        return ModelHandle(
            provider=provider,
            model=model_name,
            litellm_model=f"deepseek/{model_name}",
            api_key=settings.deepseek_api_key or None,
        )

    # ollama
    extra = {"num_ctx": context_window} if context_window else {}
    return ModelHandle(
        provider=provider,
        model=model_name,
        litellm_model=f"ollama_chat/{model_name}",
        api_base=settings.ollama_base_url,
        extra=extra,
    )


async def check_reachable(
    handle: ModelHandle,
    attempts: int = 3,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Probe a local provider's API before sending it work.

    Raises:
        ProviderUnavailableError: the service did not answer
    """
    if not handle.is_local or not handle.api_base:
        return

    url = f"{handle.api_base.rstrip('/')}/api/tags"
    try:
        async with httpx.AsyncClient(timeout=3.0, transport=transport) as client:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(attempts),
                wait=wait_fixed(0.5),
                retry=retry_if_exception_type(httpx.HTTPError),
            ):
                with attempt:
                    response = await client.get(url)
                    response.raise_for_status()
    except (RetryError, httpx.HTTPError) as e:
        logger.warning("provider_unreachable", provider=handle.provider, url=url, error=str(e))
        raise ProviderUnavailableError(handle.provider) from e
