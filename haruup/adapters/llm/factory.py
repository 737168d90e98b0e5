"""Build the label-generation client from ``settings.llm``."""

import logging

from haruup.adapters.llm.base import AbstractLLMClient
from haruup.adapters.llm.openai_client import OpenAIClient
from haruup.core.config import LLMSettings, settings
from haruup.core.errors import ValidationAppError

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai",)

_shared_client: AbstractLLMClient | None = None
_shared_for: LLMSettings | None = None


def create_llm_client() -> AbstractLLMClient:
    """Raises ``ValidationAppError`` for an unknown provider or a missing key."""
    cfg = settings.llm
    provider = cfg.provider.lower()

    if provider not in SUPPORTED_PROVIDERS:
        raise ValidationAppError(
            code="llm_unknown_provider",
            message=f"Unknown LLM provider: '{provider}'. Supported providers: {', '.join(SUPPORTED_PROVIDERS)}",
        )
    if not cfg.api_key:
        raise ValidationAppError(
            code="llm_missing_api_key",
            message="OpenAI provider requires LLM_API_KEY environment variable",
        )

    return OpenAIClient(
        api_key=cfg.api_key,
        model=cfg.model,
        base_url=cfg.base_url,
        timeout_seconds=cfg.timeout_seconds,
    )


def get_optional_llm_client() -> AbstractLLMClient | None:
    """Configured client, or None so the ranking batch falls back to stored labels."""
    try:
        return create_llm_client()
    except ValidationAppError as exc:
        logger.warning("llm.client_unavailable", extra={"error_code": exc.code})
        return None


def get_llm_client() -> AbstractLLMClient | None:
    """Return the process-wide label client, building it on first use.

    Every batch run shares one client and its connection pool. The client is
    rebuilt when ``settings.llm`` is replaced (primarily in tests).

    Returns:
        The shared client, or None when no provider is configured.
    """
    global _shared_client, _shared_for

    if _shared_for is not settings.llm:
        _shared_client = get_optional_llm_client()
        _shared_for = settings.llm
    return _shared_client


async def close_llm_client() -> None:
    """Close the shared client, if any. The next ``get_llm_client`` builds a new one."""
    global _shared_client, _shared_for

    client, _shared_client, _shared_for = _shared_client, None, None
    if client is not None:
        await client.close()
