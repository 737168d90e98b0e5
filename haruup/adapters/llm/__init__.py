"""LLM adapter layer used to name ranking labels."""

from haruup.adapters.llm.base import AbstractLLMClient
from haruup.adapters.llm.factory import (
    close_llm_client,
    create_llm_client,
    get_llm_client,
    get_optional_llm_client,
)
from haruup.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "OpenAIClient",
    "close_llm_client",
    "create_llm_client",
    "get_llm_client",
    "get_optional_llm_client",
]
