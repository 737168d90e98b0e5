from abc import ABC, abstractmethod
from typing import Any


class AbstractLLMClient(ABC):
    """A model that answers a prompt with one JSON object."""

    @abstractmethod
    async def generate_json(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Return the parsed object.

        ``kwargs`` carries sampling options such as ``temperature``. Provider
        failures and non-object answers raise ``LLMAppError``.
        """
        ...

    async def close(self) -> None:
        """Release the underlying HTTP client. Nothing to release by default."""
        return None
