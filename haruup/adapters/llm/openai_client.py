"""Chat completions in JSON mode through the official async SDK."""

import json
import logging
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from haruup.adapters.llm.base import AbstractLLMClient
from haruup.core.errors import LLMAppError

logger = logging.getLogger(__name__)

JSON_ONLY_INSTRUCTION = "Output JSON only. No extra text or markdown formatting."
DEFAULT_TEMPERATURE = 0.3
_PASSTHROUGH_OPTIONS = ("max_tokens", "top_p", "seed")


class OpenAIClient(AbstractLLMClient):
    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.model = model
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout_seconds)

    def _failure(self, code: str, message: str) -> LLMAppError:
        return LLMAppError(code=code, message=message, details={"model": self.model})

    def _build_request(self, prompt: str, system_prompt: str | None, options: dict[str, Any]) -> dict[str, Any]:
        system_content = "\n".join(part for part in (system_prompt, JSON_ONLY_INSTRUCTION) if part)
        request: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_content},
                {"role": "user", "content": prompt},
            ],
            "temperature": options.get("temperature", DEFAULT_TEMPERATURE),
            "response_format": {"type": "json_object"},
        }
        request.update({key: options[key] for key in _PASSTHROUGH_OPTIONS if key in options})
        return request

    async def generate_json(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        try:
            response = await self.client.chat.completions.create(
                **self._build_request(prompt, system_prompt, kwargs)
            )
        except OpenAIError as exc:
            logger.warning("llm.request_failed", extra={"model": self.model, "error_type": type(exc).__name__})
            raise self._failure("llm_request_failed", f"OpenAI API error: {exc}") from exc

        content = (response.choices[0].message.content or "").strip()
        if not content:
            raise self._failure("llm_empty_response", "LLM returned empty response")

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            raise self._failure("llm_invalid_json", f"LLM returned invalid JSON: {exc}") from exc

        if not isinstance(parsed, dict):
            raise self._failure("llm_invalid_json", "LLM returned invalid JSON: expected an object")
        return parsed

    async def close(self) -> None:
        await self.client.close()
