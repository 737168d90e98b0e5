"""OpenAI adapter and client factory, with the SDK call stubbed."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from haruup.adapters.llm import (
    OpenAIClient,
    close_llm_client,
    create_llm_client,
    get_llm_client,
    get_optional_llm_client,
)
from haruup.core.config import LLMSettings, settings
from haruup.core.errors import LLMAppError, ValidationAppError


@pytest.fixture
def llm() -> OpenAIClient:
    return OpenAIClient(api_key="sk-test", model="gpt-4o-mini")


def _stub_completion(client: OpenAIClient, monkeypatch, *, content=None, error=None) -> AsyncMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    create = AsyncMock(return_value=response, side_effect=error)
    monkeypatch.setattr(client.client.chat.completions, "create", create)
    return create


@pytest.mark.asyncio
async def test_label_request_uses_json_mode(llm: OpenAIClient, monkeypatch) -> None:
    create = _stub_completion(llm, monkeypatch, content='{"label": "조깅하기"}')

    result = await llm.generate_json("30분 조깅하기", system_prompt="라벨 생성 전문가", temperature=0.1, seed=7)

    assert result == {"label": "조깅하기"}
    sent = create.await_args.kwargs
    assert sent["response_format"] == {"type": "json_object"}
    assert sent["temperature"] == 0.1
    assert sent["seed"] == 7
    assert sent["messages"][0]["content"].startswith("라벨 생성 전문가")
    assert sent["messages"][1] == {"role": "user", "content": "30분 조깅하기"}


@pytest.mark.asyncio
async def test_default_temperature(llm: OpenAIClient, monkeypatch) -> None:
    create = _stub_completion(llm, monkeypatch, content="{}")

    await llm.generate_json("x")

    assert create.await_args.kwargs["temperature"] == 0.3


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content,code",
    [
        ("조깅하기", "llm_invalid_json"),
        ('["조깅하기"]', "llm_invalid_json"),
        (None, "llm_empty_response"),
        ("   ", "llm_empty_response"),
    ],
)
async def test_unusable_answers(llm: OpenAIClient, monkeypatch, content, code: str) -> None:
    _stub_completion(llm, monkeypatch, content=content)

    with pytest.raises(LLMAppError) as exc_info:
        await llm.generate_json("x")

    assert exc_info.value.code == code
    assert exc_info.value.details == {"model": "gpt-4o-mini"}


@pytest.mark.asyncio
async def test_sdk_error_becomes_llm_error(llm: OpenAIClient, monkeypatch) -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    _stub_completion(llm, monkeypatch, error=openai.APIConnectionError(request=request))

    with pytest.raises(LLMAppError) as exc_info:
        await llm.generate_json("x")

    assert exc_info.value.code == "llm_request_failed"


class TestFactory:
    def test_builds_openai_client(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "llm", LLMSettings(provider="OpenAI", api_key="sk-test", model="gpt-4o"))

        client = create_llm_client()

        assert isinstance(client, OpenAIClient)
        assert client.model == "gpt-4o"

    @pytest.mark.parametrize(
        "llm_settings,code",
        [
            (LLMSettings(provider="openai", api_key=None), "llm_missing_api_key"),
            (LLMSettings(provider="local-llm", api_key="k"), "llm_unknown_provider"),
        ],
    )
    def test_rejects_incomplete_configuration(self, monkeypatch, llm_settings, code: str) -> None:
        monkeypatch.setattr(settings, "llm", llm_settings)

        with pytest.raises(ValidationAppError) as exc_info:
            create_llm_client()

        assert exc_info.value.code == code

    def test_optional_client_is_none_without_key(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "llm", LLMSettings(provider="openai", api_key=None))

        assert get_optional_llm_client() is None


class TestSharedClient:
    @pytest.mark.asyncio
    async def test_reused_until_closed(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "llm", LLMSettings(provider="openai", api_key="sk-test"))

        first = get_llm_client()
        assert get_llm_client() is first

        monkeypatch.setattr(first.client, "close", AsyncMock())
        await close_llm_client()

        first.client.close.assert_awaited_once()
        assert get_llm_client() is not first

    @pytest.mark.asyncio
    async def test_close_without_client_is_noop(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "llm", LLMSettings(provider="openai", api_key=None))

        assert get_llm_client() is None
        await close_llm_client()
