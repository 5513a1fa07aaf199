"""
Tests for provider selection and the OpenAI-compatible client wrapper.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

import config
from config import LLMSettings
from intelligence.llm import Message, OpenAILLM, get_llm
from utils.exceptions import ConfigurationError, LLMError


def _use_settings(monkeypatch, **values):
    settings = LLMSettings(**values)
    monkeypatch.setattr(config, "get_llm_settings", lambda: settings)
    return settings


def test_deepseek_uses_its_endpoint_and_default_model(monkeypatch):
    _use_settings(monkeypatch, provider="deepseek", deepseek_api_key="sk-ds", temperature=0.1)

    llm = get_llm()

    assert isinstance(llm, OpenAILLM)
    assert llm.provider == "deepseek"
    assert llm.model == "deepseek-chat"
    assert llm.base_url == "https://api.deepseek.com"
    assert llm.temperature == 0.1


def test_vision_defaults_per_provider(monkeypatch):
    _use_settings(monkeypatch, provider="zhizengzeng", zhizengzeng_api_key="sk-zzz")

    assert get_llm(vision=True).model == "qwen3-vl-235b-a22b-thinking"
    assert get_llm(vision=True, model="glm-4v-plus").model == "glm-4v-plus"


def test_provider_without_vision_model_is_rejected(monkeypatch):
    _use_settings(monkeypatch, provider="deepseek", deepseek_api_key="sk-ds")

    with pytest.raises(ConfigurationError):
        get_llm(vision=True)


def test_missing_api_key_names_the_env_variable(monkeypatch):
    _use_settings(monkeypatch, provider="zhipu", zhipu_api_key=None)

    with pytest.raises(ConfigurationError) as exc_info:
        get_llm()

    assert exc_info.value.details["env"] == "LLM_ZHIPU_API_KEY"


def test_unsupported_provider(monkeypatch):
    _use_settings(monkeypatch, provider="openai", openai_api_key="sk")

    with pytest.raises(ConfigurationError):
        get_llm(provider="anthropic")


class _FakeCompletions:
    def __init__(self, response):
        self.response = response
        self.calls = []

    async def create(self, **params):
        self.calls.append(params)
        return self.response


def _client_returning(response):
    completions = _FakeCompletions(response)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def _response(content, usage=None):
    choice = SimpleNamespace(message=SimpleNamespace(content=content), finish_reason="stop")
    return SimpleNamespace(choices=[choice], model="gpt-4o-mini", usage=usage)


@pytest.mark.asyncio
async def test_acomplete_returns_content_and_usage():
    llm = OpenAILLM(model="gpt-4o-mini", api_key="sk")
    usage = SimpleNamespace(prompt_tokens=10, completion_tokens=5, total_tokens=15)
    client, completions = _client_returning(_response('{"isSufficient": true}', usage))
    llm._async_client = client

    reply = await llm.achat("够了吗?", system_prompt="你是评估助手")
    response = await llm.acomplete([Message.user("hi")], max_tokens=64)

    assert reply == '{"isSufficient": true}'
    assert response.usage["total_tokens"] == 15
    sent = completions.calls[0]["messages"]
    assert [m["role"] for m in sent] == ["system", "user"]
    assert completions.calls[1]["max_tokens"] == 64


@pytest.mark.asyncio
async def test_acomplete_rejects_empty_content():
    llm = OpenAILLM(model="gpt-4o-mini", api_key="sk")
    llm._async_client, _ = _client_returning(_response("   "))

    with pytest.raises(LLMError):
        await llm.acomplete([Message.user("hi")])

    llm._async_client, _ = _client_returning(SimpleNamespace(choices=[], model="x", usage=None))
    with pytest.raises(LLMError):
        await llm.acomplete([Message.user("hi")])
