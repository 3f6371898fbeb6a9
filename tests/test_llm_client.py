"""
Tests for the language model client.
"""
from unittest.mock import MagicMock

import httpx
import pytest
from langchain_community.chat_models import ChatOllama
from langchain_core.language_models import FakeListChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from codesuggest.config import Settings
from codesuggest.exceptions import LlmError
from codesuggest.services.llm_client import (
    LlmClient,
    health_url,
    resolve_provider,
    to_langchain_messages,
)

MESSAGES = [
    {"role": "system", "content": "You review code."},
    {"role": "user", "content": "Review this."},
]


def test_message_conversion():
    converted = to_langchain_messages(MESSAGES + [{"role": "assistant", "content": "ok"}])
    assert [type(m) for m in converted] == [SystemMessage, HumanMessage, AIMessage]
    assert converted[1].content == "Review this."


def test_chat_returns_reply_text():
    model = FakeListChatModel(responses=['[{"explanation": "x"}]'])
    client = LlmClient(Settings(), chat_model=model)

    assert client.chat(MESSAGES) == '[{"explanation": "x"}]'


def test_chat_joins_multipart_content():
    model = MagicMock()
    model.invoke.return_value = AIMessage(content=["[", {"type": "text", "text": "]"}])
    client = LlmClient(Settings(), chat_model=model)

    assert client.chat(MESSAGES) == "[]"


def test_chat_failure_raises_llm_error():
    model = MagicMock()
    model.invoke.side_effect = ConnectionError("connection refused")
    client = LlmClient(Settings(), chat_model=model)

    with pytest.raises(LlmError) as exc_info:
        client.chat(MESSAGES)
    assert "connection refused" in str(exc_info.value)


def test_default_model_is_ollama():
    client = LlmClient(Settings(llm_model="qwen2.5-coder", llm_api_key="k"))
    model = client._build_chat_model("qwen2.5-coder", 0.2, 512)

    assert client.provider == "ollama"
    assert isinstance(model, ChatOllama)
    assert model.model == "qwen2.5-coder"
    assert model.num_predict == 512
    assert model.headers == {"Authorization": "Bearer k"}


def test_health_check(monkeypatch):
    calls = []

    def fake_get(url, **kwargs):
        calls.append(url)
        return httpx.Response(200, json={"models": []})

    monkeypatch.setattr(httpx, "get", fake_get)
    client = LlmClient(Settings(llm_base_url="http://llm:11434"))

    assert client.health_check() is True
    assert calls == ["http://llm:11434/api/tags"]


def test_health_check_unreachable(monkeypatch):
    def fake_get(url, **kwargs):
        raise httpx.ConnectError("refused")

    monkeypatch.setattr(httpx, "get", fake_get)
    assert LlmClient(Settings()).health_check() is False


def test_health_check_error_status(monkeypatch):
    monkeypatch.setattr(httpx, "get", lambda url, **kwargs: httpx.Response(503))
    assert LlmClient(Settings()).health_check() is False


@pytest.mark.parametrize("provider,base_url,expected", [
    ("auto", "http://localhost:11434", "ollama"),
    ("auto", "http://vllm:8000/v1", "openai"),
    ("auto", "https://api.openai.com/v1/", "openai"),
    ("ollama", "http://proxy/v1", "ollama"),
    ("OpenAI", "http://gateway:8080", "openai"),
    ("", "http://localhost:11434", "ollama"),
    ("auto", "http://v1-gpu:11434", "ollama"),
])
def test_resolve_provider(provider, base_url, expected):
    assert resolve_provider(provider, base_url) == expected


@pytest.mark.parametrize("provider,base_url,expected", [
    ("ollama", "http://llm:11434/", "http://llm:11434/api/tags"),
    ("openai", "http://vllm:8000/v1", "http://vllm:8000/v1/models"),
    ("openai", "http://gateway:8080", "http://gateway:8080/v1/models"),
])
def test_health_url(provider, base_url, expected):
    assert health_url(provider, base_url) == expected


def test_openai_compatible_endpoint_uses_chat_openai():
    client = LlmClient(Settings(llm_base_url="http://vllm:8000/v1", llm_model="deepseek-coder"))
    model = client._build_chat_model("deepseek-coder", 0.0, 1024)

    assert client.provider == "openai"
    assert isinstance(model, ChatOpenAI)
    assert model.model_name == "deepseek-coder"
    assert model.max_tokens == 1024
    assert model.openai_api_base == "http://vllm:8000/v1"


def test_openai_compatible_api_key_is_passed():
    settings = Settings(llm_provider="openai", llm_base_url="https://api.openai.com/v1", llm_api_key="sk-test")
    model = LlmClient(settings)._build_chat_model("gpt-4o-mini", 0.1, 256)

    assert model.openai_api_key.get_secret_value() == "sk-test"


def test_health_check_openai_compatible(monkeypatch):
    calls = []

    def fake_get(url, **kwargs):
        calls.append((url, kwargs.get("headers")))
        return httpx.Response(200, json={"data": []})

    monkeypatch.setattr(httpx, "get", fake_get)
    client = LlmClient(Settings(llm_base_url="http://vllm:8000/v1", llm_api_key="k"))

    assert client.health_check() is True
    assert calls == [("http://vllm:8000/v1/models", {"Authorization": "Bearer k"})]
