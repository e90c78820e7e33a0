"""Tests for ordered API fallback in OpenAIClient."""

import pytest

from synthv_studio.ai import openai_client as openai_client_module
from synthv_studio.ai.openai_client import OpenAIClient, extract_content


class _FakeCompletions:
    def __init__(self, api_key: str):
        self._api_key = api_key

    def create(self, messages, model: str, **_kwargs):
        if self._api_key == "bad-key":
            raise RuntimeError("primary key failed")
        return {
            "choices": [{"message": {"role": "assistant", "content": "ok"}}],
            "model": model,
            "messages": messages,
        }


class _FakeChat:
    def __init__(self, api_key: str):
        self.completions = _FakeCompletions(api_key)


class _FakeOpenAI:
    def __init__(self, api_key: str, base_url=None):
        self.api_key = api_key
        self.base_url = base_url
        self.chat = _FakeChat(api_key)


def test_chat_uses_fallback_provider_and_model_override(monkeypatch):
    monkeypatch.setattr(openai_client_module, "OpenAI", _FakeOpenAI)

    client = OpenAIClient(
        api_key="bad-key",
        base_url="https://generativelanguage.googleapis.com/v1beta/openai/",
        fallback_configs=[
            {
                "api_key": "backup-key",
                "base_url": "https://api.openai.com/v1",
                "chat_model_override": "gpt-4.1-mini",
            }
        ],
    )

    response = client.chat(messages=[{"role": "user", "content": "hello"}])

    assert response["model"] == "gpt-4.1-mini"
    assert client.api_key == "backup-key"
    assert client.base_url == "https://api.openai.com/v1"


def test_complete_returns_text_with_default_model(monkeypatch):
    monkeypatch.setattr(openai_client_module, "OpenAI", _FakeOpenAI)
    client = OpenAIClient(api_key="good-key", default_chat_model="gemini-2.5-flash")

    assert client.complete("write a haiku", system_prompt="be brief") == "ok"


def test_no_key_raises_instead_of_calling_out(monkeypatch):
    monkeypatch.setattr(openai_client_module, "OpenAI", _FakeOpenAI)
    client = OpenAIClient(api_key="  ")

    with pytest.raises(RuntimeError):
        client.complete("hello")


def test_extract_content_handles_part_lists():
    resp = {"choices": [{"message": {"content": [{"text": "a"}, {"text": "b"}]}}]}
    assert extract_content(resp) == "a\nb"
