"""Chat client for OpenAI-compatible endpoints (Gemini's included) with key fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence

try:
    from openai import OpenAI  # type: ignore
except ImportError:  # pragma: no cover - handled at runtime
    OpenAI = None

from ..config import DEFAULT_OPENAI_BASE_URL, DEFAULT_TEXT_MODEL

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Provider:
    """Provider configuration for a single OpenAI-compatible endpoint."""

    api_key: str
    base_url: str | None = None
    chat_model_override: str | None = None


class OpenAIClient:
    """Thin wrapper that tries each configured provider in order."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = DEFAULT_OPENAI_BASE_URL,
        fallback_configs: Sequence[Dict[str, str | None]] | None = None,
        default_chat_model: str | None = None,
    ):
        self._providers = self._build_providers(api_key, base_url, fallback_configs)
        self.api_key = self._providers[0].api_key if self._providers else None
        self.base_url = self._providers[0].base_url if self._providers else base_url
        self.default_chat_model = self._clean(default_chat_model) or DEFAULT_TEXT_MODEL
        self._clients: Dict[tuple[str, str | None], Any] = {}

    @staticmethod
    def _clean(value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        return stripped or None

    def _build_providers(
        self,
        api_key: str | None,
        base_url: str | None,
        fallback_configs: Sequence[Dict[str, str | None]] | None,
    ) -> List[_Provider]:
        providers: list[_Provider] = []
        seen: set[tuple[str, str | None, str | None]] = set()

        primary_key = self._clean(api_key)
        if primary_key:
            provider = _Provider(api_key=primary_key, base_url=self._clean(base_url))
            providers.append(provider)
            seen.add((provider.api_key, provider.base_url, provider.chat_model_override))

        for cfg in fallback_configs or []:
            fallback_key = self._clean(cfg.get("api_key"))
            if not fallback_key:
                continue
            provider = _Provider(
                api_key=fallback_key,
                base_url=self._clean(cfg.get("base_url")),
                chat_model_override=self._clean(cfg.get("chat_model_override")),
            )
            marker = (provider.api_key, provider.base_url, provider.chat_model_override)
            if marker in seen:
                continue
            providers.append(provider)
            seen.add(marker)

        return providers

    def _get_live_client(self, provider: _Provider) -> Any:
        if OpenAI is None:
            raise RuntimeError("OpenAI SDK not installed. Run `pip install openai`.")
        client_key = (provider.api_key, provider.base_url)
        client = self._clients.get(client_key)
        if not client:
            client = OpenAI(api_key=provider.api_key, base_url=provider.base_url)
            self._clients[client_key] = client
        return client

    def _promote_provider(self, idx: int) -> None:
        if idx <= 0:
            return
        provider = self._providers.pop(idx)
        self._providers.insert(0, provider)
        self.api_key = self._providers[0].api_key
        self.base_url = self._providers[0].base_url

    def _call_with_fallback(self, call: Callable[[Any, _Provider], Any]) -> Any:
        if not self._providers:
            raise RuntimeError("No API key configured for text generation.")

        last_error: Exception | None = None
        for idx, provider in enumerate(self._providers):
            try:
                client = self._get_live_client(provider)
                response = call(client, provider)
                self._promote_provider(idx)
                return response
            except Exception as exc:
                logger.warning("Text provider %s failed: %s", provider.base_url or "default", exc)
                last_error = exc
                continue

        raise last_error  # type: ignore[misc]

    def chat(self, messages: List[Dict[str, str]], model: str | None = None, **kwargs) -> Any:
        """Call provider chat endpoint with ordered API-key fallback."""

        def _chat_call(client: Any, provider: _Provider) -> Any:
            chosen_model = provider.chat_model_override or model or self.default_chat_model
            return client.chat.completions.create(messages=messages, model=chosen_model, **kwargs)

        return self._call_with_fallback(_chat_call)

    def complete(self, prompt: str, system_prompt: str | None = None, **kwargs) -> str:
        """Single-turn helper returning the assistant text."""
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return extract_content(self.chat(messages, **kwargs))


def extract_content(resp: Any) -> str:
    """Handle both dict responses and SDK objects."""

    def _normalize(content: Any) -> str:
        if content is None:
            return ""
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: list[str] = []
            for item in content:
                if isinstance(item, dict):
                    text_value = item.get("text") or item.get("content")
                else:
                    text_value = getattr(item, "text", None) or getattr(item, "content", None)
                if isinstance(text_value, str):
                    parts.append(text_value)
            if parts:
                return "\n".join(parts).strip()
        return str(content)

    if isinstance(resp, dict):
        try:
            return _normalize(resp["choices"][0]["message"]["content"])
        except (KeyError, IndexError, TypeError):
            return str(resp)

    try:
        return _normalize(resp.choices[0].message.content)
    except (AttributeError, IndexError, TypeError):
        return str(resp)
