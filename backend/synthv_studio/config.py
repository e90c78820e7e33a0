"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "imagen-4.0-generate-001"
DEFAULT_VIDEO_MODEL = "veo-3.0-generate-001"
DEFAULT_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"

DEFAULT_POLL_INTERVAL_SECONDS = 10.0
DEFAULT_POLL_MAX_ATTEMPTS = 30
DEFAULT_DOWNLOAD_TIMEOUT_SECONDS = 120.0


@dataclass(frozen=True)
class Settings:
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    video_model: str = DEFAULT_VIDEO_MODEL
    openai_base_url: str = DEFAULT_OPENAI_BASE_URL
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    poll_max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS
    download_timeout_seconds: float = DEFAULT_DOWNLOAD_TIMEOUT_SECONDS
    log_level: str = "INFO"
    text_fallbacks: tuple[dict[str, str | None], ...] = ()


def _read_env(env: Mapping[str, str], name: str) -> str | None:
    value = env.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _positive_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _read_env(env, name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _read_env(env, name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _text_fallbacks(env: Mapping[str, str]) -> tuple[dict[str, str | None], ...]:
    """Ordered chain from OPENAI_API_KEY_FALLBACK_1, _2, ... (with matching base URL/model)."""
    prefix = "OPENAI_API_KEY_FALLBACK_"
    indexed_names = sorted(
        (name for name in env if name.startswith(prefix) and name[len(prefix) :].isdigit()),
        key=lambda name: int(name[len(prefix) :]),
    )
    chain: list[dict[str, str | None]] = []
    for name in indexed_names:
        api_key = _read_env(env, name)
        if not api_key:
            continue
        idx = name[len(prefix) :]
        chain.append(
            {
                "api_key": api_key,
                "base_url": _read_env(env, f"OPENAI_BASE_URL_FALLBACK_{idx}"),
                "chat_model_override": _read_env(env, f"OPENAI_MODEL_FALLBACK_{idx}"),
            }
        )
    return tuple(chain)


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if env is None else env
    return Settings(
        text_model=_read_env(env, "GEMINI_TEXT_MODEL") or DEFAULT_TEXT_MODEL,
        image_model=_read_env(env, "GEMINI_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL,
        video_model=_read_env(env, "GEMINI_VIDEO_MODEL") or DEFAULT_VIDEO_MODEL,
        openai_base_url=_read_env(env, "GEMINI_OPENAI_BASE_URL") or DEFAULT_OPENAI_BASE_URL,
        poll_interval_seconds=_positive_float(
            env, "SYNTHV_POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL_SECONDS
        ),
        poll_max_attempts=_positive_int(env, "SYNTHV_POLL_MAX_ATTEMPTS", DEFAULT_POLL_MAX_ATTEMPTS),
        download_timeout_seconds=_positive_float(
            env, "SYNTHV_DOWNLOAD_TIMEOUT_SECONDS", DEFAULT_DOWNLOAD_TIMEOUT_SECONDS
        ),
        log_level=(_read_env(env, "SYNTHV_LOG_LEVEL") or "INFO").upper(),
        text_fallbacks=_text_fallbacks(env),
    )
