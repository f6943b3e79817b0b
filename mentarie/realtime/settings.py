"""Service configuration loaded from MENTARIE_* environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class MentarieSettings(BaseSettings):
    """Mentarie realtime settings.

    All fields are read from environment variables with the ``MENTARIE_``
    prefix.  For example, ``MENTARIE_LOG_LEVEL=DEBUG`` maps to ``log_level``.
    """

    model_config = SettingsConfigDict(
        env_prefix="MENTARIE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"
    log_json: bool = False
    log_wire: bool = False
    """Log every event sent and received on the realtime channel."""

    # -- Credentials -----------------------------------------------------------
    credential_url: str = "http://localhost:8000/api/session"
    """Endpoint returning ``{"client_secret": {"value": ...}}`` for one session."""

    openai_api_key: SecretStr | None = None
    """Server-side key used by the credential API to mint ephemeral sessions."""

    sessions_url: str = "https://api.openai.com/v1/realtime/sessions"

    # -- Realtime protocol -----------------------------------------------------
    realtime_url: str = "https://api.openai.com/v1/realtime"
    """Base URL for the SDP exchange (WebRTC) or the socket (``wss://`` form)."""

    realtime_model: str = "gpt-4o-realtime-preview-2024-12-17"
    voice: str = "sage"
    transcription_model: str = "whisper-1"
    modalities: list[str] = ["text", "audio"]
    transport: Literal["webrtc", "websocket"] = "webrtc"
    request_timeout: float = 10.0

    # -- Turn taking -----------------------------------------------------------
    push_to_talk: bool = True
    """Disable server VAD and start with the microphone muted."""

    trigger_response_on_update: bool = True
    """Send ``response.create`` after every ``session.update``."""

    # -- Hooks -----------------------------------------------------------------
    completion_settle_delay: float = 0.5
    """Seconds to wait before firing the assistant-response-complete hook.

    Implementation-defined; callers must not depend on the exact value.
    """

    moderation_word_interval: int = 5

    # -- Agents ----------------------------------------------------------------
    agent_set: str = "englishTeacher"

    # -- Server ----------------------------------------------------------------
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000


def get_settings() -> MentarieSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``_get_settings_cached.cache_clear()`` in tests to
    force a re-read after overriding env vars.
    """
    return _get_settings_cached()


def _get_settings_cached() -> MentarieSettings:
    """Inner function wrapped by lru_cache (allows type-safe cache_clear)."""
    return MentarieSettings()


# Apply lru_cache at runtime so the function is only called once.
from functools import lru_cache  # noqa: E402

_get_settings_cached = lru_cache(maxsize=1)(_get_settings_cached)
