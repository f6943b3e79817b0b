"""Realtime session -- wires the orchestrator components together.

One ``RealtimeSession`` owns one transcript, one agent registry, one
connection and everything that reacts to it.  Nothing is shared between
sessions.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from loguru import logger

from mentarie.realtime.connection import ConnectionManager
from mentarie.realtime.credentials import EphemeralKeyProvider
from mentarie.realtime.dispatcher import EventDispatcher
from mentarie.realtime.ptt import PushToTalkGate
from mentarie.realtime.registry import AgentRegistry
from mentarie.realtime.session_config import SessionConfigManager
from mentarie.realtime.settings import get_settings
from mentarie.realtime.tools import ToolRouter
from mentarie.realtime.transcript import TranscriptStore
from mentarie.realtime.transports import create_transport

if TYPE_CHECKING:
    from types import TracebackType

    from mentarie.realtime.credentials import CredentialProvider
    from mentarie.realtime.models.agent import AgentConfig, ToolHandler
    from mentarie.realtime.models.enums import SessionStatus
    from mentarie.realtime.settings import MentarieSettings
    from mentarie.realtime.transports.base import RealtimeTransport


@dataclass
class SessionCallbacks:
    """Hooks for the embedding application.  Payloads are plain strings/bools."""

    on_user_message_complete: Callable[[str], Any] | None = None
    on_assistant_response_complete: Callable[[str], Any] | None = None
    on_ptt_state_change: Callable[[bool], None] | None = None
    on_moderation: Callable[[str, str], Any] | None = None
    on_data_channel_open: Callable[[], None] | None = None
    on_data_channel_close: Callable[[], None] | None = None
    on_data_channel_error: Callable[[str], None] | None = None
    on_data_channel_message: Callable[[str], None] | None = None


class RealtimeSession:
    def __init__(
        self,
        agent_set: Sequence[AgentConfig],
        *,
        settings: MentarieSettings | None = None,
        credentials: CredentialProvider | None = None,
        transport: RealtimeTransport | None = None,
        callbacks: SessionCallbacks | None = None,
        functions: Mapping[str, ToolHandler] | None = None,
        active_agent: str | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.callbacks = callbacks or SessionCallbacks()

        self.transcript = TranscriptStore()
        self.agents = AgentRegistry(agent_set, active_agent)
        self.connection = ConnectionManager(
            credentials or EphemeralKeyProvider(self.settings.credential_url, timeout=self.settings.request_timeout),
            transport or create_transport(self.settings),
            on_open=self.callbacks.on_data_channel_open,
            on_close=self.callbacks.on_data_channel_close,
            on_error=self.callbacks.on_data_channel_error,
            on_message=self._on_message,
        )
        self.config = SessionConfigManager(self.connection, self.agents, self.transcript, self.settings)
        self.router = ToolRouter(self.agents, self.transcript, self.connection.send, functions)
        self.dispatcher = EventDispatcher(
            self.transcript,
            self.connection,
            self.config,
            self.router,
            settle_delay=self.settings.completion_settle_delay,
            moderation_interval=self.settings.moderation_word_interval,
            on_user_message_complete=self.callbacks.on_user_message_complete,
            on_assistant_response_complete=self.callbacks.on_assistant_response_complete,
            on_moderation=self.callbacks.on_moderation,
        )
        self.ptt = PushToTalkGate(self.connection, on_ptt_state_change=self.callbacks.on_ptt_state_change)

        self._tool_loop: asyncio.Task[None] | None = None

    # -- Query -----------------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self.connection.status

    @property
    def active_agent(self) -> AgentConfig:
        return self.agents.active

    # -- Lifecycle -------------------------------------------------------------

    async def connect(self) -> bool:
        """Connect to the realtime service.  See ``ConnectionManager.connect``."""
        self._start_tool_loop()
        try:
            return await self.connection.connect()
        except Exception:
            await self._stop_tool_loop()
            raise

    async def disconnect(self) -> None:
        self.dispatcher.close()
        await self.router.cancel_all()
        await self._stop_tool_loop()
        await self.connection.disconnect()

    async def __aenter__(self) -> RealtimeSession:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.disconnect()

    def _start_tool_loop(self) -> None:
        if self._tool_loop is None or self._tool_loop.done():
            self._tool_loop = asyncio.create_task(self.router.serve(), name="tool-completions")

    async def _stop_tool_loop(self) -> None:
        task, self._tool_loop = self._tool_loop, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    # -- Conversation controls -------------------------------------------------

    def send_user_text(self, text: str) -> str:
        """Send typed user input.  Returns the new transcript item id."""
        return self.config.send_simulated_user_message(text)

    def cancel_assistant_speech(self) -> None:
        self.config.cancel_assistant_speech()

    def press_to_talk(self) -> bool:
        return self.ptt.press()

    def release_to_talk(self) -> bool:
        return self.ptt.release()

    # -- Inbound ---------------------------------------------------------------

    def _on_message(self, raw: str) -> None:
        self.dispatcher.handle_message(raw)
        if self.callbacks.on_data_channel_message:
            try:
                self.callbacks.on_data_channel_message(raw)
            except Exception:
                logger.exception("on_data_channel_message callback failed")
