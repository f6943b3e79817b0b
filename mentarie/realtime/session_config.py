"""Session configuration manager.

Pushes the active agent's behavioural configuration to the remote model
whenever the connection reaches CONNECTED, or the active agent changes while
connected.  Also owns the two client-initiated conversation controls that do
not go through audio: simulated (typed) user messages and cancelling an
in-progress assistant reply.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from loguru import logger

from mentarie.realtime.models import client_events
from mentarie.realtime.models.client_events import SessionConfig
from mentarie.realtime.models.enums import ItemStatus, Role, SessionStatus

if TYPE_CHECKING:
    from mentarie.realtime.connection import ConnectionManager
    from mentarie.realtime.models.agent import AgentConfig
    from mentarie.realtime.registry import AgentRegistry
    from mentarie.realtime.settings import MentarieSettings
    from mentarie.realtime.transcript import TranscriptStore


class SessionConfigManager:
    def __init__(
        self,
        connection: ConnectionManager,
        agents: AgentRegistry,
        transcript: TranscriptStore,
        settings: MentarieSettings,
    ) -> None:
        self._connection = connection
        self._agents = agents
        self._transcript = transcript
        self._settings = settings
        self.output_audio_active = False

        connection.subscribe_status(self._on_status_change)
        agents.subscribe(self._on_agent_change)

    # -- Reactions -------------------------------------------------------------

    def _on_status_change(self, status: SessionStatus) -> None:
        if status == SessionStatus.CONNECTED:
            self.update_session(trigger_response=self._settings.trigger_response_on_update)
        elif status == SessionStatus.DISCONNECTED:
            self.output_audio_active = False

    def _on_agent_change(self, agent: AgentConfig) -> None:
        if self._connection.status == SessionStatus.CONNECTED:
            # The remote model already owns the turn after a transfer.
            logger.info("Active agent changed to {}, reconfiguring session", agent.name)
            self.update_session(trigger_response=False)

    # -- Configuration ---------------------------------------------------------

    def build_config(self, agent: AgentConfig) -> SessionConfig:
        settings = self._settings
        return SessionConfig(
            modalities=list(settings.modalities),
            instructions=agent.instructions,
            voice=settings.voice,
            input_audio_transcription={"model": settings.transcription_model},
            turn_detection=None if settings.push_to_talk else {"type": "server_vad"},
            tools=agent.wire_tools(),
        )

    def update_session(self, *, trigger_response: bool = False) -> None:
        """Clear the input buffer, send ``session.update``, optionally ask for a reply."""
        agent = self._agents.active
        self._connection.send(client_events.input_audio_buffer_clear())
        self._connection.send(client_events.session_update(self.build_config(agent)))
        if trigger_response:
            self._connection.send(client_events.response_create())
        logger.debug("Session updated for agent {} (trigger_response={})", agent.name, trigger_response)

    # -- Conversation controls -------------------------------------------------

    def send_simulated_user_message(self, text: str) -> str:
        """Inject typed user input, bypassing audio capture.  Returns the item id."""
        item_id = uuid.uuid4().hex[:32]
        self._transcript.add_message(item_id, Role.USER, text, status=ItemStatus.DONE)
        self._connection.send(client_events.user_text_item(item_id, text))
        self._connection.send(client_events.response_create())
        return item_id

    def cancel_assistant_speech(self) -> None:
        self._connection.send(client_events.response_cancel())
        if self.output_audio_active:
            self._connection.send(client_events.output_audio_buffer_clear())
