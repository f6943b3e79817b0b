"""Push-to-talk gate.

Holds the ``speaking`` flag and turns press / release into microphone toggles
plus input-buffer protocol events.  Both actions are ignored unless the
session is CONNECTED and the data channel is ready.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from loguru import logger

from mentarie.realtime.models import client_events
from mentarie.realtime.models.enums import SessionStatus

if TYPE_CHECKING:
    from mentarie.realtime.connection import ConnectionManager


class PushToTalkGate:
    def __init__(
        self,
        connection: ConnectionManager,
        *,
        on_ptt_state_change: Callable[[bool], None] | None = None,
    ) -> None:
        self._connection = connection
        self.on_ptt_state_change = on_ptt_state_change
        self.speaking = False
        connection.subscribe_status(self._on_status_change)

    @property
    def gate_open(self) -> bool:
        return self._connection.status == SessionStatus.CONNECTED and self._connection.channel_ready

    def press(self) -> bool:
        """Start a user turn.  Returns ``False`` if the gate is closed."""
        if not self.gate_open:
            logger.debug("PTT press ignored: session not ready")
            return False
        self._set_speaking(True)
        self._connection.set_microphone_enabled(True)
        self._connection.send(client_events.input_audio_buffer_clear())
        return True

    def release(self) -> bool:
        """End the user turn and ask for a reply.  Returns ``False`` if ignored."""
        if not self.speaking or not self.gate_open:
            return False
        self._set_speaking(False)
        self._connection.set_microphone_enabled(False)
        self._connection.send(client_events.input_audio_buffer_commit())
        self._connection.send(client_events.response_create())
        return True

    def _set_speaking(self, speaking: bool) -> None:
        self.speaking = speaking
        if self.on_ptt_state_change:
            self.on_ptt_state_change(speaking)

    def _on_status_change(self, status: SessionStatus) -> None:
        if status == SessionStatus.DISCONNECTED and self.speaking:
            self._set_speaking(False)
