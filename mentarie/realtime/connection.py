"""Connection manager -- transport lifecycle and outbound send discipline.

The ConnectionManager owns three pieces of state:

- **status**: ``DISCONNECTED -> CONNECTING -> CONNECTED``, falling back to
  ``DISCONNECTED`` on failure or explicit disconnect.
- **channel readiness**: whether the message channel is currently writable.
- **pending queue**: outbound events accepted while the channel was not
  writable, flushed strictly FIFO when it opens.

It implements ``ChannelListener`` so the transport reports channel lifecycle
and inbound messages straight to it.  Connection failures are fatal to the
attempt: status reverts, the error propagates, nothing retries.
"""

from __future__ import annotations

import json
from collections import deque
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from loguru import logger

from mentarie.realtime.errors import NegotiationError, RealtimeConnectionError
from mentarie.realtime.log import wire
from mentarie.realtime.models.enums import SessionStatus

if TYPE_CHECKING:
    from mentarie.realtime.credentials import CredentialProvider
    from mentarie.realtime.transports.base import RealtimeTransport

StatusListener = Callable[[SessionStatus], None]


class ConnectionManager:
    def __init__(
        self,
        credentials: CredentialProvider,
        transport: RealtimeTransport,
        *,
        on_open: Callable[[], None] | None = None,
        on_close: Callable[[], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        on_message: Callable[[str], None] | None = None,
    ) -> None:
        self._credentials = credentials
        self._transport = transport
        self.on_open = on_open
        self.on_close = on_close
        self.on_error = on_error
        self.on_message = on_message

        self._status = SessionStatus.DISCONNECTED
        self._channel_ready = False
        self._pending: deque[dict[str, Any]] = deque()
        self._status_listeners: list[StatusListener] = []

    # -- Query -----------------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def channel_ready(self) -> bool:
        return self._channel_ready

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def subscribe_status(self, listener: StatusListener) -> None:
        self._status_listeners.append(listener)

    def set_status(self, status: SessionStatus) -> None:
        """Transition to ``status`` and notify listeners.  No-op if unchanged."""
        if status == self._status:
            return
        logger.debug("Connection status {} -> {}", self._status, status)
        self._status = status
        for listener in list(self._status_listeners):
            listener(status)

    # -- Lifecycle -------------------------------------------------------------

    async def connect(self) -> bool:
        """Fetch a credential and establish the transport.

        Returns ``False`` without doing anything unless currently
        DISCONNECTED.  Raises ``RealtimeConnectionError`` (after reverting to
        DISCONNECTED) when any step fails.
        """
        if self._status != SessionStatus.DISCONNECTED:
            return False

        self._pending.clear()
        self._channel_ready = False
        self.set_status(SessionStatus.CONNECTING)

        try:
            credential = await self._credentials.fetch()
            await self._transport.open(credential, self)
        except RealtimeConnectionError as e:
            logger.error("Error connecting to realtime: {}", e)
            self._channel_ready = False
            self.set_status(SessionStatus.DISCONNECTED)
            raise
        except Exception as e:
            logger.exception("Error connecting to realtime")
            self._channel_ready = False
            self.set_status(SessionStatus.DISCONNECTED)
            msg = f"Unexpected error during connect: {e}"
            raise NegotiationError(msg) from e

        if self._status == SessionStatus.DISCONNECTED:
            # disconnect() ran while we were negotiating.
            await self._transport.close()
            return False

        # session.created may already have arrived during open().
        if self._status == SessionStatus.CONNECTING:
            self.set_status(SessionStatus.CONNECTED)
        logger.info("Realtime connected")
        return True

    async def disconnect(self) -> None:
        """Stop capture, tear down the transport and reset all state."""
        await self._transport.close()
        self._pending.clear()
        self._channel_ready = False
        self.set_status(SessionStatus.DISCONNECTED)
        logger.info("Realtime disconnected")

    # -- Outbound --------------------------------------------------------------

    def send(self, event: dict[str, Any]) -> None:
        """Transmit ``event`` now, or queue it until the channel opens."""
        if self._channel_ready and self._transport.is_channel_open:
            self._transmit(event)
        else:
            self._pending.append(event)

    def set_microphone_enabled(self, enabled: bool) -> None:
        self._transport.set_microphone_enabled(enabled)

    def _transmit(self, event: dict[str, Any]) -> None:
        wire.debug("-> {}", event.get("type"))
        self._transport.send(json.dumps(event))

    def _flush(self) -> None:
        while self._pending and self._channel_ready:
            self._transmit(self._pending.popleft())

    # -- ChannelListener -------------------------------------------------------

    def channel_opened(self) -> None:
        logger.info("Data channel open ({} pending events)", len(self._pending))
        self._channel_ready = True
        self._flush()
        if self.on_open:
            self.on_open()

    def channel_closed(self) -> None:
        logger.info("Data channel closed")
        self._channel_ready = False
        if self.on_close:
            self.on_close()

    def channel_errored(self, error: BaseException | None) -> None:
        logger.warning("Data channel error: {}", error)
        self._channel_ready = False
        if self.on_error:
            self.on_error(str(error) if error else "data channel error")

    def channel_message(self, data: str) -> None:
        if self.on_message:
            self.on_message(data)
