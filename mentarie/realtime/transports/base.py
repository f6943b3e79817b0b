"""Transport interface for the realtime data channel.

A transport owns the media connection and the ordered, bidirectional message
channel carried alongside it.  The ConnectionManager drives it:

1. ``open(credential, listener)`` negotiates the connection and returns once
   the transport is established.  The channel becomes writable later, which
   the transport reports through ``listener.channel_opened()``.
2. ``send`` writes one serialized event while the channel is open.
3. ``close`` stops local capture and tears everything down.

Listener callbacks must be invoked on the event-loop thread and never from
inside ``open`` itself.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ChannelListener(Protocol):
    """Receives data-channel lifecycle and message notifications."""

    def channel_opened(self) -> None: ...

    def channel_closed(self) -> None: ...

    def channel_errored(self, error: BaseException | None) -> None: ...

    def channel_message(self, data: str) -> None: ...


@runtime_checkable
class RealtimeTransport(Protocol):
    """Async protocol implemented by the WebRTC and WebSocket transports."""

    async def open(self, credential: str, listener: ChannelListener) -> None:
        """Establish the connection.  Raises ``NegotiationError`` on failure."""
        ...

    @property
    def is_channel_open(self) -> bool:
        """Whether ``send`` may be called right now."""
        ...

    def send(self, data: str) -> None:
        """Write one serialized event to the channel."""
        ...

    def set_microphone_enabled(self, enabled: bool) -> None:
        """Toggle local audio capture without tearing the stream down."""
        ...

    async def close(self) -> None:
        """Stop capture and tear down the connection.  Idempotent."""
        ...
