"""Transport implementations for the realtime data channel."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mentarie.realtime.transports.base import ChannelListener, RealtimeTransport
from mentarie.realtime.transports.webrtc import WebRTCTransport
from mentarie.realtime.transports.websocket import WebSocketTransport

if TYPE_CHECKING:
    from mentarie.realtime.settings import MentarieSettings

__all__ = ["ChannelListener", "RealtimeTransport", "WebRTCTransport", "WebSocketTransport", "create_transport"]


def create_transport(settings: MentarieSettings) -> RealtimeTransport:
    """Create the transport backend based on configuration."""
    if settings.transport == "websocket":
        url = settings.realtime_url.replace("https://", "wss://", 1).replace("http://", "ws://", 1)
        return WebSocketTransport(url, settings.realtime_model, open_timeout=settings.request_timeout)
    return WebRTCTransport(
        settings.realtime_url,
        settings.realtime_model,
        timeout=settings.request_timeout,
        start_muted=settings.push_to_talk,
    )
