"""WebRTC transport: audio track + ``oai-events`` data channel.

Negotiation is a single offer/answer exchange:

- the local peer generates an SDP offer,
- the offer is POSTed as ``application/sdp`` to ``{base_url}?model=...`` with
  the ephemeral credential as a bearer token,
- the response body is the remote answer.

Peer connections are reached through the narrow ``PeerConnection`` adapter so
the transport never touches a WebRTC stack directly.  ``AiortcPeerConnection``
adapts aiortc (install the ``webrtc`` extra).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

import httpx
from loguru import logger

from mentarie.realtime.errors import NegotiationError, RealtimeConnectionError

if TYPE_CHECKING:
    from mentarie.realtime.transports.base import ChannelListener

DATA_CHANNEL_LABEL = "oai-events"


class DataChannel(Protocol):
    @property
    def ready_state(self) -> str: ...

    def send(self, data: str) -> None: ...


class PeerConnection(Protocol):
    """What the transport needs from a WebRTC peer connection."""

    async def add_microphone(self) -> None:
        """Capture the local microphone and attach it as the outbound track."""
        ...

    def set_microphone_enabled(self, enabled: bool) -> None: ...

    def create_data_channel(self, label: str, listener: ChannelListener) -> DataChannel: ...

    async def create_offer(self) -> str:
        """Create and apply the local description; return its SDP."""
        ...

    async def set_remote_answer(self, sdp: str) -> None: ...

    async def close(self) -> None:
        """Stop local tracks and close the connection."""
        ...


PeerFactory = Callable[[], PeerConnection]


class WebRTCTransport:
    def __init__(
        self,
        base_url: str,
        model: str,
        *,
        peer_factory: PeerFactory | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        start_muted: bool = False,
    ) -> None:
        self.base_url = base_url
        self.model = model
        self._peer_factory = peer_factory or AiortcPeerConnection
        self._client = client
        self._timeout = timeout
        self._start_muted = start_muted
        self._peer: PeerConnection | None = None
        self._channel: DataChannel | None = None

    @property
    def is_channel_open(self) -> bool:
        return self._channel is not None and self._channel.ready_state == "open"

    async def open(self, credential: str, listener: ChannelListener) -> None:
        peer = self._peer_factory()
        self._peer = peer
        try:
            try:
                await peer.add_microphone()
            except Exception as e:
                msg = "Could not access microphone. Please ensure microphone permissions are granted."
                raise NegotiationError(msg) from e
            peer.set_microphone_enabled(not self._start_muted)

            self._channel = peer.create_data_channel(DATA_CHANNEL_LABEL, listener)
            offer_sdp = await peer.create_offer()
            answer_sdp = await self._exchange(credential, offer_sdp)
            await peer.set_remote_answer(answer_sdp)
        except RealtimeConnectionError:
            await self.close()
            raise
        except Exception as e:
            await self.close()
            msg = f"WebRTC negotiation failed: {e}"
            raise NegotiationError(msg) from e
        logger.info("WebRTC transport established (model={})", self.model)

    async def _exchange(self, credential: str, offer_sdp: str) -> str:
        """POST the local offer and return the remote answer SDP."""
        url = f"{self.base_url}?model={self.model}"
        headers = {"Authorization": f"Bearer {credential}", "Content-Type": "application/sdp"}
        try:
            if self._client is not None:
                response = await self._client.post(url, content=offer_sdp, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(url, content=offer_sdp, headers=headers)
        except httpx.HTTPError as e:
            msg = f"SDP exchange failed: {e}"
            raise NegotiationError(msg) from e

        if not response.is_success:
            msg = f"Failed to establish connection: {response.status_code} {response.reason_phrase}"
            raise NegotiationError(msg)
        return response.text

    def send(self, data: str) -> None:
        if self._channel is None:
            msg = "Data channel not created"
            raise RuntimeError(msg)
        self._channel.send(data)

    def set_microphone_enabled(self, enabled: bool) -> None:
        if self._peer is not None:
            self._peer.set_microphone_enabled(enabled)

    async def close(self) -> None:
        peer, self._peer, self._channel = self._peer, None, None
        if peer is not None:
            await peer.close()
            logger.debug("WebRTC transport closed")


# ---------------------------------------------------------------------------
# aiortc adapter
# ---------------------------------------------------------------------------


class AiortcPeerConnection:
    """``PeerConnection`` backed by aiortc.

    The microphone is opened through ffmpeg (``MediaPlayer``); pick the device
    and input format for the platform, e.g. ``("default", "pulse")`` on Linux
    or ``(":0", "avfoundation")`` on macOS.  Remote audio is drained into a
    ``MediaBlackhole`` unless a ``remote_audio_sink`` is given.
    """

    def __init__(
        self,
        *,
        microphone_device: str = "default",
        microphone_format: str | None = "pulse",
        remote_audio_sink: Any = None,
    ) -> None:
        from aiortc import RTCPeerConnection
        from aiortc.contrib.media import MediaBlackhole

        self._pc = RTCPeerConnection()
        self._device = microphone_device
        self._format = microphone_format
        self._player: Any = None
        self._mic: Any = None
        self._sink = remote_audio_sink or MediaBlackhole()
        self._pc.on("track", self._on_track)

    def _on_track(self, track: Any) -> None:
        if track.kind == "audio":
            self._sink.addTrack(track)

    async def add_microphone(self) -> None:
        from aiortc.contrib.media import MediaPlayer

        self._player = MediaPlayer(self._device, format=self._format)
        if self._player.audio is None:
            msg = f"No audio track on capture device {self._device!r}"
            raise RuntimeError(msg)
        self._mic = _gated_audio_track(self._player.audio)
        self._pc.addTrack(self._mic)

    def set_microphone_enabled(self, enabled: bool) -> None:
        if self._mic is not None:
            self._mic.enabled = enabled

    def create_data_channel(self, label: str, listener: ChannelListener) -> DataChannel:
        channel = self._pc.createDataChannel(label)
        channel.on("open", listener.channel_opened)
        channel.on("close", listener.channel_closed)
        channel.on("error", listener.channel_errored)

        def _on_message(message: str | bytes) -> None:
            listener.channel_message(message if isinstance(message, str) else message.decode("utf-8"))

        channel.on("message", _on_message)
        return _AiortcChannel(channel)

    async def create_offer(self) -> str:
        offer = await self._pc.createOffer()
        await self._pc.setLocalDescription(offer)
        return self._pc.localDescription.sdp

    async def set_remote_answer(self, sdp: str) -> None:
        from aiortc import RTCSessionDescription

        await self._pc.setRemoteDescription(RTCSessionDescription(sdp=sdp, type="answer"))
        await self._sink.start()

    async def close(self) -> None:
        if self._mic is not None:
            self._mic.stop()
        if self._player is not None and self._player.audio is not None:
            self._player.audio.stop()
        await self._sink.stop()
        await self._pc.close()


class _AiortcChannel:
    def __init__(self, channel: Any) -> None:
        self._channel = channel

    @property
    def ready_state(self) -> str:
        return self._channel.readyState

    def send(self, data: str) -> None:
        self._channel.send(data)


def _gated_audio_track(source: Any) -> Any:
    """Wrap ``source`` in a track whose samples are zeroed while disabled.

    Disabled tracks keep producing frames so RTP timing is preserved.
    """
    from aiortc import MediaStreamTrack

    class GatedAudioTrack(MediaStreamTrack):
        kind = "audio"

        def __init__(self) -> None:
            super().__init__()
            self.enabled = True

        async def recv(self) -> Any:
            frame = await source.recv()
            if not self.enabled:
                for plane in frame.planes:
                    plane.update(bytes(plane.buffer_size))
            return frame

    return GatedAudioTrack()
