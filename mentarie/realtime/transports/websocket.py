"""WebSocket transport (server-to-server, text events only).

The socket itself is the message channel: it becomes writable as soon as the
handshake completes.  Outbound frames go through a writer queue so ``send``
stays synchronous and ordered; a reader task forwards inbound frames to the
listener.  There is no local capture, so microphone toggles are recorded but
have no effect on the wire.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import websockets
from loguru import logger
from websockets.exceptions import ConnectionClosed, WebSocketException

from mentarie.realtime.errors import NegotiationError

if TYPE_CHECKING:
    from mentarie.realtime.transports.base import ChannelListener

Connector = Callable[..., Any]


class WebSocketTransport:
    def __init__(
        self,
        url: str,
        model: str,
        *,
        connector: Connector | None = None,
        open_timeout: float = 10.0,
    ) -> None:
        self.url = url
        self.model = model
        self._connect = connector or websockets.connect
        self._open_timeout = open_timeout
        self._ws: Any = None
        self._listener: ChannelListener | None = None
        self._outbox: asyncio.Queue[str] = asyncio.Queue()
        self._reader: asyncio.Task[None] | None = None
        self._writer: asyncio.Task[None] | None = None
        self._open = False
        self.microphone_enabled = False

    @property
    def is_channel_open(self) -> bool:
        return self._open

    async def open(self, credential: str, listener: ChannelListener) -> None:
        uri = f"{self.url}?model={self.model}"
        headers = {"Authorization": f"Bearer {credential}", "OpenAI-Beta": "realtime=v1"}
        try:
            self._ws = await self._connect(
                uri,
                additional_headers=headers,
                max_size=None,
                open_timeout=self._open_timeout,
            )
        except (OSError, TimeoutError, WebSocketException) as e:
            msg = f"WebSocket handshake with {uri} failed: {e}"
            raise NegotiationError(msg) from e

        logger.info("Connected to realtime socket: {}", uri)
        self._listener = listener
        self._outbox = asyncio.Queue()
        self._reader = asyncio.create_task(self._read_loop())
        self._writer = asyncio.create_task(self._write_loop())
        # Report readiness after open() returns, like a data channel would.
        asyncio.get_running_loop().call_soon(self._announce_open)

    def _announce_open(self) -> None:
        if self._ws is None or self._listener is None:
            return
        self._open = True
        self._listener.channel_opened()

    async def _read_loop(self) -> None:
        listener = self._listener
        assert listener is not None  # noqa: S101
        try:
            async for message in self._ws:
                listener.channel_message(message if isinstance(message, str) else message.decode("utf-8"))
        except ConnectionClosed as e:
            if e.rcvd is None or e.rcvd.code != 1000:
                listener.channel_errored(e)
        finally:
            self._mark_closed()

    async def _write_loop(self) -> None:
        while True:
            data = await self._outbox.get()
            try:
                await self._ws.send(data)
            except ConnectionClosed:
                logger.warning("Socket closed while sending; dropping writer")
                self._mark_closed()
                return

    def _mark_closed(self) -> None:
        was_open, self._open = self._open, False
        if was_open and self._listener is not None:
            self._listener.channel_closed()

    def send(self, data: str) -> None:
        if not self._open:
            msg = "WebSocket channel is not open"
            raise RuntimeError(msg)
        self._outbox.put_nowait(data)

    def set_microphone_enabled(self, enabled: bool) -> None:
        self.microphone_enabled = enabled

    async def close(self) -> None:
        ws, self._ws = self._ws, None
        if self._writer is not None:
            self._writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._writer
            self._writer = None
        if ws is not None:
            await ws.close()
        if self._reader is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader
            self._reader = None
        self._open = False
