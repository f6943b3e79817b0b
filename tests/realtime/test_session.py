"""End-to-end tests for the realtime session facade."""

from __future__ import annotations

import asyncio

import pytest

from mentarie.realtime.errors import CredentialError
from mentarie.realtime.models.enums import SessionStatus
from mentarie.realtime.session import RealtimeSession, SessionCallbacks
from mentarie.realtime.settings import MentarieSettings
from mentarie.realtime.transports import WebRTCTransport, WebSocketTransport, create_transport


async def test_full_turn(agents, settings, credentials, transport) -> None:
    events: list[str] = []
    replies: list[str] = []
    session = RealtimeSession(
        agents,
        settings=settings,
        credentials=credentials,
        transport=transport,
        callbacks=SessionCallbacks(
            on_data_channel_open=lambda: events.append("open"),
            on_data_channel_message=lambda raw: events.append("message"),
            on_assistant_response_complete=replies.append,
        ),
    )

    async with session:
        assert session.status == SessionStatus.CONNECTED
        transport.open_channel()
        transport.receive({"type": "session.created"})
        transport.receive(
            {
                "type": "conversation.item.created",
                "item": {"id": "a1", "type": "message", "role": "assistant", "content": []},
            }
        )
        transport.receive({"type": "response.audio_transcript.delta", "item_id": "a1", "delta": "Hi there!"})
        transport.receive(
            {"type": "response.output_item.done", "item": {"id": "a1", "type": "message", "role": "assistant"}}
        )
        await asyncio.sleep(0.01)

    assert events == ["open", "message", "message", "message", "message"]
    assert replies == ["Hi there!"]
    assert session.status == SessionStatus.DISCONNECTED
    assert transport.closed is True


async def test_failed_connect_never_opens_channel(agents, settings, fake_credentials_cls, transport) -> None:
    opened: list[bool] = []
    statuses: list[SessionStatus] = []
    session = RealtimeSession(
        agents,
        settings=settings,
        credentials=fake_credentials_cls(key=None),
        transport=transport,
        callbacks=SessionCallbacks(on_data_channel_open=lambda: opened.append(True)),
    )
    statuses.append(session.status)
    session.connection.subscribe_status(statuses.append)

    with pytest.raises(CredentialError):
        await session.connect()

    assert statuses == [SessionStatus.DISCONNECTED, SessionStatus.CONNECTING, SessionStatus.DISCONNECTED]
    assert opened == []
    assert session._tool_loop is None


async def test_session_created_before_open_returns(agents, settings, credentials, fake_transport_cls) -> None:
    class EarlyEventsTransport(fake_transport_cls):
        async def open(self, credential, listener) -> None:
            await super().open(credential, listener)
            self.open_channel()
            self.receive({"type": "session.created"})

    transport = EarlyEventsTransport()
    session = RealtimeSession(agents, settings=settings, credentials=credentials, transport=transport)

    assert await session.connect() is True

    assert session.status == SessionStatus.CONNECTED
    assert transport.closed is False
    assert transport.types.count("session.update") == 1
    await session.disconnect()


async def test_tool_loop_emits_without_join(connected, transport) -> None:
    transport.receive(
        {
            "type": "response.function_call_arguments.done",
            "name": "lookup_word",
            "call_id": "c1",
            "arguments": '{"word": "hola"}',
        }
    )
    for _ in range(5):
        await asyncio.sleep(0)

    assert transport.types == ["conversation.item.create", "response.create"]


async def test_initial_active_agent(agents, settings, credentials, transport) -> None:
    session = RealtimeSession(
        agents, settings=settings, credentials=credentials, transport=transport, active_agent="grader"
    )
    assert session.active_agent.name == "grader"


# ---------------------------------------------------------------------------
# Transport selection
# ---------------------------------------------------------------------------


def test_create_transport_webrtc() -> None:
    transport = create_transport(MentarieSettings())
    assert isinstance(transport, WebRTCTransport)
    assert transport.base_url == "https://api.openai.com/v1/realtime"


def test_create_transport_websocket() -> None:
    transport = create_transport(MentarieSettings(transport="websocket"))
    assert isinstance(transport, WebSocketTransport)
    assert transport.url == "wss://api.openai.com/v1/realtime"
