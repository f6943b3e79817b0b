"""Fakes and fixtures for realtime session tests.

``FakeTransport`` stands in for the WebRTC / WebSocket transports: tests
drive channel lifecycle and inbound messages by hand and inspect the exact
JSON that went out.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any

import pytest

from mentarie.realtime.errors import CredentialError
from mentarie.realtime.models.agent import AgentConfig, AgentRef, ToolDescriptor
from mentarie.realtime.session import RealtimeSession, SessionCallbacks
from mentarie.realtime.settings import MentarieSettings
from mentarie.realtime.transports.base import ChannelListener


class FakeTransport:
    def __init__(self, *, fail: BaseException | None = None) -> None:
        self.fail = fail
        self.sent: list[str] = []
        self.listener: ChannelListener | None = None
        self.credential: str | None = None
        self.channel_open = False
        self.microphone: list[bool] = []
        self.closed = False

    @property
    def is_channel_open(self) -> bool:
        return self.channel_open

    async def open(self, credential: str, listener: ChannelListener) -> None:
        if self.fail is not None:
            raise self.fail
        self.credential = credential
        self.listener = listener

    def send(self, data: str) -> None:
        if not self.channel_open:
            msg = "channel not open"
            raise RuntimeError(msg)
        self.sent.append(data)

    def set_microphone_enabled(self, enabled: bool) -> None:
        self.microphone.append(enabled)

    async def close(self) -> None:
        self.closed = True
        self.channel_open = False

    # -- Test drivers ----------------------------------------------------------

    def open_channel(self) -> None:
        assert self.listener is not None
        self.channel_open = True
        self.listener.channel_opened()

    def close_channel(self) -> None:
        assert self.listener is not None
        self.channel_open = False
        self.listener.channel_closed()

    def receive(self, event: dict[str, Any] | str) -> None:
        assert self.listener is not None
        self.listener.channel_message(event if isinstance(event, str) else json.dumps(event))

    @property
    def events(self) -> list[dict[str, Any]]:
        return [json.loads(data) for data in self.sent]

    @property
    def types(self) -> list[str]:
        return [event["type"] for event in self.events]

    def clear(self) -> None:
        self.sent.clear()


class FakeCredentials:
    def __init__(self, key: str | None = "ek_test") -> None:
        self.key = key
        self.calls = 0

    async def fetch(self) -> str:
        self.calls += 1
        if not self.key:
            msg = "No ephemeral key provided by the server"
            raise CredentialError(msg)
        return self.key


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> MentarieSettings:
    return MentarieSettings(completion_settle_delay=0.0)


@pytest.fixture
def fake_transport_cls() -> type[FakeTransport]:
    return FakeTransport


@pytest.fixture
def fake_credentials_cls() -> type[FakeCredentials]:
    return FakeCredentials


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def credentials() -> FakeCredentials:
    return FakeCredentials()


def make_agents() -> list[AgentConfig]:
    """Two agents: ``tutor`` can transfer to ``grader``."""
    tutor = AgentConfig(
        name="tutor",
        public_description="Conversation practice",
        instructions="You are a tutor.",
        tools=[ToolDescriptor(name="lookup_word", description="Look up a word")],
        tool_logic={"lookup_word": lambda args, transcript: {"word": args.get("word"), "items": len(transcript)}},
        downstream_agents=[AgentRef(name="grader", public_description="Grades answers")],
    )
    grader = AgentConfig(name="grader", public_description="Grades answers", instructions="You are a grader.")
    return [tutor, grader]


@pytest.fixture
def agents() -> list[AgentConfig]:
    return make_agents()


@pytest.fixture
def callbacks() -> SessionCallbacks:
    return SessionCallbacks()


@pytest.fixture
def session(
    agents: list[AgentConfig],
    settings: MentarieSettings,
    credentials: FakeCredentials,
    transport: FakeTransport,
    callbacks: SessionCallbacks,
) -> RealtimeSession:
    return RealtimeSession(
        agents,
        settings=settings,
        credentials=credentials,
        transport=transport,
        callbacks=callbacks,
    )


@pytest.fixture
async def connected(session: RealtimeSession, transport: FakeTransport) -> AsyncIterator[RealtimeSession]:
    """Session that is CONNECTED with an open channel and an empty send log."""
    await session.connect()
    transport.open_channel()
    transport.clear()
    yield session
    await session.disconnect()
