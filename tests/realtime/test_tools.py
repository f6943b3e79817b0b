"""Tests for the tool / function call router."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from mentarie.realtime.models.agent import AgentConfig, AgentRef
from mentarie.realtime.models.enums import ItemKind, Role
from mentarie.realtime.registry import AgentRegistry
from mentarie.realtime.tools import FunctionCall, ToolRouter, parse_arguments
from mentarie.realtime.transcript import TranscriptStore


@pytest.fixture
def sent() -> list[dict[str, Any]]:
    return []


@pytest.fixture
def registry(agents: list[AgentConfig]) -> AgentRegistry:
    return AgentRegistry(agents)


@pytest.fixture
def transcript() -> TranscriptStore:
    return TranscriptStore()


@pytest.fixture
def router(registry: AgentRegistry, transcript: TranscriptStore, sent: list[dict[str, Any]]) -> ToolRouter:
    return ToolRouter(registry, transcript, sent.append)


def _outputs(sent: list[dict[str, Any]]) -> list[Any]:
    return [json.loads(event["item"]["output"]) for event in sent if event["type"] == "conversation.item.create"]


def _types(sent: list[dict[str, Any]]) -> list[str]:
    return [event["type"] for event in sent]


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def test_parse_arguments() -> None:
    assert parse_arguments(None) == {}
    assert parse_arguments("") == {}
    assert parse_arguments('{"a": 1}') == {"a": 1}
    with pytest.raises(ValueError):
        parse_arguments("{not json")
    with pytest.raises(ValueError):
        parse_arguments("[1, 2]")


async def test_malformed_arguments_are_dropped(router, sent) -> None:
    assert router.submit(FunctionCall("lookup_word", "{oops", "call_1")) is None
    await router.join()
    assert sent == []


# ---------------------------------------------------------------------------
# Tier 1: agent tool logic
# ---------------------------------------------------------------------------


async def test_agent_tool_logic_gets_args_and_transcript(router, transcript, sent) -> None:
    transcript.add_message("u1", Role.USER, "What does 'bark' mean?")

    router.submit(FunctionCall("lookup_word", '{"word": "bark"}', "call_1"))
    await router.join()

    assert _types(sent) == ["conversation.item.create", "response.create"]
    assert sent[0]["item"]["call_id"] == "call_1"
    assert _outputs(sent) == [{"word": "bark", "items": 1}]


async def test_async_handler_is_awaited(transcript, sent) -> None:
    async def _slow_lookup(args: dict[str, Any], items: list[Any]) -> dict[str, Any]:
        await asyncio.sleep(0)
        return {"meaning": "dog sound"}

    agent = AgentConfig(name="a", instructions="x", tool_logic={"lookup_word": _slow_lookup})
    router = ToolRouter(AgentRegistry([agent]), transcript, sent.append)

    router.submit(FunctionCall("lookup_word", "{}", "call_1"))
    await router.join()

    assert _outputs(sent) == [{"meaning": "dog sound"}]


async def test_handler_error_becomes_structured_result(transcript, sent) -> None:
    def _broken(args: dict[str, Any], items: list[Any]) -> None:
        raise RuntimeError("dictionary offline")

    agent = AgentConfig(name="a", instructions="x", tool_logic={"lookup_word": _broken})
    router = ToolRouter(AgentRegistry([agent]), transcript, sent.append)

    router.submit(FunctionCall("lookup_word", "{}", "call_1"))
    await router.join()

    assert _outputs(sent) == [{"status": "error", "error": "dictionary offline"}]
    assert _types(sent)[-1] == "response.create"


# ---------------------------------------------------------------------------
# Tier 2: transferAgents
# ---------------------------------------------------------------------------


async def test_transfer_to_known_agent(router, registry, transcript, sent) -> None:
    changes: list[str] = []
    registry.subscribe(lambda agent: changes.append(agent.name))

    router.submit(FunctionCall("transferAgents", '{"destination_agent": "grader"}', "call_t"))
    await router.join()

    assert _types(sent) == ["conversation.item.create"]
    assert _outputs(sent) == [{"destination_agent": "grader", "did_transfer": True}]
    assert registry.active_name == "grader"
    assert changes == ["grader"]
    breadcrumbs = [item for item in transcript.items if item.kind == ItemKind.BREADCRUMB]
    assert [item.title for item in breadcrumbs] == ["Agent transfer: grader"]


async def test_transfer_to_unknown_agent(router, registry, transcript, sent) -> None:
    router.submit(FunctionCall("transferAgents", '{"destination_agent": "nobody"}', "call_t"))
    await router.join()

    assert _types(sent) == ["conversation.item.create"]
    assert _outputs(sent) == [{"destination_agent": "nobody", "did_transfer": False}]
    assert registry.active_name == "tutor"
    assert len(transcript) == 0


async def test_agent_tool_logic_shadows_transfer(transcript, sent) -> None:
    agent = AgentConfig(
        name="a",
        instructions="x",
        tool_logic={"transferAgents": lambda args, items: {"custom": True}},
        downstream_agents=[AgentRef(name="b", public_description="")],
    )
    other = AgentConfig(name="b", instructions="y")
    registry = AgentRegistry([agent, other])
    router = ToolRouter(registry, transcript, sent.append)

    router.submit(FunctionCall("transferAgents", '{"destination_agent": "b"}', "call_t"))
    await router.join()

    assert _outputs(sent) == [{"custom": True}]
    assert registry.active_name == "a"


# ---------------------------------------------------------------------------
# Tier 3 / 4: generic registry and unknown functions
# ---------------------------------------------------------------------------


async def test_generic_function_none_result_is_ok(registry, transcript, sent) -> None:
    calls: list[dict[str, Any]] = []
    router = ToolRouter(registry, transcript, sent.append, functions={"log_progress": calls.append})

    router.submit(FunctionCall("log_progress", '{"step": 2}', "call_g"))
    await router.join()

    assert calls == [{"step": 2}]
    assert _outputs(sent) == [{"status": "ok"}]
    assert _types(sent) == ["conversation.item.create", "response.create"]


async def test_unknown_function_gets_stub_result(router, sent) -> None:
    router.submit(FunctionCall("does_not_exist", "{}", "call_u"))
    await router.join()

    assert _outputs(sent) == [{"result": True}]
    assert _types(sent) == ["conversation.item.create", "response.create"]


# ---------------------------------------------------------------------------
# Dedupe and ordering
# ---------------------------------------------------------------------------


async def test_same_call_id_is_routed_once(router, sent) -> None:
    assert router.submit(FunctionCall("does_not_exist", "{}", "call_1")) is not None
    assert router.submit(FunctionCall("does_not_exist", "{}", "call_1")) is None
    await router.join()

    assert len(_outputs(sent)) == 1


async def test_completions_emitted_in_completion_order(transcript, sent) -> None:
    release = asyncio.Event()

    async def _slow(args: dict[str, Any], items: list[Any]) -> str:
        await release.wait()
        return "slow"

    def _fast(args: dict[str, Any], items: list[Any]) -> str:
        return "fast"

    agent = AgentConfig(name="a", instructions="x", tool_logic={"slow": _slow, "fast": _fast})
    router = ToolRouter(AgentRegistry([agent]), transcript, sent.append)

    router.submit(FunctionCall("slow", "{}", "call_slow"))
    router.submit(FunctionCall("fast", "{}", "call_fast"))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert router.emit_completed() == 1

    release.set()
    await router.join()

    assert _outputs(sent) == ["fast", "slow"]


async def test_cancel_all_drops_in_flight_calls(transcript, sent) -> None:
    async def _forever(args: dict[str, Any], items: list[Any]) -> None:
        await asyncio.Event().wait()

    agent = AgentConfig(name="a", instructions="x", tool_logic={"wait": _forever})
    router = ToolRouter(AgentRegistry([agent]), transcript, sent.append)

    router.submit(FunctionCall("wait", "{}", "call_w"))
    await router.cancel_all()
    await router.join()

    assert router.in_flight == 0
    assert sent == []
