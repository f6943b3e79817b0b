"""Tests for the built-in agent sets and instruction rendering."""

from __future__ import annotations

import random

import pytest

from mentarie.realtime.agents import (
    ALL_AGENT_SETS,
    DEFAULT_AGENT_SET_KEY,
    Lesson,
    LessonProgress,
    create_english_teacher,
    create_lesson_agent_set,
    get_agent_set,
    inject_transfer_tools,
)
from mentarie.realtime.agents.english_teacher import ICEBREAKER_PLACES
from mentarie.realtime.agents.prompt import render_instructions
from mentarie.realtime.models.agent import AgentConfig, AgentRef
from mentarie.realtime.session import RealtimeSession
from mentarie.realtime.tools import TRANSFER_TOOL_NAME

LESSON = {
    "title": "Meeting people",
    "objective": "Introduce yourself",
    "targetChunks": [{"text": "Nice to meet you."}, {"text": "Where are you from?"}, {"text": "I'm from ..."}],
}

# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def test_plain_instructions_passthrough() -> None:
    assert render_instructions("No {template} here.") == "No {template} here."


def test_template_variables() -> None:
    assert render_instructions("Met at the {{ place }}.", place="dog park") == "Met at the dog park."


def test_template_loop() -> None:
    template = "Chunks:\n{% for chunk in chunks %}\n{{ loop.index }}. {{ chunk }}\n{% endfor %}\n"
    assert render_instructions(template, chunks=["a", "b"]) == "Chunks:\n1. a\n2. b\n"


# ---------------------------------------------------------------------------
# Transfer tool injection
# ---------------------------------------------------------------------------


def test_inject_transfer_tools_only_where_downstream_exists() -> None:
    tutor = AgentConfig(
        name="tutor",
        instructions="x",
        downstream_agents=[AgentRef(name="grader", public_description="Grades answers")],
    )
    grader = AgentConfig(name="grader", instructions="y")

    injected = inject_transfer_tools([tutor, grader])

    tool = injected[0].tools[-1]
    assert tool.name == TRANSFER_TOOL_NAME
    assert tool.parameters.properties["destination_agent"]["enum"] == ["grader"]
    assert tool.parameters.required == ["rationale_for_transfer", "conversation_context", "destination_agent"]
    assert "- grader: Grades answers" in tool.description
    assert injected[1].tools == []
    assert tutor.tools == []


def test_inject_transfer_tools_is_idempotent() -> None:
    tutor = AgentConfig(name="tutor", instructions="x", downstream_agents=[AgentRef(name="g", public_description="")])
    twice = inject_transfer_tools(inject_transfer_tools([tutor]))
    assert [tool.name for tool in twice[0].tools] == [TRANSFER_TOOL_NAME]


# ---------------------------------------------------------------------------
# English teacher
# ---------------------------------------------------------------------------


def test_english_teacher_uses_given_place() -> None:
    agent = create_english_teacher("beach bar")
    assert agent.name == "englishTeacher"
    assert "we just met at the beach bar" in agent.instructions
    assert "{{" not in agent.instructions
    assert "15 replies" in agent.instructions


def test_english_teacher_random_place() -> None:
    agent = create_english_teacher(rng=random.Random(7))
    assert any(f"met at the {place}" in agent.instructions for place in ICEBREAKER_PLACES)


def test_agent_set_registry() -> None:
    assert DEFAULT_AGENT_SET_KEY in ALL_AGENT_SETS
    agents = get_agent_set()
    assert [agent.name for agent in agents] == ["englishTeacher"]
    assert get_agent_set("englishTeacher")[0].tools == []

    with pytest.raises(LookupError, match="Unknown agent set"):
        get_agent_set("klingonTeacher")


# ---------------------------------------------------------------------------
# Lesson agent
# ---------------------------------------------------------------------------


def test_lesson_agent_instructions_and_tools() -> None:
    (agent,) = create_lesson_agent_set(LESSON)

    assert agent.name == "dynamicLessonAgent"
    assert agent.public_description == "Agent for Meeting people - Introduce yourself"
    assert "  1. Nice to meet you." in agent.instructions
    assert "  3. I'm from ..." in agent.instructions
    assert "When used_chunks equals 3" in agent.instructions
    assert [tool.name for tool in agent.tools] == ["console_greeting", "update_target_chunks", "finish_lesson"]
    assert set(agent.tool_logic) == {"console_greeting", "update_target_chunks", "finish_lesson"}


def test_lesson_without_chunks() -> None:
    (agent,) = create_lesson_agent_set(Lesson(title="Empty"))
    assert "When used_chunks equals 0" in agent.instructions


def test_lesson_progress_tracks_chunks() -> None:
    lesson = Lesson.model_validate(LESSON)
    finished: list[LessonProgress] = []
    progress = LessonProgress(targets=[chunk.text for chunk in lesson.target_chunks], on_finish=finished.append)

    result = progress.update_target_chunks({"chunks": ["nice to meet you", "Where are you from"]}, [])
    assert result == {"used_chunks": 2, "total_chunks": 3}

    result = progress.update_target_chunks({"chunks": ["Nice to meet you!", "What's your name?"]}, [])
    assert result["used_chunks"] == 2

    progress.update_target_chunks({"chunks": "I'm from…"}, [])
    assert progress.complete is True

    assert progress.finish_lesson({"usedChunks": 3}, [])["status"] == "completed"
    progress.finish_lesson({}, [])
    assert finished == [progress]


@pytest.fixture
async def connected_lesson(settings, credentials, transport):
    lesson = Lesson.model_validate(LESSON)
    progress = LessonProgress(targets=[chunk.text for chunk in lesson.target_chunks])
    session = RealtimeSession(
        create_lesson_agent_set(lesson, progress),
        settings=settings,
        credentials=credentials,
        transport=transport,
    )
    await session.connect()
    transport.open_channel()
    transport.clear()
    yield session, progress
    await session.disconnect()


async def test_lesson_tools_through_router(transport, connected_lesson) -> None:
    session, progress = connected_lesson
    transport.receive(
        {
            "type": "response.function_call_arguments.done",
            "name": "update_target_chunks",
            "call_id": "c1",
            "arguments": '{"chunks": ["Nice to meet you."]}',
        }
    )
    await session.router.join()

    assert progress.used == ["Nice to meet you."]
    assert transport.types == ["conversation.item.create", "response.create"]

