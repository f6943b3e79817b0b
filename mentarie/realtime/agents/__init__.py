"""Built-in agent sets.

Each entry in ``ALL_AGENT_SETS`` is a factory so every session gets fresh
agent instances (and freshly rendered instructions).
"""

from __future__ import annotations

from collections.abc import Callable

from mentarie.realtime.agents.english_teacher import create_english_teacher, english_teacher_agent_set
from mentarie.realtime.agents.lesson import Lesson, LessonProgress, TargetChunk, create_lesson_agent_set
from mentarie.realtime.agents.transfer import inject_transfer_tools
from mentarie.realtime.models.agent import AgentConfig

ALL_AGENT_SETS: dict[str, Callable[[], list[AgentConfig]]] = {
    "englishTeacher": english_teacher_agent_set,
}

DEFAULT_AGENT_SET_KEY = "englishTeacher"


def get_agent_set(key: str | None = None) -> list[AgentConfig]:
    """Build the agent set registered under ``key`` (default set if ``None``)."""
    factory = ALL_AGENT_SETS.get(key or DEFAULT_AGENT_SET_KEY)
    if factory is None:
        msg = f"Unknown agent set '{key}' (available: {', '.join(sorted(ALL_AGENT_SETS))})"
        raise LookupError(msg)
    return factory()


__all__ = [
    "ALL_AGENT_SETS",
    "DEFAULT_AGENT_SET_KEY",
    "Lesson",
    "LessonProgress",
    "TargetChunk",
    "create_english_teacher",
    "create_lesson_agent_set",
    "get_agent_set",
    "inject_transfer_tools",
]
