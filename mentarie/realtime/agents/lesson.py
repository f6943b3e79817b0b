"""Dynamic lesson agent.

Built per lesson: the instructions walk the learner through the lesson's
target chunks in order, and the agent reports progress through three tools
backed by a ``LessonProgress`` instance.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from mentarie.realtime.agents.prompt import render_instructions
from mentarie.realtime.agents.transfer import inject_transfer_tools
from mentarie.realtime.models.agent import AgentConfig, ToolDescriptor, ToolParameters

if TYPE_CHECKING:
    from mentarie.realtime.models.agent import ToolHandler
    from mentarie.realtime.models.transcript import TranscriptItem

AGENT_NAME = "dynamicLessonAgent"


class TargetChunk(BaseModel):
    text: str


class Lesson(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = "Untitled lesson"
    objective: str = ""
    target_chunks: list[TargetChunk] = Field(default_factory=list, alias="targetChunks")


def _normalise(text: str) -> str:
    return " ".join(re.sub(r"[^\w\s']", " ", text.lower()).split())


# -- Tool logic ----------------------------------------------------------------


@dataclass
class LessonProgress:
    """Tracks which target chunks the learner has used."""

    targets: list[str]
    used: list[str] = field(default_factory=list)
    greetings: list[str] = field(default_factory=list)
    finished: bool = False
    on_finish: Callable[[LessonProgress], Any] | None = field(default=None, repr=False)

    @property
    def total(self) -> int:
        return len(self.targets)

    @property
    def complete(self) -> bool:
        return len(self.used) >= self.total

    def console_greeting(self, args: dict[str, Any], transcript: list[TranscriptItem]) -> dict[str, Any]:
        message = str(args.get("message", ""))
        logger.info("Lesson greeting: {}", message)
        self.greetings.append(message)
        return {"status": "ok"}

    def update_target_chunks(self, args: dict[str, Any], transcript: list[TranscriptItem]) -> dict[str, Any]:
        """Mark the reported chunks as used.  Unknown chunks are ignored."""
        chunks = args.get("chunks") or []
        if isinstance(chunks, str):
            chunks = [chunks]

        by_key = {_normalise(target): target for target in self.targets}
        for chunk in chunks:
            target = by_key.get(_normalise(str(chunk)))
            if target is None:
                logger.debug("Ignoring chunk outside the lesson: {!r}", chunk)
            elif target not in self.used:
                self.used.append(target)

        return {"used_chunks": len(self.used), "total_chunks": self.total}

    def finish_lesson(self, args: dict[str, Any], transcript: list[TranscriptItem]) -> dict[str, Any]:
        if not self.finished:
            self.finished = True
            logger.info("Lesson finished ({}/{} chunks used)", len(self.used), self.total)
            if self.on_finish:
                self.on_finish(self)
        return {"status": "completed", "used_chunks": len(self.used), "total_chunks": self.total}

    def tool_logic(self) -> dict[str, ToolHandler]:
        return {
            "console_greeting": self.console_greeting,
            "update_target_chunks": self.update_target_chunks,
            "finish_lesson": self.finish_lesson,
        }


# -- Agent ---------------------------------------------------------------------

INSTRUCTIONS_TEMPLATE = """\
You're a helpful AI language teacher who is coaching the user through the lesson "{{ title }}".
{% if objective %}
Lesson objective: {{ objective }}
{% endif %}

Helpful instructions:
1. Start the conversation by asking questions or making statements that guide the user to use the first chunk.
2. After the user uses the first chunk, ask a follow-up question or statement that encourages them to use the
   second chunk.
3. Continue this process for each target chunk in the list, in the order provided.
4. If the user skips or avoids a chunk, reintroduce it so it is used within the conversation.
5. Keep the conversation flowing naturally and engaging while gently nudging the user towards the required phrases.

The target chunks are:
{% for chunk in chunks %}
  {{ loop.index }}. {{ chunk }}
{% endfor %}

If the user says something similar to one or more of these target chunks, call update_target_chunks with ALL
matching chunks as an array, even when several are said in the same sentence.
update_target_chunks returns used_chunks, the total of chunks used so far.
When used_chunks equals {{ chunks | length }}, call finish_lesson to end the session and say goodbye.
"""

TOOLS = [
    ToolDescriptor(
        name="console_greeting",
        description="Greet the user via the console when the user asks for it",
        parameters=ToolParameters(
            properties={"message": {"type": "string", "description": "Message to send the user"}},
            required=["message"],
        ),
    ),
    ToolDescriptor(
        name="update_target_chunks",
        description=(
            "Update the used list of target chunks if the user says something similar to one or more of them. "
            "Call this with ALL chunks that match what the user said, even if several are in the same sentence."
        ),
        parameters=ToolParameters(
            properties={
                "chunks": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Target chunks similar to what the user said.",
                },
            },
            required=["chunks"],
        ),
    ),
    ToolDescriptor(
        name="finish_lesson",
        description="Mark the lesson as completed because the user has used all target chunks.",
        parameters=ToolParameters(
            properties={"usedChunks": {"type": "number", "description": "The total of used chunks"}},
        ),
    ),
]


def create_lesson_agent(lesson: Lesson, progress: LessonProgress | None = None) -> AgentConfig:
    chunks = [chunk.text for chunk in lesson.target_chunks]
    progress = progress or LessonProgress(targets=chunks)
    return AgentConfig(
        name=AGENT_NAME,
        public_description=f"Agent for {lesson.title} - {lesson.objective}",
        instructions=render_instructions(
            INSTRUCTIONS_TEMPLATE,
            title=lesson.title,
            objective=lesson.objective,
            chunks=chunks,
        ),
        tools=list(TOOLS),
        tool_logic=progress.tool_logic(),
    )


def create_lesson_agent_set(
    lesson: Lesson | dict[str, Any],
    progress: LessonProgress | None = None,
) -> list[AgentConfig]:
    if not isinstance(lesson, Lesson):
        lesson = Lesson.model_validate(lesson)
    return inject_transfer_tools([create_lesson_agent(lesson, progress)])
