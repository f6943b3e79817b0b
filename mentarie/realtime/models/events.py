"""Inbound protocol event models.

Server events form a closed tagged union keyed by ``type``.  Variants the
dispatcher does not know about are parsed as ``UnknownServerEvent`` instead of
failing validation, so newer servers can add event types freely.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from mentarie.realtime.models.enums import Role, ServerEventType


class _Event(BaseModel):
    model_config = ConfigDict(extra="allow")

    event_id: str | None = None


# -- Shared payload shapes ---------------------------------------------------


class ContentPart(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str | None = None
    text: str | None = None
    transcript: str | None = None


class ConversationItem(BaseModel):
    """Item payload carried by ``conversation.item.*`` and output events."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    object: str | None = None
    type: str | None = None
    status: str | None = None
    role: Role | None = None
    name: str | None = None
    call_id: str | None = None
    arguments: str | None = None
    content: list[ContentPart] = Field(default_factory=list)

    def first_text(self) -> str:
        """Text of the first content part (``text`` preferred over ``transcript``)."""
        if not self.content:
            return ""
        part = self.content[0]
        return part.text or part.transcript or ""


class ResponsePayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    status: str | None = None
    output: list[ConversationItem] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None
    status_details: dict[str, Any] | None = None


# -- Variants ----------------------------------------------------------------


class SessionCreated(_Event):
    type: Literal["session.created"] = "session.created"
    session: dict[str, Any] | None = None


class OutputAudioBufferStarted(_Event):
    type: Literal["output_audio_buffer.started"] = "output_audio_buffer.started"


class OutputAudioBufferStopped(_Event):
    type: Literal["output_audio_buffer.stopped"] = "output_audio_buffer.stopped"


class ConversationItemCreated(_Event):
    type: Literal["conversation.item.created"] = "conversation.item.created"
    item: ConversationItem = Field(default_factory=ConversationItem)


class InputAudioTranscriptionCompleted(_Event):
    type: Literal["conversation.item.input_audio_transcription.completed"] = (
        "conversation.item.input_audio_transcription.completed"
    )
    item_id: str | None = None
    transcript: str | None = None


class AudioTranscriptDelta(_Event):
    type: Literal["response.audio_transcript.delta"] = "response.audio_transcript.delta"
    item_id: str | None = None
    delta: str | None = None


class FunctionCallArgumentsDone(_Event):
    type: Literal["response.function_call_arguments.done"] = "response.function_call_arguments.done"
    name: str | None = None
    call_id: str | None = None
    item_id: str | None = None
    arguments: str | None = None


class ResponseDone(_Event):
    type: Literal["response.done"] = "response.done"
    response: ResponsePayload = Field(default_factory=ResponsePayload)


class OutputItemDone(_Event):
    type: Literal["response.output_item.done"] = "response.output_item.done"
    item: ConversationItem = Field(default_factory=ConversationItem)


class UnknownServerEvent(_Event):
    """Default arm for event types the dispatcher does not handle."""

    type: str


ServerEvent = (
    SessionCreated
    | OutputAudioBufferStarted
    | OutputAudioBufferStopped
    | ConversationItemCreated
    | InputAudioTranscriptionCompleted
    | AudioTranscriptDelta
    | FunctionCallArgumentsDone
    | ResponseDone
    | OutputItemDone
    | UnknownServerEvent
)

_VARIANTS: dict[str, type[_Event]] = {
    ServerEventType.SESSION_CREATED: SessionCreated,
    ServerEventType.OUTPUT_AUDIO_BUFFER_STARTED: OutputAudioBufferStarted,
    ServerEventType.OUTPUT_AUDIO_BUFFER_STOPPED: OutputAudioBufferStopped,
    ServerEventType.CONVERSATION_ITEM_CREATED: ConversationItemCreated,
    ServerEventType.INPUT_AUDIO_TRANSCRIPTION_COMPLETED: InputAudioTranscriptionCompleted,
    ServerEventType.AUDIO_TRANSCRIPT_DELTA: AudioTranscriptDelta,
    ServerEventType.FUNCTION_CALL_ARGUMENTS_DONE: FunctionCallArgumentsDone,
    ServerEventType.RESPONSE_DONE: ResponseDone,
    ServerEventType.OUTPUT_ITEM_DONE: OutputItemDone,
}


def parse_server_event(data: dict[str, Any]) -> ServerEvent:
    """Validate a decoded inbound message into its event variant.

    Raises ``ValueError`` when ``type`` is missing and
    ``pydantic.ValidationError`` when a known variant has a malformed payload.
    """
    event_type = data.get("type")
    if not isinstance(event_type, str):
        msg = "Server event has no 'type' field"
        raise ValueError(msg)  # noqa: TRY004
    model = _VARIANTS.get(event_type, UnknownServerEvent)
    return model.model_validate(data)  # type: ignore[return-value]
