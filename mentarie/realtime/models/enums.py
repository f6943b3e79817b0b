"""Shared enumerations used across the realtime runtime."""

from __future__ import annotations

from enum import StrEnum

# -- Connection --------------------------------------------------------------


class SessionStatus(StrEnum):
    """Connection status owned by the ConnectionManager."""

    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"


# -- Transcript --------------------------------------------------------------


class ItemKind(StrEnum):
    MESSAGE = "MESSAGE"
    BREADCRUMB = "BREADCRUMB"


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


class ItemStatus(StrEnum):
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


# -- Protocol events ---------------------------------------------------------


class ServerEventType(StrEnum):
    """Inbound event types the dispatcher acts on.

    Anything else arriving on the channel is parsed as an unknown event and
    ignored.
    """

    SESSION_CREATED = "session.created"
    OUTPUT_AUDIO_BUFFER_STARTED = "output_audio_buffer.started"
    OUTPUT_AUDIO_BUFFER_STOPPED = "output_audio_buffer.stopped"
    CONVERSATION_ITEM_CREATED = "conversation.item.created"
    INPUT_AUDIO_TRANSCRIPTION_COMPLETED = "conversation.item.input_audio_transcription.completed"
    AUDIO_TRANSCRIPT_DELTA = "response.audio_transcript.delta"
    FUNCTION_CALL_ARGUMENTS_DONE = "response.function_call_arguments.done"
    RESPONSE_DONE = "response.done"
    OUTPUT_ITEM_DONE = "response.output_item.done"


class ClientEventType(StrEnum):
    """Outbound event types sent over the data channel."""

    SESSION_UPDATE = "session.update"
    INPUT_AUDIO_BUFFER_CLEAR = "input_audio_buffer.clear"
    INPUT_AUDIO_BUFFER_COMMIT = "input_audio_buffer.commit"
    RESPONSE_CREATE = "response.create"
    RESPONSE_CANCEL = "response.cancel"
    OUTPUT_AUDIO_BUFFER_CLEAR = "output_audio_buffer.clear"
    CONVERSATION_ITEM_CREATE = "conversation.item.create"
