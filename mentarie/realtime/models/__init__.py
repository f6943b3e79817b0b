"""Data models for the realtime runtime."""

from mentarie.realtime.models.agent import AgentConfig, AgentRef, ToolDescriptor, ToolHandler, ToolParameters
from mentarie.realtime.models.client_events import SessionConfig
from mentarie.realtime.models.enums import (
    ClientEventType,
    ItemKind,
    ItemStatus,
    Role,
    ServerEventType,
    SessionStatus,
)
from mentarie.realtime.models.events import (
    AudioTranscriptDelta,
    ContentPart,
    ConversationItem,
    ConversationItemCreated,
    FunctionCallArgumentsDone,
    InputAudioTranscriptionCompleted,
    OutputAudioBufferStarted,
    OutputAudioBufferStopped,
    OutputItemDone,
    ResponseDone,
    ResponsePayload,
    ServerEvent,
    SessionCreated,
    UnknownServerEvent,
    parse_server_event,
)
from mentarie.realtime.models.transcript import TranscriptItem

__all__ = [
    # Agent
    "AgentConfig",
    "AgentRef",
    # Events
    "AudioTranscriptDelta",
    # Enums
    "ClientEventType",
    "ContentPart",
    "ConversationItem",
    "ConversationItemCreated",
    "FunctionCallArgumentsDone",
    "InputAudioTranscriptionCompleted",
    "ItemKind",
    "ItemStatus",
    "OutputAudioBufferStarted",
    "OutputAudioBufferStopped",
    "OutputItemDone",
    "ResponseDone",
    "ResponsePayload",
    "Role",
    "ServerEvent",
    "ServerEventType",
    # Session
    "SessionConfig",
    "SessionCreated",
    "SessionStatus",
    "ToolDescriptor",
    "ToolHandler",
    "ToolParameters",
    # Transcript
    "TranscriptItem",
    "UnknownServerEvent",
    "parse_server_event",
]
