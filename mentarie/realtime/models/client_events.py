"""Outbound protocol event builders.

Client events are plain JSON envelopes ``{"type": ..., ...}``; these helpers
keep their shapes in one place.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field

from mentarie.realtime.models.enums import ClientEventType


class SessionConfig(BaseModel):
    """``session`` block of a ``session.update`` event.

    ``turn_detection`` is serialised even when ``None``: an explicit null
    disables server-side voice activity detection for push-to-talk.
    """

    modalities: list[str] = Field(default_factory=lambda: ["text", "audio"])
    instructions: str = ""
    voice: str = "sage"
    input_audio_transcription: dict[str, Any] | None = None
    turn_detection: dict[str, Any] | None = None
    tools: list[dict[str, Any]] = Field(default_factory=list)


def session_update(config: SessionConfig) -> dict[str, Any]:
    return {"type": ClientEventType.SESSION_UPDATE.value, "session": config.model_dump(mode="json")}


def input_audio_buffer_clear() -> dict[str, Any]:
    return {"type": ClientEventType.INPUT_AUDIO_BUFFER_CLEAR.value}


def input_audio_buffer_commit() -> dict[str, Any]:
    return {"type": ClientEventType.INPUT_AUDIO_BUFFER_COMMIT.value}


def response_create() -> dict[str, Any]:
    return {"type": ClientEventType.RESPONSE_CREATE.value}


def response_cancel() -> dict[str, Any]:
    return {"type": ClientEventType.RESPONSE_CANCEL.value}


def output_audio_buffer_clear() -> dict[str, Any]:
    return {"type": ClientEventType.OUTPUT_AUDIO_BUFFER_CLEAR.value}


def user_text_item(item_id: str, text: str) -> dict[str, Any]:
    """``conversation.item.create`` carrying typed user input."""
    return {
        "type": ClientEventType.CONVERSATION_ITEM_CREATE.value,
        "item": {
            "id": item_id,
            "type": "message",
            "role": "user",
            "content": [{"type": "input_text", "text": text}],
        },
    }


def function_call_output(call_id: str | None, output: Any) -> dict[str, Any]:
    """``conversation.item.create`` answering a function call.

    ``output`` is JSON-encoded into a string, as the protocol expects.
    """
    return {
        "type": ClientEventType.CONVERSATION_ITEM_CREATE.value,
        "item": {
            "type": "function_call_output",
            "call_id": call_id,
            "output": json.dumps(output),
        },
    }
