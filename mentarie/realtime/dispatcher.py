"""Inbound event dispatcher.

Decodes each raw data-channel message into a ``ServerEvent`` and applies its
effect to the transcript, the connection status, the audio-activity flag and
the tool router.  Messages are handled one at a time, synchronously, in
arrival order.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from loguru import logger
from pydantic import ValidationError

from mentarie.realtime.log import wire
from mentarie.realtime.models import (
    AudioTranscriptDelta,
    ConversationItem,
    ConversationItemCreated,
    FunctionCallArgumentsDone,
    InputAudioTranscriptionCompleted,
    OutputAudioBufferStarted,
    OutputAudioBufferStopped,
    OutputItemDone,
    ResponseDone,
    ServerEvent,
    SessionCreated,
    parse_server_event,
)
from mentarie.realtime.models.enums import ItemStatus, Role, SessionStatus
from mentarie.realtime.tools import FunctionCall

if TYPE_CHECKING:
    from mentarie.realtime.connection import ConnectionManager
    from mentarie.realtime.session_config import SessionConfigManager
    from mentarie.realtime.tools import ToolRouter
    from mentarie.realtime.transcript import TranscriptStore

TRANSCRIBING_PLACEHOLDER = "[Transcribing...]"
INAUDIBLE = "[inaudible]"


def count_words(text: str) -> int:
    return len(text.split())


class EventDispatcher:
    def __init__(
        self,
        transcript: TranscriptStore,
        connection: ConnectionManager,
        config_manager: SessionConfigManager,
        router: ToolRouter,
        *,
        settle_delay: float = 0.5,
        moderation_interval: int = 5,
        on_user_message_complete: Callable[[str], Any] | None = None,
        on_assistant_response_complete: Callable[[str], Any] | None = None,
        on_moderation: Callable[[str, str], Any] | None = None,
    ) -> None:
        self._transcript = transcript
        self._connection = connection
        self._config = config_manager
        self._router = router
        self._settle_delay = settle_delay
        self._moderation_interval = max(1, moderation_interval)
        self.on_user_message_complete = on_user_message_complete
        self.on_assistant_response_complete = on_assistant_response_complete
        self.on_moderation = on_moderation

        self._delta_buffers: dict[str, str] = {}
        self._moderated_buckets: dict[str, int] = {}
        self._completed_items: set[str] = set()
        self._pending_completions: dict[str, asyncio.TimerHandle] = {}
        self._hook_tasks: set[asyncio.Task[Any]] = set()

    # -- Entry points ----------------------------------------------------------

    def handle_message(self, raw: str) -> None:
        """Decode and dispatch one raw message.  Malformed input is dropped."""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Dropping malformed message ({}): {:.200}", e, raw)
            return
        if not isinstance(data, dict):
            logger.warning("Dropping non-object message: {:.200}", raw)
            return

        try:
            event = parse_server_event(data)
        except (ValidationError, ValueError) as e:
            logger.warning("Dropping invalid {} event: {}", data.get("type"), e)
            return

        wire.debug("<- {}", event.type)
        self.handle(event)

    def handle(self, event: ServerEvent) -> None:
        match event:
            case SessionCreated():
                self._connection.set_status(SessionStatus.CONNECTED)
            case OutputAudioBufferStarted():
                self._config.output_audio_active = True
            case OutputAudioBufferStopped():
                self._config.output_audio_active = False
            case ConversationItemCreated(item=item):
                self._on_item_created(item)
            case InputAudioTranscriptionCompleted():
                self._on_transcription_completed(event)
            case AudioTranscriptDelta():
                self._on_transcript_delta(event)
            case FunctionCallArgumentsDone():
                self._route(event.name, event.arguments, event.call_id)
            case ResponseDone():
                self._on_response_done(event)
            case OutputItemDone(item=item):
                self._on_output_item_done(item)
            case _:
                logger.trace("Ignoring event {}", event.type)

    def close(self) -> None:
        """Cancel completion hooks that have not fired yet and running async hooks."""
        for handle in self._pending_completions.values():
            handle.cancel()
        self._pending_completions.clear()
        for task in list(self._hook_tasks):
            task.cancel()

    # -- Conversation items ----------------------------------------------------

    def _on_item_created(self, item: ConversationItem) -> None:
        if not item.id or item.role is None or item.type not in (None, "message"):
            return
        if self._transcript.has_message(item.id):
            logger.debug("Item {} already in transcript", item.id)
            return

        text = item.first_text()
        if item.role == Role.USER and not text:
            text = TRANSCRIBING_PLACEHOLDER
        self._transcript.add_message(item.id, item.role, text)

    def _on_transcription_completed(self, event: InputAudioTranscriptionCompleted) -> None:
        if not event.item_id:
            return
        transcript = event.transcript or ""
        text = INAUDIBLE if transcript in ("", "\n") else transcript
        self._transcript.update_message(event.item_id, text, append=False)
        self._transcript.update_item(event.item_id, status=ItemStatus.DONE)

        if text != INAUDIBLE and self.on_user_message_complete:
            self._call_hook(self.on_user_message_complete, text)

    def _on_transcript_delta(self, event: AudioTranscriptDelta) -> None:
        if not event.item_id or not event.delta:
            return
        self._transcript.update_message(event.item_id, event.delta, append=True)

        buffered = self._delta_buffers.get(event.item_id, "") + event.delta
        self._delta_buffers[event.item_id] = buffered
        bucket = count_words(buffered) // self._moderation_interval
        if bucket > self._moderated_buckets.get(event.item_id, 0):
            self._moderated_buckets[event.item_id] = bucket
            self._moderate(event.item_id, buffered)

    def _on_response_done(self, event: ResponseDone) -> None:
        for item in event.response.output:
            if item.type == "function_call":
                self._route(item.name, item.arguments, item.call_id)
            elif item.type == "message" and item.role == Role.ASSISTANT and item.status == "completed":
                self._moderate(item.id or "", item.first_text())

    def _on_output_item_done(self, item: ConversationItem) -> None:
        if not item.id:
            return
        self._transcript.update_item(item.id, status=ItemStatus.DONE)

        if item.type not in (None, "message") or item.role != Role.ASSISTANT:
            return
        text = item.first_text()
        if not text:
            stored = self._transcript.get(item.id)
            text = stored.text if stored else ""
        if text and self.on_assistant_response_complete:
            self._schedule_completion(item.id, text)

    # -- Hooks -----------------------------------------------------------------

    def _route(self, name: str | None, arguments: str | None, call_id: str | None) -> None:
        if not name:
            logger.warning("Function call without a name (call_id={})", call_id)
            return
        self._router.submit(FunctionCall(name=name, arguments=arguments, call_id=call_id))

    def _moderate(self, item_id: str, text: str) -> None:
        if self.on_moderation and text:
            self._call_hook(self.on_moderation, item_id, text)

    def _schedule_completion(self, item_id: str, text: str) -> None:
        if item_id in self._completed_items:
            return
        self._completed_items.add(item_id)
        loop = asyncio.get_running_loop()
        self._pending_completions[item_id] = loop.call_later(
            self._settle_delay, self._fire_completion, item_id, text
        )

    def _fire_completion(self, item_id: str, text: str) -> None:
        self._pending_completions.pop(item_id, None)
        if self.on_assistant_response_complete:
            self._call_hook(self.on_assistant_response_complete, text)

    def _call_hook(self, hook: Callable[..., Any], *args: Any) -> None:
        name = getattr(hook, "__name__", repr(hook))
        try:
            result = hook(*args)
        except Exception:
            logger.exception("Session hook {} failed", name)
            return
        if asyncio.iscoroutine(result):
            task = asyncio.create_task(result, name=f"hook:{name}")
            self._hook_tasks.add(task)
            task.add_done_callback(self._hook_done)

    def _hook_done(self, task: asyncio.Task[Any]) -> None:
        self._hook_tasks.discard(task)
        if task.cancelled():
            return
        if exc := task.exception():
            logger.opt(exception=exc).error("Session hook {} failed", task.get_name().removeprefix("hook:"))
