"""Tool / function call router.

Maps model-issued function calls to local handlers.  Lookup is tiered:

1. the active agent's ``tool_logic`` (called with args and the transcript),
2. ``transferAgents`` -- switch the active agent,
3. the generic name -> handler registry,
4. anything else is answered with a stub ``{"result": true}``.

Tier 4 keeps the remote turn-taking protocol moving when the model names a
tool nobody registered.  The price is that a missing registration looks like
success to the model; the router logs a warning every time it happens.

Each call runs as its own task.  Finished calls land on a completion queue
and are emitted in completion order -- two calls in flight may be answered
in either order.
"""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from loguru import logger

from mentarie.realtime.models import client_events

if TYPE_CHECKING:
    from mentarie.realtime.models.agent import ToolHandler
    from mentarie.realtime.registry import AgentRegistry
    from mentarie.realtime.transcript import TranscriptStore

TRANSFER_TOOL_NAME = "transferAgents"


@dataclass
class FunctionCall:
    name: str
    arguments: str | None = None
    call_id: str | None = None


@dataclass
class ToolOutcome:
    """Result of one call, waiting on the completion queue."""

    call_id: str | None
    name: str
    output: Any
    follow_up: bool = True
    """Send ``response.create`` after the output."""

    after_emit: Callable[[], Any] | None = field(default=None, repr=False)
    """Runs once the output has been handed to the send path."""


def parse_arguments(raw: str | None) -> dict[str, Any]:
    """Decode a call's JSON arguments.  Raises ``ValueError`` if malformed."""
    if not raw:
        return {}
    args = json.loads(raw)
    if not isinstance(args, dict):
        msg = f"Function arguments must be a JSON object, got {type(args).__name__}"
        raise ValueError(msg)  # noqa: TRY004
    return args


class ToolRouter:
    def __init__(
        self,
        agents: AgentRegistry,
        transcript: TranscriptStore,
        send: Callable[[dict[str, Any]], None],
        functions: Mapping[str, ToolHandler] | None = None,
    ) -> None:
        self._agents = agents
        self._transcript = transcript
        self._send = send
        self.functions: dict[str, ToolHandler] = dict(functions or {})
        self._completions: asyncio.Queue[ToolOutcome] = asyncio.Queue()
        self._tasks: set[asyncio.Task[ToolOutcome]] = set()
        self._seen_calls: set[str] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    # -- Submission ------------------------------------------------------------

    def submit(self, call: FunctionCall) -> asyncio.Task[ToolOutcome] | None:
        """Start handling ``call``.

        Returns ``None`` when the call is dropped: its ``call_id`` was already
        routed, or its arguments are not valid JSON.
        """
        if call.call_id:
            if call.call_id in self._seen_calls:
                logger.debug("Function call {} ({}) already routed", call.call_id, call.name)
                return None
            self._seen_calls.add(call.call_id)

        try:
            args = parse_arguments(call.arguments)
        except ValueError as e:
            logger.warning("Dropping function call {} ({}): malformed arguments: {}", call.name, call.call_id, e)
            return None

        logger.info("Function call {} (call_id={}) args={}", call.name, call.call_id, args)
        task = asyncio.create_task(self._run(call, args), name=f"tool:{call.name}")
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[ToolOutcome]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        if exc := task.exception():
            logger.opt(exception=exc).error("Tool task {} crashed", task.get_name())
            return
        self._completions.put_nowait(task.result())

    # -- Routing ---------------------------------------------------------------

    async def _run(self, call: FunctionCall, args: dict[str, Any]) -> ToolOutcome:
        agent = self._agents.active

        handler = agent.tool_logic.get(call.name)
        if handler is not None:
            output = await self._invoke(call.name, handler, args, self._transcript.items)
            return ToolOutcome(call.call_id, call.name, output)

        if call.name == TRANSFER_TOOL_NAME:
            return self._transfer(call, args)

        handler = self.functions.get(call.name)
        if handler is not None:
            output = await self._invoke(call.name, handler, args)
            return ToolOutcome(call.call_id, call.name, {"status": "ok"} if output is None else output)

        logger.warning("Function {} not found in any registry; answering with stub result", call.name)
        return ToolOutcome(call.call_id, call.name, {"result": True})

    def _transfer(self, call: FunctionCall, args: dict[str, Any]) -> ToolOutcome:
        destination = args.get("destination_agent")
        did_transfer = isinstance(destination, str) and destination in self._agents

        def _swap() -> None:
            if did_transfer:
                self._agents.set_active(destination)
                self._transcript.add_breadcrumb(
                    f"Agent transfer: {destination}",
                    {"destination_agent": destination, "rationale": args.get("rationale_for_transfer")},
                )

        if not did_transfer:
            logger.warning("Transfer requested to unknown agent {}", destination)
        return ToolOutcome(
            call.call_id,
            call.name,
            {"destination_agent": destination, "did_transfer": did_transfer},
            follow_up=False,
            after_emit=_swap,
        )

    async def _invoke(self, name: str, handler: ToolHandler, *params: Any) -> Any:
        try:
            result = handler(*params)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.exception("Error executing function {}", name)
            return {"status": "error", "error": str(e)}
        return result

    # -- Completion ------------------------------------------------------------

    def _emit(self, outcome: ToolOutcome) -> None:
        self._send(client_events.function_call_output(outcome.call_id, outcome.output))
        if outcome.follow_up:
            self._send(client_events.response_create())
        if outcome.after_emit is not None:
            outcome.after_emit()

    def emit_completed(self) -> int:
        """Emit every finished call currently queued.  Returns how many."""
        count = 0
        while not self._completions.empty():
            self._emit(self._completions.get_nowait())
            count += 1
        return count

    async def serve(self) -> None:
        """Emit completions as they arrive.  Runs until cancelled."""
        while True:
            outcome = await self._completions.get()
            self._emit(outcome)

    async def join(self) -> None:
        """Wait for all in-flight calls, then emit their results."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self.emit_completed()

    async def cancel_all(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
