"""In-process agent registry.

Holds the fixed agent set loaded at session start and the single mutable
active-agent pointer.  Ephemeral -- rebuilt for every session.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from mentarie.realtime.models.agent import AgentConfig

AgentChangeListener = Callable[["AgentConfig"], None]


class AgentRegistry:
    """Configured agent set plus the active-agent pointer.

    The pointer changes only through ``set_active`` (called by the tool router
    when handling ``transferAgents``); listeners are told about every change.
    """

    def __init__(self, agents: Sequence[AgentConfig], active: str | None = None) -> None:
        if not agents:
            msg = "Agent set must contain at least one agent"
            raise ValueError(msg)
        self._agents: dict[str, AgentConfig] = {agent.name: agent for agent in agents}
        if active is not None and active not in self._agents:
            msg = f"Unknown agent '{active}'"
            raise LookupError(msg)
        self._active = active or agents[0].name
        self._listeners: list[AgentChangeListener] = []

    # -- Query -----------------------------------------------------------------

    @property
    def active(self) -> AgentConfig:
        return self._agents[self._active]

    @property
    def active_name(self) -> str:
        return self._active

    def get(self, name: str) -> AgentConfig | None:
        return self._agents.get(name)

    def names(self) -> list[str]:
        return list(self._agents)

    def __contains__(self, name: object) -> bool:
        return name in self._agents

    # -- Mutation --------------------------------------------------------------

    def set_active(self, name: str) -> bool:
        """Point at agent ``name``.  Returns ``False`` if it is not configured."""
        agent = self._agents.get(name)
        if agent is None:
            logger.warning("Registry: unknown agent {}, keeping {}", name, self._active)
            return False
        if name == self._active:
            return True
        logger.info("Registry: active agent {} -> {}", self._active, name)
        self._active = name
        for listener in list(self._listeners):
            listener(agent)
        return True

    def subscribe(self, listener: AgentChangeListener) -> None:
        self._listeners.append(listener)
