"""Agent configuration models.

An agent is a named bundle of instructions and callable tools governing model
behaviour.  Agent sets are loaded once at session start; only the active-agent
pointer (see ``mentarie.realtime.registry``) changes afterwards.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ToolHandler = Callable[..., Any]
"""Local tool logic: ``handler(args, transcript)``, sync or async."""


class ToolParameters(BaseModel):
    """JSON-schema object describing a tool's arguments."""

    model_config = ConfigDict(extra="allow")

    type: str = "object"
    properties: dict[str, dict[str, Any]] = Field(default_factory=dict)
    required: list[str] | None = None
    additionalProperties: bool | None = None  # noqa: N815


class ToolDescriptor(BaseModel):
    """Function descriptor advertised to the model in ``session.update``."""

    type: Literal["function"] = "function"
    name: str
    description: str
    parameters: ToolParameters = Field(default_factory=ToolParameters)


class AgentRef(BaseModel):
    """Reference to an agent reachable through ``transferAgents``."""

    name: str
    public_description: str


class AgentConfig(BaseModel):
    """Full agent definition."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    public_description: str = ""
    instructions: str
    tools: list[ToolDescriptor] = Field(default_factory=list)
    tool_logic: dict[str, ToolHandler] = Field(default_factory=dict)
    downstream_agents: list[AgentRef] = Field(default_factory=list)

    def wire_tools(self) -> list[dict[str, Any]]:
        """Tool descriptors as sent over the wire."""
        return [tool.model_dump(mode="json", exclude_none=True) for tool in self.tools]
