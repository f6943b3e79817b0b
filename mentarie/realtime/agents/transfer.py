"""``transferAgents`` tool injection."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from mentarie.realtime.models.agent import ToolDescriptor, ToolParameters
from mentarie.realtime.tools import TRANSFER_TOOL_NAME

if TYPE_CHECKING:
    from mentarie.realtime.models.agent import AgentConfig, AgentRef

_TRANSFER_DESCRIPTION = """\
Triggers a transfer of the user to a more specialized agent.
Calls escalate to a more specialized LLM agent with additional context.
Only call this function if one of the available agents is appropriate. Don't transfer to your own agent type.

Let the user know you're about to transfer them before doing so.

Available Agents:
{available}"""


def transfer_tool(downstream: Sequence[AgentRef]) -> ToolDescriptor:
    """Build the ``transferAgents`` descriptor for the given destinations."""
    available = "\n".join(f"- {ref.name}: {ref.public_description or 'No description'}" for ref in downstream)
    return ToolDescriptor(
        name=TRANSFER_TOOL_NAME,
        description=_TRANSFER_DESCRIPTION.format(available=available),
        parameters=ToolParameters(
            properties={
                "rationale_for_transfer": {
                    "type": "string",
                    "description": "The reasoning why this transfer is needed.",
                },
                "conversation_context": {
                    "type": "string",
                    "description": (
                        "Relevant context from the conversation that will help the recipient "
                        "perform the correct action."
                    ),
                },
                "destination_agent": {
                    "type": "string",
                    "description": "The more specialized destination_agent that should handle the user's request.",
                    "enum": [ref.name for ref in downstream],
                },
            },
            required=["rationale_for_transfer", "conversation_context", "destination_agent"],
        ),
    )


def inject_transfer_tools(agents: Sequence[AgentConfig]) -> list[AgentConfig]:
    """Return copies of ``agents`` with a ``transferAgents`` tool where needed.

    Only agents with downstream agents get the tool, and an agent that already
    advertises it is left alone.
    """
    result: list[AgentConfig] = []
    for agent in agents:
        has_tool = any(tool.name == TRANSFER_TOOL_NAME for tool in agent.tools)
        if agent.downstream_agents and not has_tool:
            agent = agent.model_copy(update={"tools": [*agent.tools, transfer_tool(agent.downstream_agents)]})
        result.append(agent)
    return result
