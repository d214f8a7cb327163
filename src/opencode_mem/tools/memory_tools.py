"""The `memory` tool exposed to the agent.

Search and list go to the claude-mem binary; clear is left to the
claude-mem CLI itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from opencode_mem.host import ToolDefinition

if TYPE_CHECKING:
    from opencode_mem.host import MemoryHooks

ACTIONS = ("search", "list", "clear")

MEMORY_TOOL_PARAMETERS = {
    "type": "object",
    "properties": {
        "query": {"type": "string", "description": "Free-text search query"},
        "action": {"type": "string", "enum": list(ACTIONS), "default": "search"},
    },
}


def get_memory_tools(hooks: MemoryHooks) -> dict[str, ToolDefinition]:
    """Return tool_name -> ToolDefinition for the host to register."""

    async def memory(
        query: str | None = None,
        action: str = "search",
        directory: str | None = None,
    ) -> str:
        """Search and manage persistent memory from OpenCode sessions"""
        return await hooks.memory_search(query=query, action=action, directory=directory)

    return {
        "memory": ToolDefinition(
            name="memory",
            description=memory.__doc__,
            parameters=MEMORY_TOOL_PARAMETERS,
            handler=memory,
        ),
    }
