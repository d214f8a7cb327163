"""Host-facing types: what the tool runner hands us and what we fill in."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass
class SystemPromptOutput:
    """Output of session start / system transform: lines appended to the system prompt."""

    system: list[str] = field(default_factory=list)


@dataclass
class CompactionOutput:
    """Output of session compaction: extra context kept across the compaction."""

    context: list[str] = field(default_factory=list)


@dataclass
class ToolExecution:
    """A finished tool call reported by the host."""

    tool: str
    args: dict[str, Any] = field(default_factory=dict)
    output: str = ""
    session_id: str | None = None
    call_id: str | None = None


@dataclass
class ToolDefinition:
    """Custom tool the host exposes to the agent, handled by this plugin."""

    name: str
    description: str
    parameters: dict[str, Any]
    handler: Callable[..., Awaitable[str]]


# Host log callback: receives {"service", "level", "message", "extra"}
HostLog = Callable[[dict[str, Any]], Any]


@runtime_checkable
class MemoryHooks(Protocol):
    """Capability interface a memory plugin offers to the host."""

    async def on_session_start(self, output: SystemPromptOutput) -> None:
        """Inject remembered context into a new session."""
        ...

    async def on_tool_executed(self, event: ToolExecution) -> None:
        """Record a completed tool call. Must not delay the host."""
        ...

    async def on_session_idle(self, output: CompactionOutput) -> None:
        """Add a session summary to the compaction context."""
        ...

    async def memory_search(
        self,
        query: str | None = None,
        action: str = "search",
        directory: str | None = None,
    ) -> str:
        """Search or list memories; returns text for the agent."""
        ...
