"""MemoryPlugin: dispatches host lifecycle events to the claude-mem binary.

Responsibilities:
1. Binary provisioning: block only when no binary exists at all, otherwise
   reconcile in the background
2. Session context: fetch once per session (awaited), then serve the cache
   and refresh it in the background
3. Tool persistence: fire-and-forget save after every tool call
4. Compaction: synchronous summary appended to the compaction context
5. Memory tool: search / list passthrough, clear redirected to the CLI

One instance per host attachment; all state lives on the instance.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from opencode_mem.binary import protocol as hooks
from opencode_mem.binary.base import Failure, HookResult, Success
from opencode_mem.binary.process import BinaryRunner
from opencode_mem.binary.protocol import HookRequest, get_protocol
from opencode_mem.binary.updater import BinaryUpdater
from opencode_mem.config import MemConfig
from opencode_mem.host import (
    CompactionOutput,
    SystemPromptOutput,
    ToolDefinition,
    ToolExecution,
)
from opencode_mem.platforms import PlatformKey, resolve_platform

logger = logging.getLogger(__name__)

CLEAR_MESSAGE = "Use the claude-mem CLI to clear memory"


class SessionState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    BINARY_CHECKED = "binary_checked"
    CONTEXT_LOADED = "context_loaded"


@dataclass
class SessionCache:
    """Per-instance flags and the cached session context."""

    binary_present: bool = False
    binary_checked: bool = False
    context_loaded: bool = False
    cached_context: str | None = None

    @property
    def state(self) -> SessionState:
        if self.context_loaded:
            return SessionState.CONTEXT_LOADED
        if self.binary_checked:
            return SessionState.BINARY_CHECKED
        return SessionState.UNINITIALIZED


class MemoryPlugin:
    """Host-facing memory plugin backed by the claude-mem binary."""

    def __init__(
        self,
        config: MemConfig,
        directory: str,
        *,
        runner: BinaryRunner | None = None,
        updater: BinaryUpdater | None = None,
        platform_key: PlatformKey | None = None,
    ) -> None:
        self.config = config
        self.directory = directory
        # Raises UnsupportedPlatformError: no fallback for an unknown platform
        self.platform_key = platform_key or resolve_platform()
        self.runner = runner or BinaryRunner(
            config.binary.path, timeout=config.binary.timeout, cwd=directory
        )
        self.updater = updater or BinaryUpdater.from_config(config, self.platform_key)
        self.protocol = get_protocol(config.binary.protocol)
        self.session = SessionCache()
        self._tasks: set[asyncio.Task] = set()
        self._refresh_task: asyncio.Task | None = None

    # ── Host surface ─────────────────────────────────────────

    def hook_map(self) -> dict[str, Callable[..., Coroutine[Any, Any, Any]]]:
        """Host event name -> handler."""
        return {
            "session.created": self.on_session_start,
            "experimental.chat.system.transform": self.on_session_start,
            "tool.execute.after": self.on_tool_executed,
            "experimental.session.compacting": self.on_session_idle,
            "session.idle": self.on_session_idle,
        }

    def tools(self) -> dict[str, ToolDefinition]:
        from opencode_mem.tools.memory_tools import get_memory_tools

        return get_memory_tools(self)

    async def on_session_start(self, output: SystemPromptOutput) -> None:
        if not await self._ensure_binary():
            return

        if not self.session.context_loaded:
            result = await self._invoke(HookRequest(hooks.CONTEXT, self.directory))
            if isinstance(result, Failure):
                logger.error("Failed to get context: %s", result.error, extra={"error": result.error})
                self.session.cached_context = None
            else:
                self.session.cached_context = result.data or None
            self.session.context_loaded = True
        else:
            self._start_refresh()

        if self.session.cached_context:
            output.system.append(self.session.cached_context)

    async def on_tool_executed(self, event: ToolExecution) -> None:
        if not self._binary_available():
            return

        limit = self.config.save_result_max_chars
        request = HookRequest(
            hooks.SAVE,
            self.directory,
            session_id=event.session_id,
            tool_name=event.tool,
            tool_input=event.args or {},
            tool_response=(event.output or "")[:limit],
        )
        self._spawn(self._save(request), name=f"save:{event.tool}")

    async def on_session_idle(self, output: CompactionOutput | None = None) -> None:
        if not self._binary_available():
            return

        result = await self._invoke(HookRequest(hooks.SUMMARY, self.directory))
        if isinstance(result, Failure):
            logger.error("Failed to get summary: %s", result.error, extra={"error": result.error})
            return

        if output is not None and result.data:
            output.context.append(result.data)

    async def memory_search(
        self,
        query: str | None = None,
        action: str = "search",
        directory: str | None = None,
    ) -> str:
        project = directory or self.directory

        if action == "clear":
            return CLEAR_MESSAGE

        if action == "search" and query:
            result = await self._invoke(HookRequest(hooks.SEARCH, project, query=query))
            if isinstance(result, Failure):
                return f"Error searching memory: {result.error}"
            return result.data or "No results found"

        # search without a query lists everything
        if action in ("search", "list"):
            result = await self._invoke(HookRequest(hooks.LIST, project))
            if isinstance(result, Failure):
                return f"Error listing memory: {result.error}"
            return result.data or "No memories found"

        return f"Unknown action: {action}"

    async def close(self) -> None:
        """Wait for outstanding background work (reconcile, saves, refreshes)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ── Binary provisioning ──────────────────────────────────

    def _binary_available(self) -> bool:
        if self.session.binary_checked:
            return self.session.binary_present
        return self.runner.exists

    async def _ensure_binary(self) -> bool:
        if self.session.binary_checked:
            return self.session.binary_present

        if self.runner.exists:
            self.session.binary_present = True
            self._spawn(self.updater.reconcile(), name="reconcile")
        else:
            logger.info("claude-mem not installed, installing")
            self.session.binary_present = await self.updater.reconcile()

        self.session.binary_checked = True
        return self.session.binary_present

    # ── Hook invocation ──────────────────────────────────────

    async def _invoke(self, request: HookRequest) -> HookResult:
        args, stdin = self.protocol.build(request)
        result = await self.runner.run(args, stdin=stdin)
        if isinstance(result, Success):
            return Success(self.protocol.decode(result.data))
        return result

    async def _save(self, request: HookRequest) -> None:
        result = await self._invoke(request)
        if isinstance(result, Failure):
            logger.warning("Failed to save %s result: %s", request.tool_name, result.error)

    def _start_refresh(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        self._refresh_task = self._spawn(self._refresh_context(), name="refresh-context")

    async def _refresh_context(self) -> None:
        result = await self._invoke(HookRequest(hooks.CONTEXT, self.directory))
        if isinstance(result, Failure):
            logger.warning("Background context refresh failed: %s", result.error)
            return
        self.session.cached_context = result.data or None

    # ── Background tasks ─────────────────────────────────────

    def _spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task %s failed: %s", task.get_name(), exc)
