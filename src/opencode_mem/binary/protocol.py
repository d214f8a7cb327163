"""Hook request encodings: argv form and stdio-JSON form (no I/O).

A dispatcher talks to the binary through exactly one of these:

- ``ArgsProtocol``:  everything on the command line, stdout is plain text
- ``StdioProtocol``: a JSON object on stdin, a JSON object on stdout:
    {"continue": true, "systemMessage": "...",
     "hookSpecificOutput": {"additionalContext": "..."}}
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Protocol

from opencode_mem.errors import ConfigError

# Hook events understood by claude-mem
CONTEXT = "context"
SAVE = "save"
SUMMARY = "summary"
SEARCH = "search"
LIST = "list"

_HOOK_EVENTS = (CONTEXT, SAVE, SUMMARY)


@dataclass
class HookRequest:
    """One invocation of the binary, independent of wire format."""

    event: str
    cwd: str
    session_id: str | None = None
    tool_name: str | None = None
    tool_input: dict[str, Any] | None = None
    tool_response: str | None = None
    query: str | None = None

    @property
    def command(self) -> str:
        return f"hook:{self.event}" if self.event in _HOOK_EVENTS else self.event


@dataclass
class HookOutput:
    """Parsed stdout of a stdio-JSON hook."""

    continue_: bool = True
    system_message: str | None = None
    additional_context: str | None = None

    @property
    def text(self) -> str:
        return self.additional_context or self.system_message or ""


# ── Formatting / parsing ──────────────────────────────────────


def format_hook_input(request: HookRequest) -> str:
    """Serialize a request as the stdin JSON object (null fields omitted)."""
    payload: dict[str, Any] = {"cwd": request.cwd}
    for key in ("session_id", "tool_name", "tool_input", "tool_response", "query"):
        value = getattr(request, key)
        if value is not None:
            payload[key] = value
    return json.dumps(payload, ensure_ascii=False, default=str)


def parse_hook_output(text: str) -> HookOutput:
    """Parse the binary's stdout JSON. Raises ValueError on anything else."""
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

    specific = data.get("hookSpecificOutput") or {}
    return HookOutput(
        continue_=bool(data.get("continue", True)),
        system_message=data.get("systemMessage"),
        additional_context=specific.get("additionalContext") if isinstance(specific, dict) else None,
    )


# ── Protocols ─────────────────────────────────────────────────


class HookProtocol(Protocol):
    """Turns a HookRequest into (argv, stdin) and stdout back into text."""

    @property
    def name(self) -> str: ...

    def build(self, request: HookRequest) -> tuple[list[str], str | None]: ...

    def decode(self, stdout: str) -> str: ...


class ArgsProtocol:
    """`claude-mem hook:save --project <dir> --tool <name> ...`"""

    @property
    def name(self) -> str:
        return "args"

    def build(self, request: HookRequest) -> tuple[list[str], str | None]:
        args = [request.command]

        if request.event == SEARCH:
            args.extend(["--query", request.query or ""])
        args.extend(["--project", request.cwd])

        if request.event == SAVE:
            args.extend(["--tool", request.tool_name or ""])
            args.extend(["--args", json.dumps(request.tool_input or {}, default=str)])
            args.extend(["--result", request.tool_response or ""])

        return args, None

    def decode(self, stdout: str) -> str:
        return stdout


class StdioProtocol:
    """`claude-mem hook:save` with the request as a JSON object on stdin."""

    @property
    def name(self) -> str:
        return "stdio"

    def build(self, request: HookRequest) -> tuple[list[str], str | None]:
        return [request.command], format_hook_input(request)

    def decode(self, stdout: str) -> str:
        if not stdout:
            return ""
        try:
            return parse_hook_output(stdout).text
        except ValueError:
            # Not JSON: the binary printed plain text (e.g. search results)
            return stdout


def get_protocol(name: str) -> HookProtocol:
    if name == "args":
        return ArgsProtocol()
    if name == "stdio":
        return StdioProtocol()
    raise ConfigError(f"Unknown hook protocol: {name}")
