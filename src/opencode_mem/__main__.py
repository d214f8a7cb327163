"""Entry point: python -m opencode_mem <command>

- "update":        Reconcile the claude-mem binary with the latest release
- "version":       Print the installed claude-mem version
- "search QUERY":  Search memories for the current directory
- "list":          List memories for the current directory
"""

from __future__ import annotations

import asyncio
import os
import sys

from opencode_mem.config import load_config
from opencode_mem.log import setup_logging

USAGE = """\
Usage: python -m opencode_mem [update|version|search QUERY|list]
  update        : Install or update the claude-mem binary
  version       : Print the installed claude-mem version
  search QUERY  : Search memories for the current directory
  list          : List memories for the current directory"""


def _build_plugin():
    from opencode_mem.plugin import MemoryPlugin

    config = load_config()
    setup_logging(config.log_level)
    return MemoryPlugin(config, os.getcwd())


async def _update() -> int:
    plugin = _build_plugin()
    ok = await plugin.updater.reconcile()
    return 0 if ok else 1


async def _version() -> int:
    plugin = _build_plugin()
    version = await plugin.updater.prober.probe()
    print(version or "not installed")
    return 0 if version else 1


async def _memory(action: str, query: str | None = None) -> int:
    plugin = _build_plugin()
    print(await plugin.memory_search(query=query, action=action))
    return 0


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""

    if cmd == "update":
        code = asyncio.run(_update())
    elif cmd == "version":
        code = asyncio.run(_version())
    elif cmd == "search" and len(sys.argv) > 2:
        code = asyncio.run(_memory("search", " ".join(sys.argv[2:])))
    elif cmd == "list":
        code = asyncio.run(_memory("list"))
    else:
        print(USAGE)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
