"""Single-shot claude-mem subprocess runner.

Every invocation goes through ``BinaryRunner.run`` and comes back as a
``HookResult``: spawn errors, timeouts and non-zero exits never raise.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from opencode_mem.binary.base import Failure, HookResult, Success

logger = logging.getLogger(__name__)


@dataclass
class BinaryRunner:
    """Runs `<binary> <args...>` with optional stdin and a bounded timeout."""

    binary_path: Path
    timeout: float = 120.0
    cwd: str | None = None

    @property
    def exists(self) -> bool:
        return self.binary_path.is_file()

    async def run(
        self,
        args: list[str],
        *,
        stdin: str | None = None,
        timeout: float | None = None,
    ) -> HookResult:
        cmd = [str(self.binary_path), *args]
        timeout = timeout if timeout is not None else self.timeout

        logger.debug("Running: %s", " ".join(cmd[:3]) + (" ..." if len(cmd) > 3 else ""))

        try:
            result = await asyncio.to_thread(
                subprocess.run,
                cmd,
                input=stdin,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                cwd=self.cwd,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Failure(f"claude-mem timed out after {timeout:g}s")
        except FileNotFoundError:
            return Failure(f"claude-mem binary not found at {self.binary_path}")
        except OSError as e:
            return Failure(f"Failed to run claude-mem: {e}")

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            stdout = (result.stdout or "").strip()
            logger.debug("claude-mem exited rc=%d: %s", result.returncode, stderr[:200])
            return Failure(stderr or stdout or "Unknown error")

        return Success((result.stdout or "").strip())
