"""Download a claude-mem build onto the binary path.

Best effort: no temp file or atomic rename. A half-written binary fails the
next version probe and gets overwritten on the next reconcile.
"""

from __future__ import annotations

import asyncio
import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path

import aiohttp

from opencode_mem.binary.base import Failure, HookResult, Success

logger = logging.getLogger(__name__)

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


@dataclass
class BinaryInstaller:
    """mkdir -> GET -> write -> chmod +x, stopping at the first failure."""

    binary_path: Path
    user_agent: str = "opencode-mem"
    timeout: float = 300.0

    async def install(self, url: str) -> HookResult:
        try:
            self.binary_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Failure(f"Failed to create bin directory: {e}")

        try:
            payload = await self._fetch(url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            return Failure(f"Download failed: {str(e) or type(e).__name__}")
        if isinstance(payload, Failure):
            return payload

        try:
            self.binary_path.write_bytes(payload)
        except OSError as e:
            return Failure(f"Failed to write binary: {e}")

        try:
            mode = self.binary_path.stat().st_mode
            os.chmod(self.binary_path, mode | _EXEC_BITS)
        except OSError as e:
            return Failure(f"Failed to make binary executable: {e}")

        logger.debug("Wrote %d bytes to %s", len(payload), self.binary_path)
        return Success(str(self.binary_path))

    async def _fetch(self, url: str) -> bytes | Failure:
        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers={"User-Agent": self.user_agent},
        ) as session:
            async with session.get(url) as response:
                if response.status >= 300:
                    return Failure(f"HTTP {response.status}")
                return await response.read()
