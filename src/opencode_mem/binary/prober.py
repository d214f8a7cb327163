"""Installed claude-mem version."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from opencode_mem.binary.base import Failure
from opencode_mem.binary.process import BinaryRunner

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"v?(\d+\.\d+\.\d+)")


def parse_version(text: str) -> str | None:
    """Extract "major.minor.patch" from arbitrary output (leading "v" dropped)."""
    match = _VERSION_RE.search(text)
    return match.group(1) if match else None


@dataclass
class VersionProber:
    """Asks the installed binary for its version.

    Missing and broken binaries both come back as None; either way the fix
    is a reinstall.
    """

    runner: BinaryRunner
    timeout: float = 30.0

    async def probe(self) -> str | None:
        if not self.runner.exists:
            return None

        result = await self.runner.run(["version"], timeout=self.timeout)
        if isinstance(result, Failure):
            logger.debug("Version probe failed: %s", result.error)
            return None

        version = parse_version(result.data)
        if version is None:
            logger.debug("Unparsable version output: %r", result.data[:100])
        return version
