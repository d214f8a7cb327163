"""Reconcile the installed claude-mem binary with the latest published release.

    probe installed ──► locate latest ──► equal? ──► done (True)
                              │              │
                         not found        differ / absent
                              │              │
                   keep what we have      install ──► ok: True
                  (True iff installed)       │
                                          failed: True iff old binary still there
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from opencode_mem.binary.base import Failure
from opencode_mem.binary.installer import BinaryInstaller
from opencode_mem.binary.process import BinaryRunner
from opencode_mem.binary.prober import VersionProber
from opencode_mem.binary.release import ReleaseLocator

if TYPE_CHECKING:
    from opencode_mem.config import MemConfig
    from opencode_mem.platforms import PlatformKey

logger = logging.getLogger(__name__)


@dataclass
class BinaryUpdater:
    """Keeps the binary at the published version.

    The check is plain inequality, not "is newer": a local build that is
    ahead of the published tag gets replaced by the published one.
    """

    prober: VersionProber
    locator: ReleaseLocator
    installer: BinaryInstaller
    platform_key: PlatformKey

    @classmethod
    def from_config(cls, config: MemConfig, platform_key: PlatformKey) -> BinaryUpdater:
        runner = BinaryRunner(config.binary.path, timeout=config.binary.timeout)
        return cls(
            prober=VersionProber(runner, timeout=config.binary.version_timeout),
            locator=ReleaseLocator(
                url=config.release.url,
                user_agent=config.release.user_agent,
                timeout=config.release.timeout,
            ),
            installer=BinaryInstaller(
                config.binary.path,
                user_agent=config.release.user_agent,
                timeout=config.release.download_timeout,
            ),
            platform_key=platform_key,
        )

    async def reconcile(self) -> bool:
        """Install or update the binary. Returns True if a usable binary is believed present."""
        current = await self.prober.probe()
        latest = await self.locator.locate(self.platform_key)

        if latest is None:
            logger.warning("Could not check for latest claude-mem version")
            return current is not None

        if current is not None and latest.version == current:
            logger.debug("claude-mem %s is up to date", current)
            return True

        logger.info("Updating claude-mem from %s to %s", current or "none", latest.version)
        result = await self.installer.install(latest.download_url)
        if isinstance(result, Failure):
            logger.error("Failed to download claude-mem: %s", result.error, extra={"error": result.error})
            return current is not None

        logger.info("Installed claude-mem %s (%s)", latest.version, self.platform_key.artifact_name)
        return True
