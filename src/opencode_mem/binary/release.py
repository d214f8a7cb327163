"""Latest published claude-mem release (GitHub releases API)."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import aiohttp

from opencode_mem.binary.base import ReleaseInfo
from opencode_mem.platforms import PlatformKey

logger = logging.getLogger(__name__)


def parse_release(data: dict, artifact_name: str) -> ReleaseInfo | None:
    """Pick the asset for ``artifact_name`` out of a release JSON document."""
    tag = data.get("tag_name")
    if not isinstance(tag, str) or not tag:
        return None

    assets = data.get("assets")
    if not isinstance(assets, list):
        return None

    for asset in assets:
        if not isinstance(asset, dict):
            continue
        if asset.get("name") == artifact_name and asset.get("browser_download_url"):
            return ReleaseInfo(
                version=tag.removeprefix("v"),
                download_url=asset["browser_download_url"],
            )
    return None


@dataclass
class ReleaseLocator:
    """One GET against the release index; every failure collapses to None."""

    url: str
    user_agent: str = "opencode-mem"
    timeout: float = 30.0

    async def locate(self, platform_key: PlatformKey) -> ReleaseInfo | None:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/vnd.github+json",
        }
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                async with session.get(self.url, headers=headers) as response:
                    if response.status >= 300:
                        logger.warning(
                            "Release index returned HTTP %d for %s", response.status, self.url
                        )
                        return None
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("Release lookup failed: %s", str(e) or type(e).__name__)
            return None
        except ValueError as e:
            logger.warning("Release index returned invalid JSON: %s", e)
            return None

        if not isinstance(data, dict):
            logger.warning("Release index returned unexpected payload: %s", type(data).__name__)
            return None

        release = parse_release(data, platform_key.artifact_name)
        if release is None:
            logger.warning(
                "No %s asset in latest release (%s)",
                platform_key.artifact_name,
                data.get("tag_name", "?"),
            )
        return release
