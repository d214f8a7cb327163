"""Map the running OS/CPU to the claude-mem release artifact name."""

from __future__ import annotations

import platform
from dataclasses import dataclass

from opencode_mem.errors import UnsupportedPlatformError

ARTIFACT_PREFIX = "claude-mem"

_ARM64 = {"arm64", "aarch64"}
_SUPPORTED_SYSTEMS = {"darwin", "linux"}


@dataclass(frozen=True)
class PlatformKey:
    """(os, arch) pair as published on the release page."""

    os: str
    arch: str

    @property
    def artifact_name(self) -> str:
        return f"{ARTIFACT_PREFIX}-{self.os}-{self.arch}"


def resolve_platform(system: str | None = None, machine: str | None = None) -> PlatformKey:
    """Resolve the current platform, or raise UnsupportedPlatformError.

    Any non-arm64 CPU on a supported OS gets the x64 build.
    """
    system = system if system is not None else platform.system()
    machine = machine if machine is not None else platform.machine()

    os_name = system.lower()
    if os_name not in _SUPPORTED_SYSTEMS:
        raise UnsupportedPlatformError(system, machine)

    arch = "arm64" if machine.lower() in _ARM64 else "x64"
    return PlatformKey(os=os_name, arch=arch)
