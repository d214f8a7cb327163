"""Exception hierarchy.

Only configuration and platform problems are raised. Everything that touches
the network, a subprocess or the filesystem reports failure as a value
(see ``opencode_mem.binary.base``).
"""

from __future__ import annotations


class OpencodeMemError(Exception):
    """Base class for opencode-mem errors."""


class ConfigError(OpencodeMemError):
    """Invalid configuration value."""


class UnsupportedPlatformError(OpencodeMemError):
    """No claude-mem build is published for this OS/architecture."""

    def __init__(self, system: str, machine: str) -> None:
        self.system = system
        self.machine = machine
        super().__init__(f"Unsupported platform: {system} {machine}")
