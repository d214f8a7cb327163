"""Result types shared by every binary operation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Success:
    """Operation succeeded; ``data`` is the binary's output (may be empty)."""

    data: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Operation failed; ``error`` is a human-readable reason."""

    error: str

    @property
    def ok(self) -> bool:
        return False


# Either a Success or a Failure, never both
HookResult = Success | Failure


@dataclass(frozen=True)
class ReleaseInfo:
    """Latest published claude-mem release for this platform."""

    version: str
    download_url: str
