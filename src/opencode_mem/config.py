"""Configuration loading from environment variables and opencode-mem.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

from opencode_mem.errors import ConfigError

# Binary lives next to the package so every install carries its own copy
_DEFAULT_BIN_DIR = Path(__file__).resolve().parent / "bin"
_CONFIG_FILENAME = "opencode-mem.toml"
_RELEASE_URL = "https://api.github.com/repos/RageLtd/claude-mem/releases/latest"

PROTOCOLS = ("args", "stdio")


@dataclass
class BinaryConfig:
    """Where the claude-mem binary lives and how it is invoked."""

    name: str = "claude-mem"
    install_dir: Path = _DEFAULT_BIN_DIR
    protocol: str = "args"
    timeout: float = 120.0
    version_timeout: float = 30.0

    @property
    def path(self) -> Path:
        return self.install_dir / self.name


@dataclass
class ReleaseConfig:
    """Remote release index settings."""

    url: str = _RELEASE_URL
    user_agent: str = "opencode-mem"
    timeout: float = 30.0
    download_timeout: float = 300.0


@dataclass
class MemConfig:
    """Top-level opencode-mem configuration."""

    binary: BinaryConfig = field(default_factory=BinaryConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    save_result_max_chars: int = 10_000
    log_level: str = "INFO"


def _find_config_file(config_path: Path | None) -> dict:
    if config_path and config_path.exists():
        return tomllib.loads(config_path.read_text())
    # Search current dir and ~/.config/opencode-mem/
    for candidate in [
        Path.cwd() / _CONFIG_FILENAME,
        Path.home() / ".config" / "opencode-mem" / _CONFIG_FILENAME,
    ]:
        if candidate.exists():
            return tomllib.loads(candidate.read_text())
    return {}


def load_config(config_path: Path | None = None) -> MemConfig:
    """Load configuration from environment variables and optional opencode-mem.toml.

    Priority: environment variables > opencode-mem.toml > defaults.
    """
    file_data = _find_config_file(config_path)

    binary_data = file_data.get("binary", {})
    release_data = file_data.get("release", {})

    install_dir = os.getenv("OPENCODE_MEM_BIN_DIR", binary_data.get("install_dir"))
    protocol = os.getenv("OPENCODE_MEM_PROTOCOL", binary_data.get("protocol", "args"))
    if protocol not in PROTOCOLS:
        raise ConfigError(f"Unknown hook protocol {protocol!r} (expected one of {PROTOCOLS})")

    config = MemConfig(
        binary=BinaryConfig(
            name=binary_data.get("name", "claude-mem"),
            install_dir=Path(install_dir).expanduser().resolve() if install_dir else _DEFAULT_BIN_DIR,
            protocol=protocol,
            timeout=float(os.getenv("OPENCODE_MEM_TIMEOUT", binary_data.get("timeout", 120))),
            version_timeout=float(binary_data.get("version_timeout", 30)),
        ),
        release=ReleaseConfig(
            url=os.getenv("OPENCODE_MEM_RELEASE_URL", release_data.get("url", _RELEASE_URL)),
            user_agent=os.getenv(
                "OPENCODE_MEM_USER_AGENT", release_data.get("user_agent", "opencode-mem")
            ),
            timeout=float(release_data.get("timeout", 30)),
            download_timeout=float(release_data.get("download_timeout", 300)),
        ),
        save_result_max_chars=int(
            os.getenv("OPENCODE_MEM_SAVE_MAX_CHARS", file_data.get("save_result_max_chars", 10_000))
        ),
        log_level=os.getenv("OPENCODE_MEM_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config
