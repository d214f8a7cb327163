"""opencode-mem: persistent memory for OpenCode, backed by the claude-mem binary."""

__version__ = "0.3.0"
