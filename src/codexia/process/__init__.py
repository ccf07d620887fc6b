"""Locating, building and launching the codex subprocess."""

from codexia.process.command import PROTO_SUBCOMMAND, CodexCommand, build_command
from codexia.process.discovery import check_codex_version, discover_codex_command
from codexia.process.launcher import (
    DirectSpawn,
    ProcessHandles,
    PtyWrappedSpawn,
    SpawnStrategy,
    shell_command_line,
    strategy_for,
)

__all__ = [
    "PROTO_SUBCOMMAND",
    "CodexCommand",
    "DirectSpawn",
    "ProcessHandles",
    "PtyWrappedSpawn",
    "SpawnStrategy",
    "build_command",
    "check_codex_version",
    "discover_codex_command",
    "shell_command_line",
    "strategy_for",
]
