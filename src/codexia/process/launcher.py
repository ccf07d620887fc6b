"""Process launcher — spawn strategies for the codex subprocess."""

from __future__ import annotations

import asyncio
import logging
import shlex
import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from codexia.errors import SpawnFailed
from codexia.process.command import CodexCommand

logger = logging.getLogger(__name__)

#: Maximum bytes per JSONL line read from the subprocess (1 MB).
MAX_LINE_BYTES = 1_048_576

Which = Callable[[str], str | None]


@dataclass
class ProcessHandles:
    """Ownership bundle returned by a spawn: three pipes and the process."""

    stdin: asyncio.StreamWriter
    stdout: asyncio.StreamReader
    stderr: asyncio.StreamReader
    process: asyncio.subprocess.Process


class SpawnStrategy(Protocol):
    """How a :class:`CodexCommand` becomes a running process."""

    async def spawn(self, command: CodexCommand) -> ProcessHandles: ...


def shell_command_line(argv: Sequence[str]) -> str:
    """Quote *argv* into one POSIX shell command string.

    Every word survives ``sh -c`` intact, including empty strings, spaces
    and embedded single quotes.
    """
    return shlex.join(argv)


async def spawn_with_pipes(argv: Sequence[str], cwd: str | None) -> ProcessHandles:
    """Start *argv* with stdin, stdout and stderr all piped.

    Raises:
        SpawnFailed: Missing binary, permission denied, bad cwd, etc.
    """
    logger.debug("Spawning %s (cwd=%s)", list(argv), cwd)
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            limit=MAX_LINE_BYTES,
            start_new_session=True,
        )
    except OSError as exc:
        raise SpawnFailed(argv[0], exc) from exc

    if proc.stdin is None or proc.stdout is None or proc.stderr is None:
        msg = f"{argv[0]} spawned without all three pipes"
        raise RuntimeError(msg)

    return ProcessHandles(
        stdin=proc.stdin,
        stdout=proc.stdout,
        stderr=proc.stderr,
        process=proc,
    )


class DirectSpawn:
    """Run the codex binary directly."""

    async def spawn(self, command: CodexCommand) -> ProcessHandles:
        return await spawn_with_pipes(command.argv, command.cwd)


class PtyWrappedSpawn:
    """Run codex under a pseudo-terminal so it flushes output per line.

    Prefers ``script -qf -c <cmd> /dev/null``; without ``script`` falls back
    to ``stdbuf -oL -eL``; without either runs the binary directly.
    """

    def __init__(self, which: Which = shutil.which) -> None:
        self._which = which

    def wrap(self, command: CodexCommand) -> list[str]:
        """Return the argv actually executed for *command*."""
        if self._which("script"):
            line = shell_command_line(command.argv)
            return ["script", "-qf", "-c", line, "/dev/null"]
        if self._which("stdbuf"):
            return ["stdbuf", "-oL", "-eL", *command.argv]
        logger.info("Neither script nor stdbuf found, spawning codex directly")
        return command.argv

    async def spawn(self, command: CodexCommand) -> ProcessHandles:
        return await spawn_with_pipes(self.wrap(command), command.cwd)


def strategy_for(use_tty: bool) -> SpawnStrategy:
    """Pick the spawn strategy matching the ``use_tty`` runtime setting."""
    if use_tty:
        return PtyWrappedSpawn()
    return DirectSpawn()
