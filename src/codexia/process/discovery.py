"""Locate the codex binary and query its version."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from pathlib import Path

from codexia.errors import VersionCheckFailed

logger = logging.getLogger(__name__)

#: Install locations checked when ``codex`` is not on PATH (GUI launches
#: often start with a minimal PATH).
_FALLBACK_DIRS = (
    "~/.local/bin",
    "~/.npm-global/bin",
    "~/.bun/bin",
    "~/.cargo/bin",
    "/opt/homebrew/bin",
    "/usr/local/bin",
    "/usr/bin",
)

_BINARY_NAME = "codex"


def discover_codex_command() -> Path | None:
    """Return the path of a usable ``codex`` executable, or ``None``."""
    found = shutil.which(_BINARY_NAME)
    if found:
        return Path(found)

    for directory in _FALLBACK_DIRS:
        candidate = Path(directory).expanduser() / _BINARY_NAME
        if candidate.is_file() and os.access(candidate, os.X_OK):
            logger.debug("Found codex outside PATH: %s", candidate)
            return candidate
    return None


async def check_codex_version(path: str | Path | None = None) -> str:
    """Run ``codex -V`` and return its trimmed stdout.

    Uses *path* when given, else the discovered binary, else plain
    ``codex`` resolved by the OS.

    Raises:
        VersionCheckFailed: The binary could not run or exited non-zero.
    """
    if path is None:
        discovered = discover_codex_command()
        program = str(discovered) if discovered is not None else _BINARY_NAME
    else:
        program = str(path)

    try:
        proc = await asyncio.create_subprocess_exec(
            program,
            "-V",
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        msg = f"Failed to execute codex binary: {exc}"
        raise VersionCheckFailed(msg) from exc

    stdout, stderr = await proc.communicate()
    if proc.returncode != 0:
        err_msg = stderr.decode(errors="replace").strip()
        msg = f"Codex binary returned error: {err_msg}"
        raise VersionCheckFailed(msg)
    return stdout.decode(errors="replace").strip()
