"""Shared test doubles for the codex subprocess pipes."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from codexia.config.models import RuntimeSettings
from codexia.process.command import CodexCommand
from codexia.process.launcher import ProcessHandles


class MockAsyncStream:
    """Async-aware mock stdout/stderr that yields lines on demand.

    Lines can be added at any time via ``feed()``.  ``readline()``
    blocks until a line is available or ``close()`` is called.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[bytes] = asyncio.Queue()
        self.closed = False

    def feed(self, data: bytes) -> None:
        self._queue.put_nowait(data)

    def feed_json(self, payload: dict[str, Any]) -> None:
        self.feed(json.dumps(payload).encode() + b"\n")

    def close(self) -> None:
        """Signal EOF."""
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(b"")

    async def readline(self) -> bytes:
        data = await self._queue.get()
        if not data:
            # Keep returning EOF for any later reads.
            self._queue.put_nowait(b"")
        return data


class RecordingStdin:
    """Stdin double that records every write and flush."""

    def __init__(self, fail_after: int | None = None) -> None:
        self.writes: list[bytes] = []
        self.drains = 0
        self.closed = False
        self._fail_after = fail_after

    def write(self, data: bytes) -> None:
        if self._fail_after is not None and len(self.writes) >= self._fail_after:
            raise BrokenPipeError("pipe closed")
        self.writes.append(data)

    async def drain(self) -> None:
        self.drains += 1

    def close(self) -> None:
        self.closed = True

    def lines(self) -> list[dict[str, Any]]:
        return [json.loads(w.decode()) for w in self.writes]


def make_handles(stdin: RecordingStdin | None = None) -> ProcessHandles:
    """Build fake pipes plus a process whose kill() closes both outputs."""
    stdout = MockAsyncStream()
    stderr = MockAsyncStream()

    proc = MagicMock()
    proc.pid = 4242
    proc.returncode = None

    def _kill() -> None:
        proc.returncode = -9
        stdout.close()
        stderr.close()

    proc.kill = MagicMock(side_effect=_kill)
    proc.wait = AsyncMock(return_value=-9)

    return ProcessHandles(
        stdin=stdin if stdin is not None else RecordingStdin(),  # type: ignore
        stdout=stdout,  # type: ignore[arg-type]
        stderr=stderr,  # type: ignore[arg-type]
        process=proc,
    )


class FakeStrategy:
    """Spawn strategy returning prepared handles and recording the command."""

    def __init__(self, handles: ProcessHandles | None = None) -> None:
        self.handles = handles if handles is not None else make_handles()
        self.commands: list[CodexCommand] = []

    async def spawn(self, command: CodexCommand) -> ProcessHandles:
        self.commands.append(command)
        return self.handles


@pytest.fixture
def fake_strategy() -> FakeStrategy:
    return FakeStrategy()


@pytest.fixture
def fast_settings() -> RuntimeSettings:
    return RuntimeSettings(shutdown_timeout=0.2, drain_timeout=0.2)


@pytest.fixture
def make_strategy() -> Any:
    """Factory for strategies whose stdin breaks after *fail_after* writes."""

    def _make(fail_after: int | None = None) -> FakeStrategy:
        return FakeStrategy(make_handles(RecordingStdin(fail_after=fail_after)))

    return _make


class PerSessionStrategy:
    """Hands out fresh fake pipes for every spawn."""

    def __init__(self) -> None:
        self.spawned: list[tuple[CodexCommand, ProcessHandles]] = []

    async def spawn(self, command: CodexCommand) -> ProcessHandles:
        handles = make_handles()
        self.spawned.append((command, handles))
        return handles


@pytest.fixture
def per_session_strategy() -> PerSessionStrategy:
    return PerSessionStrategy()
