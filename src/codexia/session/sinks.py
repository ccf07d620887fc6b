"""Caller-side sinks for decoded events, stderr lines and decode warnings."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from codexia.errors import DecodeWarning
from codexia.protocol.events import CodexEvent

EventCallback = Callable[[str, CodexEvent], Awaitable[None]]
LineCallback = Callable[[str, str], Awaitable[None]]
WarningCallback = Callable[[str, DecodeWarning], Awaitable[None]]


@runtime_checkable
class EventSink(Protocol):
    """Receives everything the pumps read, keyed by session id."""

    async def on_event(self, session_id: str, event: CodexEvent) -> None: ...

    async def on_stderr(self, session_id: str, line: str) -> None: ...

    async def on_decode_warning(
        self, session_id: str, warning: DecodeWarning
    ) -> None: ...


@dataclass
class SessionChannel:
    """Per-session subscription queues."""

    events: asyncio.Queue[CodexEvent] = field(default_factory=asyncio.Queue)
    errors: asyncio.Queue[str] = field(default_factory=asyncio.Queue)
    warnings: asyncio.Queue[DecodeWarning] = field(default_factory=asyncio.Queue)


class QueueSink:
    """Sink exposing an event stream and a raw stderr stream per session."""

    def __init__(self) -> None:
        self._channels: dict[str, SessionChannel] = {}

    def channel(self, session_id: str) -> SessionChannel:
        """Return the channel for *session_id*, creating it on first use."""
        chan = self._channels.get(session_id)
        if chan is None:
            chan = SessionChannel()
            self._channels[session_id] = chan
        return chan

    def discard(self, session_id: str) -> None:
        self._channels.pop(session_id, None)

    async def on_event(self, session_id: str, event: CodexEvent) -> None:
        self.channel(session_id).events.put_nowait(event)

    async def on_stderr(self, session_id: str, line: str) -> None:
        self.channel(session_id).errors.put_nowait(line)

    async def on_decode_warning(self, session_id: str, warning: DecodeWarning) -> None:
        self.channel(session_id).warnings.put_nowait(warning)


class CallbackSink:
    """Sink that forwards to async callbacks; missing callbacks drop silently."""

    def __init__(
        self,
        on_event: EventCallback,
        on_stderr: LineCallback | None = None,
        on_decode_warning: WarningCallback | None = None,
    ) -> None:
        self._on_event = on_event
        self._on_stderr = on_stderr
        self._on_decode_warning = on_decode_warning

    async def on_event(self, session_id: str, event: CodexEvent) -> None:
        await self._on_event(session_id, event)

    async def on_stderr(self, session_id: str, line: str) -> None:
        if self._on_stderr is not None:
            await self._on_stderr(session_id, line)

    async def on_decode_warning(self, session_id: str, warning: DecodeWarning) -> None:
        if self._on_decode_warning is not None:
            await self._on_decode_warning(session_id, warning)
