"""Duplex pump — the three loops moving data between a session and its process.

* ``writer_loop``: outbound queue -> process stdin, one flushed line per message.
* ``stdout_loop``: process stdout -> codec -> ``EventSink.on_event``.
* ``stderr_loop``: process stderr -> ``EventSink.on_stderr``, verbatim.

A loop never raises to its caller and never retries; a broken pipe ends
only that loop, whose task then resolves to the :class:`PipeError`.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable

from codexia.errors import DecodeError, DecodeWarning, PipeError, SessionClosed
from codexia.protocol.codec import decode_event
from codexia.session.sinks import EventSink

logger = logging.getLogger(__name__)

#: Characters of an undecodable line kept in log messages.
_PREVIEW_CHARS = 200


class OutboundQueue:
    """Single-consumer FIFO of encoded submission lines.

    Closing the sending side lets the consumer drain what is queued and
    then stop.  Once the consumer has gone, puts fail immediately.
    """

    def __init__(self, session_id: str) -> None:
        self._session_id = session_id
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._closed = False
        self._receiver_gone = False

    @property
    def is_open(self) -> bool:
        """True while the sending side has not been closed."""
        return not self._closed

    @property
    def receiver_gone(self) -> bool:
        return self._receiver_gone

    def put(self, line: str) -> None:
        """Enqueue *line* without blocking.

        Raises:
            SessionClosed: The sending side is closed or the writer has stopped.
        """
        if self._closed or self._receiver_gone:
            raise SessionClosed(self._session_id)
        self._queue.put_nowait(line)

    def close(self) -> None:
        """Close the sending side; already queued lines are still delivered."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def get(self) -> str | None:
        """Next line, or ``None`` once closed and drained."""
        return await self._queue.get()

    def detach(self) -> None:
        """Mark the receiving side as gone (called when the writer exits)."""
        self._receiver_gone = True

    def qsize(self) -> int:
        return self._queue.qsize()


async def writer_loop(
    session_id: str,
    queue: OutboundQueue,
    stdin: asyncio.StreamWriter,
    log: logging.Logger = logger,
) -> PipeError | None:
    """Drain *queue* into *stdin*, flushing after every line.

    Returns ``None`` once the queue is closed and drained, or the
    :class:`PipeError` that stopped it early.
    """
    failure: PipeError | None = None
    try:
        while True:
            line = await queue.get()
            if line is None:
                break
            try:
                stdin.write(line.encode("utf-8") + b"\n")
                await stdin.drain()
            except (BrokenPipeError, ConnectionResetError, OSError) as exc:
                log.error("%s: failed to write to codex stdin: %s", session_id, exc)
                failure = PipeError(f"stdin write failed: {exc}")
                break
    finally:
        queue.detach()
        with contextlib.suppress(OSError, RuntimeError):
            stdin.close()
        log.debug("%s: stdin writer terminated", session_id)
    return failure


async def stdout_loop(
    session_id: str,
    stdout: asyncio.StreamReader,
    sink: EventSink,
    log: logging.Logger = logger,
) -> PipeError | None:
    """Decode each stdout line and dispatch it; bad lines become warnings."""
    log.debug("%s: starting stdout reader", session_id)
    failure: PipeError | None = None
    try:
        while True:
            try:
                line_bytes = await stdout.readline()
            except ValueError:
                # Line exceeded the StreamReader limit; skip it and keep reading.
                log.warning(
                    "%s: stdout line exceeded buffer limit, skipping", session_id
                )
                continue

            if not line_bytes:
                break

            line = line_bytes.decode("utf-8", errors="replace").strip()
            if not line:
                continue

            try:
                event = decode_event(line)
            except DecodeError as exc:
                log.warning(
                    "%s: failed to parse codex event (%s): %s",
                    session_id,
                    exc,
                    line[:_PREVIEW_CHARS],
                )
                warning = DecodeWarning(
                    session_id=session_id, line=line, reason=str(exc)
                )
                await _deliver(
                    sink.on_decode_warning(session_id, warning), session_id, log
                )
                continue

            await _deliver(sink.on_event(session_id, event), session_id, log)

    except asyncio.CancelledError:
        raise
    except Exception as exc:
        log.error("%s: stdout read error: %s", session_id, exc)
        failure = PipeError(f"stdout read failed: {exc}")

    log.debug("%s: stdout reader terminated", session_id)
    return failure


async def stderr_loop(
    session_id: str,
    stderr: asyncio.StreamReader,
    sink: EventSink,
    log: logging.Logger = logger,
) -> PipeError | None:
    """Forward every stderr line, undecoded, to the sink."""
    failure: PipeError | None = None
    try:
        while True:
            try:
                line_bytes = await stderr.readline()
            except ValueError:
                log.warning(
                    "%s: stderr line exceeded buffer limit, skipping", session_id
                )
                continue

            if not line_bytes:
                break

            line = line_bytes.decode("utf-8", errors="replace").rstrip("\r\n")
            await _deliver(sink.on_stderr(session_id, line), session_id, log)

    except asyncio.CancelledError:
        raise
    except Exception as exc:
        log.error("%s: stderr read error: %s", session_id, exc)
        failure = PipeError(f"stderr read failed: {exc}")

    log.debug("%s: stderr reader terminated", session_id)
    return failure


async def _deliver(
    call: Awaitable[None], session_id: str, log: logging.Logger
) -> None:
    """Await a sink call, logging (not raising) anything it throws."""
    try:
        await call
    except asyncio.CancelledError:
        raise
    except Exception:
        log.exception("%s: event sink raised", session_id)
