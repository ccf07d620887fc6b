"""CodexClient — the public facade over one ``codex proto`` process."""

from __future__ import annotations

import asyncio
import enum
import logging

from codexia.config.models import CodexConfig, RuntimeSettings
from codexia.errors import CodexiaError, PipeError, SessionClosed
from codexia.process.command import Discover, build_command
from codexia.process.discovery import discover_codex_command
from codexia.process.launcher import ProcessHandles, SpawnStrategy, strategy_for
from codexia.protocol import submissions
from codexia.protocol.codec import encode_submission
from codexia.protocol.submissions import Submission
from codexia.session.pump import OutboundQueue, stderr_loop, stdout_loop, writer_loop
from codexia.session.sinks import EventSink

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    """Lifecycle of a client; ``CLOSED`` is terminal."""

    STARTING = "starting"
    RUNNING = "running"
    CLOSING = "closing"
    CLOSED = "closed"


class CodexClient:
    """Owns one codex process, its outbound queue and its three pump tasks.

    Sends only encode and enqueue; they never wait on the process.  The
    process exiting on its own does not close the client; only
    :meth:`close` does.

    Use :meth:`start` to create a running client.
    """

    def __init__(
        self,
        session_id: str,
        config: CodexConfig,
        handles: ProcessHandles,
        sink: EventSink,
        *,
        settings: RuntimeSettings | None = None,
        logger: logging.Logger = logger,
    ) -> None:
        self._session_id = session_id
        self._config = config
        self._settings = settings or RuntimeSettings()
        self._sink = sink
        self._log = logger

        self._handles = handles
        self._process: asyncio.subprocess.Process | None = handles.process
        self._queue = OutboundQueue(session_id)
        self._tasks: list[asyncio.Task[PipeError | None]] = []
        self._state = SessionState.STARTING

    @classmethod
    async def start(
        cls,
        session_id: str,
        config: CodexConfig,
        sink: EventSink,
        *,
        settings: RuntimeSettings | None = None,
        strategy: SpawnStrategy | None = None,
        discover: Discover = discover_codex_command,
        logger: logging.Logger = logger,
    ) -> CodexClient:
        """Build the command, spawn codex and start the pumps.

        Raises:
            DiscoveryFailed: No codex binary configured or found.
            SpawnFailed: The OS could not start the process.
        """
        settings = settings or RuntimeSettings()
        logger.info("Creating codex client for session: %s", session_id)

        command = build_command(
            config,
            force_reasoning=settings.force_reasoning,
            discover=discover,
        )
        if strategy is None:
            strategy = strategy_for(settings.use_tty)
        handles = await strategy.spawn(command)
        logger.info(
            "%s: started codex (pid %s): %s",
            session_id,
            handles.process.pid,
            command.argv,
        )

        client = cls(
            session_id, config, handles, sink, settings=settings, logger=logger
        )
        client._start_pumps()
        return client

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def config(self) -> CodexConfig:
        return self._config

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def pid(self) -> int | None:
        """PID of the codex process, or ``None`` once closed."""
        if self._process is None:
            return None
        return self._process.pid

    @property
    def pump_tasks(self) -> tuple[asyncio.Task[PipeError | None], ...]:
        """The writer, stdout and stderr tasks, in that order."""
        return tuple(self._tasks)

    def pump_failures(self) -> list[PipeError]:
        """Pipe errors from pumps that have already stopped."""
        failures: list[PipeError] = []
        for task in self._tasks:
            if not task.done() or task.cancelled() or task.exception() is not None:
                continue
            result = task.result()
            if result is not None:
                failures.append(result)
        return failures

    def is_active(self) -> bool:
        """True while the process handle and the queue's sending side are held."""
        return self._process is not None and self._queue.is_open

    # ------------------------------------------------------------------ #
    # Sends
    # ------------------------------------------------------------------ #

    async def send_user_input(self, text: str) -> None:
        """Queue a user turn made of one text block."""
        await self._send(submissions.user_input(text))

    async def approve_execution(self, approval_id: str, approved: bool) -> None:
        """Answer an exec approval request with allow/deny."""
        await self._send(submissions.exec_approval(approval_id, approved))

    async def approve_patch(self, approval_id: str, approved: bool) -> None:
        """Answer a patch approval request with allow/deny."""
        await self._send(submissions.patch_approval(approval_id, approved))

    async def interrupt(self) -> None:
        """Ask the agent to stop its current action."""
        await self._send(submissions.interrupt())

    async def _send(self, submission: Submission) -> None:
        if self._state is not SessionState.RUNNING:
            raise SessionClosed(self._session_id)
        self._enqueue(submission)

    def _enqueue(self, submission: Submission) -> None:
        line = encode_submission(submission)
        self._queue.put(line)
        self._log.debug(
            "%s: queued %s submission %s",
            self._session_id,
            submission.op.type,
            submission.id,
        )

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def _start_pumps(self) -> None:
        handles = self._handles
        sid = self._session_id
        self._tasks = [
            asyncio.create_task(
                writer_loop(sid, self._queue, handles.stdin, self._log),
                name=f"codex-writer-{sid}",
            ),
            asyncio.create_task(
                stdout_loop(sid, handles.stdout, self._sink, self._log),
                name=f"codex-stdout-{sid}",
            ),
            asyncio.create_task(
                stderr_loop(sid, handles.stderr, self._sink, self._log),
                name=f"codex-stderr-{sid}",
            ),
        ]
        self._state = SessionState.RUNNING

    async def close(self) -> None:
        """Shut the session down: shutdown op -> close queue -> kill.

        Never raises.  The kill always happens, even if the shutdown
        submission could not be queued or the call is cancelled while the
        writer drains; a cancelled close skips only the final wait.
        Afterwards waits, bounded by ``RuntimeSettings.shutdown_timeout``,
        for the pumps and the process.  Calling it again is a no-op.
        """
        if self._state in (SessionState.CLOSING, SessionState.CLOSED):
            return
        self._state = SessionState.CLOSING
        self._log.info("Closing session: %s", self._session_id)

        try:
            # 1. Best-effort shutdown submission.
            try:
                self._enqueue(submissions.shutdown())
            except CodexiaError as exc:
                self._log.warning(
                    "%s: failed to send shutdown command: %s", self._session_id, exc
                )

            # 2. Close the sending side; the writer drains and stops.
            self._queue.close()
            await self._wait_writer()
        finally:
            # 3. Runs even if the caller cancels us while draining.
            process = self._kill()
            self._state = SessionState.CLOSED

        await self._join(process)

    def _kill(self) -> asyncio.subprocess.Process | None:
        """Take the process handle exactly once and kill it."""
        process, self._process = self._process, None
        if process is None:
            return None
        try:
            process.kill()
        except ProcessLookupError:
            pass
        except OSError as exc:
            self._log.error(
                "%s: failed to kill codex process: %s", self._session_id, exc
            )
        return process

    async def _wait_writer(self) -> None:
        """Give the writer a short window to flush queued lines before the kill."""
        if not self._tasks or self._settings.drain_timeout <= 0:
            return
        writer = self._tasks[0]
        if not writer.done():
            await asyncio.wait({writer}, timeout=self._settings.drain_timeout)

    async def _join(self, process: asyncio.subprocess.Process | None) -> None:
        timeout = self._settings.shutdown_timeout
        pending = [t for t in self._tasks if not t.done()]
        if pending:
            _, still_running = await asyncio.wait(pending, timeout=timeout)
            for task in still_running:
                task.cancel()
            if still_running:
                self._log.warning(
                    "%s: cancelled %d pump task(s) after %.1fs",
                    self._session_id,
                    len(still_running),
                    timeout,
                )
                await asyncio.gather(*still_running, return_exceptions=True)

        if process is not None:
            try:
                await asyncio.wait_for(process.wait(), timeout=timeout)
            except TimeoutError:
                self._log.warning(
                    "%s: codex process did not exit within %.1fs",
                    self._session_id,
                    timeout,
                )
            except Exception as exc:
                self._log.error(
                    "%s: error waiting for codex exit: %s", self._session_id, exc
                )

    async def __aenter__(self) -> CodexClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
