"""SessionManager — id-keyed registry of live codex clients."""

from __future__ import annotations

import asyncio
import logging

from codexia.config.models import CodexConfig, RuntimeSettings
from codexia.errors import SessionNotFound
from codexia.process.command import Discover
from codexia.process.discovery import discover_codex_command
from codexia.process.launcher import SpawnStrategy
from codexia.session.client import CodexClient
from codexia.session.sinks import EventSink

logger = logging.getLogger(__name__)


class SessionManager:
    """Maps session ids to clients; sessions never share state.

    An id is burned once used: starting a session under an id that is
    live, or was live earlier, is rejected.
    """

    def __init__(
        self,
        sink: EventSink,
        settings: RuntimeSettings | None = None,
        *,
        strategy: SpawnStrategy | None = None,
        discover: Discover = discover_codex_command,
    ) -> None:
        self._sink = sink
        self._settings = settings or RuntimeSettings()
        self._strategy = strategy
        self._discover = discover
        self._clients: dict[str, CodexClient] = {}
        self._used_ids: set[str] = set()
        self._lock = asyncio.Lock()

    @property
    def session_ids(self) -> list[str]:
        return list(self._clients)

    def get(self, session_id: str) -> CodexClient:
        client = self._clients.get(session_id)
        if client is None:
            raise SessionNotFound(session_id)
        return client

    def is_active(self, session_id: str) -> bool:
        client = self._clients.get(session_id)
        return client is not None and client.is_active()

    async def start_session(self, session_id: str, config: CodexConfig) -> CodexClient:
        """Spawn a codex process for *session_id*.

        Raises:
            ValueError: *session_id* has already been used.
            DiscoveryFailed / SpawnFailed: Propagated from session creation.
        """
        async with self._lock:
            if session_id in self._used_ids:
                msg = f"Session id already used: {session_id}"
                raise ValueError(msg)
            self._used_ids.add(session_id)

        logger.info("Starting codex session: %s", session_id)
        client = await CodexClient.start(
            session_id,
            config,
            self._sink,
            settings=self._settings,
            strategy=self._strategy,
            discover=self._discover,
        )
        self._clients[session_id] = client
        return client

    async def send_message(self, session_id: str, message: str) -> None:
        await self.get(session_id).send_user_input(message)

    async def approve_execution(
        self, session_id: str, approval_id: str, approved: bool
    ) -> None:
        await self.get(session_id).approve_execution(approval_id, approved)

    async def approve_patch(
        self, session_id: str, approval_id: str, approved: bool
    ) -> None:
        await self.get(session_id).approve_patch(approval_id, approved)

    async def pause_session(self, session_id: str) -> None:
        """Interrupt the agent's current action; the session stays open."""
        await self.get(session_id).interrupt()

    async def close_session(self, session_id: str) -> None:
        """Close and forget *session_id*; unknown ids are ignored."""
        client = self._clients.pop(session_id, None)
        if client is None:
            logger.debug("close_session: no session %s", session_id)
            return
        await client.close()

    async def close_all(self) -> None:
        """Close every session concurrently."""
        clients = list(self._clients.values())
        self._clients.clear()
        if clients:
            await asyncio.gather(*(c.close() for c in clients))
