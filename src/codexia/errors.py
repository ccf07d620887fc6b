"""Error taxonomy for codex sessions."""

from __future__ import annotations

from dataclasses import dataclass


class CodexiaError(Exception):
    """Base class for every error raised by codexia."""


class DiscoveryFailed(CodexiaError):
    """No usable ``codex`` binary could be located."""

    def __init__(self, message: str = "Could not find codex executable") -> None:
        super().__init__(message)


class SpawnFailed(CodexiaError):
    """The OS refused to start the codex process."""

    def __init__(self, program: str, cause: OSError) -> None:
        super().__init__(f"Failed to spawn {program}: {cause}")
        self.program = program
        self.cause = cause


class EncodeError(CodexiaError):
    """A submission could not be serialized to a protocol line."""


class PipeError(CodexiaError):
    """A read or write on one of the process pipes failed."""


class SessionClosed(CodexiaError):
    """An operation was attempted on a closed session."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session '{session_id}' is closed")
        self.session_id = session_id


class SessionNotFound(CodexiaError):
    """No live session is registered under the given id."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class VersionCheckFailed(CodexiaError):
    """``codex -V`` could not be run or returned an error."""


class DecodeError(CodexiaError, ValueError):
    """An inbound line is not a valid protocol event."""


@dataclass(frozen=True)
class DecodeWarning:
    """A stdout line that failed to decode, reported to the diagnostic sink."""

    session_id: str
    line: str
    reason: str
