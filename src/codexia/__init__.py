"""codexia — async client for the codex proto subprocess protocol."""

from codexia.config.models import CodexConfig, RuntimeSettings
from codexia.errors import (
    CodexiaError,
    DiscoveryFailed,
    EncodeError,
    PipeError,
    SessionClosed,
    SessionNotFound,
    SpawnFailed,
)
from codexia.session import CallbackSink, CodexClient, QueueSink, SessionManager

__version__ = "0.1.0"

__all__ = [
    "CallbackSink",
    "CodexClient",
    "CodexConfig",
    "CodexiaError",
    "DiscoveryFailed",
    "EncodeError",
    "PipeError",
    "QueueSink",
    "RuntimeSettings",
    "SessionClosed",
    "SessionManager",
    "SessionNotFound",
    "SpawnFailed",
    "__version__",
]
