"""Session runtime — pumps, the client facade and the session registry."""

from codexia.session.client import CodexClient, SessionState
from codexia.session.manager import SessionManager
from codexia.session.pump import OutboundQueue
from codexia.session.sinks import CallbackSink, EventSink, QueueSink, SessionChannel

__all__ = [
    "CallbackSink",
    "CodexClient",
    "EventSink",
    "OutboundQueue",
    "QueueSink",
    "SessionChannel",
    "SessionManager",
    "SessionState",
]
