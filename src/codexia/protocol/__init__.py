"""codex proto wire protocol — submissions, events and the line codec."""

from codexia.protocol.codec import decode_event, encode_submission
from codexia.protocol.events import (
    KNOWN_EVENT_TYPES,
    ApplyPatchApprovalRequestMsg,
    CodexEvent,
    ErrorMsg,
    EventMsg,
    ExecApprovalRequestMsg,
    TaskCompleteMsg,
    UnknownEventMsg,
)
from codexia.protocol.submissions import (
    ExecApprovalOp,
    InterruptOp,
    Op,
    PatchApprovalOp,
    ShutdownOp,
    Submission,
    TextInput,
    UserInputOp,
)

__all__ = [
    "KNOWN_EVENT_TYPES",
    "ApplyPatchApprovalRequestMsg",
    "CodexEvent",
    "ErrorMsg",
    "EventMsg",
    "ExecApprovalOp",
    "ExecApprovalRequestMsg",
    "InterruptOp",
    "Op",
    "PatchApprovalOp",
    "ShutdownOp",
    "Submission",
    "TaskCompleteMsg",
    "TextInput",
    "UnknownEventMsg",
    "UserInputOp",
    "decode_event",
    "encode_submission",
]
