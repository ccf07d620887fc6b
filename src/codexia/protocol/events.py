"""Pydantic v2 models for inbound codex protocol events.

The event schema belongs to the codex binary and grows over time, so every
known kind accepts extra fields and anything with an unrecognized ``type``
decodes to :class:`UnknownEventMsg`, which keeps the raw object.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, model_validator


class _MsgBase(BaseModel):
    """Common config for every known event payload."""

    model_config = ConfigDict(extra="allow")


class SessionConfiguredMsg(_MsgBase):
    """First event of a session, echoing the effective configuration."""

    type: Literal["session_configured"] = "session_configured"
    session_id: str = ""
    model: str = ""
    history_log_id: int | None = None
    history_entry_count: int | None = None


class TaskStartedMsg(_MsgBase):
    type: Literal["task_started"] = "task_started"


class TaskCompleteMsg(_MsgBase):
    type: Literal["task_complete"] = "task_complete"
    response_id: str | None = None
    last_agent_message: str | None = None


class AgentMessageMsg(_MsgBase):
    type: Literal["agent_message"] = "agent_message"
    message: str | None = None
    last_agent_message: str | None = None


class AgentMessageDeltaMsg(_MsgBase):
    type: Literal["agent_message_delta"] = "agent_message_delta"
    delta: str = ""


class AgentReasoningMsg(_MsgBase):
    type: Literal["agent_reasoning"] = "agent_reasoning"
    reasoning: str | None = None
    text: str | None = None


class AgentReasoningDeltaMsg(_MsgBase):
    type: Literal["agent_reasoning_delta"] = "agent_reasoning_delta"
    delta: str = ""


class AgentReasoningRawContentMsg(_MsgBase):
    type: Literal["agent_reasoning_raw_content"] = "agent_reasoning_raw_content"
    content: str | None = None
    text: str | None = None


class AgentReasoningRawContentDeltaMsg(_MsgBase):
    type: Literal["agent_reasoning_raw_content_delta"] = (
        "agent_reasoning_raw_content_delta"
    )
    delta: str = ""


class AgentReasoningSectionBreakMsg(_MsgBase):
    type: Literal["agent_reasoning_section_break"] = "agent_reasoning_section_break"


class TokenCountMsg(_MsgBase):
    type: Literal["token_count"] = "token_count"
    info: dict[str, Any] | None = None
    rate_limits: dict[str, Any] | None = None


class ExecApprovalRequestMsg(_MsgBase):
    """The agent wants to run a command; answer with ``exec_approval``."""

    type: Literal["exec_approval_request"] = "exec_approval_request"
    call_id: str = ""
    command: list[str] = Field(default_factory=list)
    cwd: str = ""
    reason: str | None = None


class ApplyPatchApprovalRequestMsg(_MsgBase):
    """The agent wants to edit files; answer with ``patch_approval``."""

    type: Literal["apply_patch_approval_request"] = "apply_patch_approval_request"
    call_id: str = ""
    changes: Any = None
    reason: str | None = None
    grant_root: str | None = None


class ExecCommandBeginMsg(_MsgBase):
    type: Literal["exec_command_begin"] = "exec_command_begin"
    call_id: str = ""
    command: list[str] = Field(default_factory=list)
    cwd: str = ""


class ExecCommandOutputDeltaMsg(_MsgBase):
    type: Literal["exec_command_output_delta"] = "exec_command_output_delta"
    call_id: str = ""
    stream: str = ""
    chunk: list[int] = Field(default_factory=list)


class ExecCommandEndMsg(_MsgBase):
    type: Literal["exec_command_end"] = "exec_command_end"
    call_id: str = ""
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0


class PatchApplyBeginMsg(_MsgBase):
    type: Literal["patch_apply_begin"] = "patch_apply_begin"
    call_id: str | None = None
    changes: Any = None
    auto_approved: bool | None = None


class PatchApplyEndMsg(_MsgBase):
    type: Literal["patch_apply_end"] = "patch_apply_end"
    call_id: str | None = None
    success: bool = False
    stdout: str | None = None
    stderr: str | None = None


class McpToolCallBeginMsg(_MsgBase):
    type: Literal["mcp_tool_call_begin"] = "mcp_tool_call_begin"
    invocation: Any = None


class McpToolCallEndMsg(_MsgBase):
    type: Literal["mcp_tool_call_end"] = "mcp_tool_call_end"
    invocation: Any = None
    result: Any = None


class WebSearchBeginMsg(_MsgBase):
    type: Literal["web_search_begin"] = "web_search_begin"
    query: str = ""


class WebSearchEndMsg(_MsgBase):
    type: Literal["web_search_end"] = "web_search_end"
    query: str = ""
    results: Any = None


class PlanStep(BaseModel):
    model_config = ConfigDict(extra="allow")

    step: str
    status: Literal["pending", "in_progress", "completed"]


class PlanUpdateMsg(_MsgBase):
    type: Literal["plan_update"] = "plan_update"
    explanation: str | None = None
    plan: list[PlanStep] = Field(default_factory=list)


class TurnDiffMsg(_MsgBase):
    type: Literal["turn_diff"] = "turn_diff"
    unified_diff: str = ""


class TurnAbortedMsg(_MsgBase):
    type: Literal["turn_aborted"] = "turn_aborted"
    reason: str = ""


class BackgroundEventMsg(_MsgBase):
    type: Literal["background_event"] = "background_event"
    message: str = ""


class StreamErrorMsg(_MsgBase):
    type: Literal["stream_error"] = "stream_error"
    message: str = ""


class ErrorMsg(_MsgBase):
    type: Literal["error"] = "error"
    message: str = ""


class ShutdownCompleteMsg(_MsgBase):
    type: Literal["shutdown_complete"] = "shutdown_complete"


class UnknownEventMsg(BaseModel):
    """Any event kind this client does not model, kept verbatim in ``raw``."""

    model_config = ConfigDict(extra="forbid")

    type: str = ""
    raw: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _wrap_raw(cls, values: Any) -> Any:
        if isinstance(values, dict) and set(values) != {"type", "raw"}:
            return {"type": str(values.get("type", "")), "raw": dict(values)}
        return values


_KNOWN_MSGS: tuple[type[BaseModel], ...] = (
    SessionConfiguredMsg,
    TaskStartedMsg,
    TaskCompleteMsg,
    AgentMessageMsg,
    AgentMessageDeltaMsg,
    AgentReasoningMsg,
    AgentReasoningDeltaMsg,
    AgentReasoningRawContentMsg,
    AgentReasoningRawContentDeltaMsg,
    AgentReasoningSectionBreakMsg,
    TokenCountMsg,
    ExecApprovalRequestMsg,
    ApplyPatchApprovalRequestMsg,
    ExecCommandBeginMsg,
    ExecCommandOutputDeltaMsg,
    ExecCommandEndMsg,
    PatchApplyBeginMsg,
    PatchApplyEndMsg,
    McpToolCallBeginMsg,
    McpToolCallEndMsg,
    WebSearchBeginMsg,
    WebSearchEndMsg,
    PlanUpdateMsg,
    TurnDiffMsg,
    TurnAbortedMsg,
    BackgroundEventMsg,
    StreamErrorMsg,
    ErrorMsg,
    ShutdownCompleteMsg,
)

#: Every ``type`` tag with a dedicated model.
KNOWN_EVENT_TYPES: frozenset[str] = frozenset(
    m.model_fields["type"].default for m in _KNOWN_MSGS
)


def _msg_discriminator(v: Any) -> str:
    """Route known tags to their model and everything else to ``unknown``."""
    if isinstance(v, dict):
        tag = v.get("type")
    elif isinstance(v, UnknownEventMsg):
        return "unknown"
    else:
        tag = getattr(v, "type", None)
    if isinstance(tag, str) and tag in KNOWN_EVENT_TYPES:
        return tag
    return "unknown"


EventMsg = Annotated[
    Annotated[SessionConfiguredMsg, Tag("session_configured")]
    | Annotated[TaskStartedMsg, Tag("task_started")]
    | Annotated[TaskCompleteMsg, Tag("task_complete")]
    | Annotated[AgentMessageMsg, Tag("agent_message")]
    | Annotated[AgentMessageDeltaMsg, Tag("agent_message_delta")]
    | Annotated[AgentReasoningMsg, Tag("agent_reasoning")]
    | Annotated[AgentReasoningDeltaMsg, Tag("agent_reasoning_delta")]
    | Annotated[AgentReasoningRawContentMsg, Tag("agent_reasoning_raw_content")]
    | Annotated[
        AgentReasoningRawContentDeltaMsg, Tag("agent_reasoning_raw_content_delta")
    ]
    | Annotated[AgentReasoningSectionBreakMsg, Tag("agent_reasoning_section_break")]
    | Annotated[TokenCountMsg, Tag("token_count")]
    | Annotated[ExecApprovalRequestMsg, Tag("exec_approval_request")]
    | Annotated[ApplyPatchApprovalRequestMsg, Tag("apply_patch_approval_request")]
    | Annotated[ExecCommandBeginMsg, Tag("exec_command_begin")]
    | Annotated[ExecCommandOutputDeltaMsg, Tag("exec_command_output_delta")]
    | Annotated[ExecCommandEndMsg, Tag("exec_command_end")]
    | Annotated[PatchApplyBeginMsg, Tag("patch_apply_begin")]
    | Annotated[PatchApplyEndMsg, Tag("patch_apply_end")]
    | Annotated[McpToolCallBeginMsg, Tag("mcp_tool_call_begin")]
    | Annotated[McpToolCallEndMsg, Tag("mcp_tool_call_end")]
    | Annotated[WebSearchBeginMsg, Tag("web_search_begin")]
    | Annotated[WebSearchEndMsg, Tag("web_search_end")]
    | Annotated[PlanUpdateMsg, Tag("plan_update")]
    | Annotated[TurnDiffMsg, Tag("turn_diff")]
    | Annotated[TurnAbortedMsg, Tag("turn_aborted")]
    | Annotated[BackgroundEventMsg, Tag("background_event")]
    | Annotated[StreamErrorMsg, Tag("stream_error")]
    | Annotated[ErrorMsg, Tag("error")]
    | Annotated[ShutdownCompleteMsg, Tag("shutdown_complete")]
    | Annotated[UnknownEventMsg, Tag("unknown")],
    Discriminator(_msg_discriminator),
]
"""Discriminated union of every event payload, with an ``unknown`` catch-all."""


class CodexEvent(BaseModel):
    """One inbound message: the id of the submission it answers plus a payload."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(description="Id of the submission this event belongs to")
    msg: EventMsg

    @property
    def kind(self) -> str:
        """The ``type`` tag of the payload, including unknown tags."""
        return self.msg.type
