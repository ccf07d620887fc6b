"""Pydantic v2 models for outbound protocol submissions."""

from __future__ import annotations

import uuid
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

Decision = Literal["allow", "deny"]


class _OpBase(BaseModel):
    model_config = ConfigDict(extra="forbid")


class TextInput(_OpBase):
    """A plain text block."""

    type: Literal["text"] = "text"
    text: str


class ImageInput(_OpBase):
    """An image referenced by URL (or data URL)."""

    type: Literal["image"] = "image"
    image_url: str


InputItem = Annotated[TextInput | ImageInput, Field(discriminator="type")]


class UserInputOp(_OpBase):
    """Hand the agent a new turn of user input."""

    type: Literal["user_input"] = "user_input"
    items: list[InputItem]


class ExecApprovalOp(_OpBase):
    """Answer an ``exec_approval_request``."""

    type: Literal["exec_approval"] = "exec_approval"
    id: str = Field(description="Call id of the approval request")
    decision: Decision


class PatchApprovalOp(_OpBase):
    """Answer an ``apply_patch_approval_request``."""

    type: Literal["patch_approval"] = "patch_approval"
    id: str = Field(description="Call id of the approval request")
    decision: Decision


class InterruptOp(_OpBase):
    """Stop the agent's current action."""

    type: Literal["interrupt"] = "interrupt"


class ShutdownOp(_OpBase):
    """Ask the agent to shut down cleanly."""

    type: Literal["shutdown"] = "shutdown"


Op = Annotated[
    UserInputOp | ExecApprovalOp | PatchApprovalOp | InterruptOp | ShutdownOp,
    Field(discriminator="type"),
]
"""Discriminated union of all submission operations."""


def _new_id() -> str:
    return str(uuid.uuid4())


class Submission(BaseModel):
    """One outbound message: a fresh id plus an operation."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=_new_id, description="Unique submission id")
    op: Op


def decision_for(approved: bool) -> Decision:
    return "allow" if approved else "deny"


def user_input(text: str) -> Submission:
    return Submission(op=UserInputOp(items=[TextInput(text=text)]))


def exec_approval(approval_id: str, approved: bool) -> Submission:
    return Submission(
        op=ExecApprovalOp(id=approval_id, decision=decision_for(approved))
    )


def patch_approval(approval_id: str, approved: bool) -> Submission:
    return Submission(
        op=PatchApprovalOp(id=approval_id, decision=decision_for(approved))
    )


def interrupt() -> Submission:
    return Submission(op=InterruptOp())


def shutdown() -> Submission:
    return Submission(op=ShutdownOp())
