"""Pydantic v2 models for codex session configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

SandboxMode = Literal["read-only", "workspace-write", "danger-full-access"]

#: Sandbox modes understood by ``codex proto``.
KNOWN_SANDBOX_MODES: tuple[str, ...] = (
    "read-only",
    "workspace-write",
    "danger-full-access",
)

#: Mode used for any unrecognized sandbox string.
DEFAULT_SANDBOX_MODE: SandboxMode = "workspace-write"

DEFAULT_LOG_PATH = Path("/tmp/codexia.log")


def normalize_sandbox_mode(value: str) -> str:
    """Map *value* onto a known sandbox mode, degrading to workspace-write."""
    if value in KNOWN_SANDBOX_MODES:
        return value
    return DEFAULT_SANDBOX_MODE


class CodexConfig(BaseModel):
    """Settings for one codex session, frozen once the session starts."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    codex_path: str | None = Field(
        default=None,
        description="Explicit codex binary; discovered on PATH when unset",
    )
    model: str = Field(default="", description="Model identifier, e.g. 'gpt-5'")
    approval_policy: str = Field(
        default="",
        description="Approval policy passed through as approval_policy=<value>",
    )
    sandbox_mode: str = Field(
        default="",
        description="read-only, workspace-write or danger-full-access",
    )
    use_oss: bool = Field(
        default=False,
        description="Route requests to the local open-source provider",
    )
    working_directory: str = Field(
        default="",
        description="Working directory for the codex process (empty = inherit)",
    )
    custom_args: tuple[str, ...] = Field(
        default=(),
        description="Raw arguments appended after all generated flags",
    )

    @field_validator("custom_args", mode="before")
    @classmethod
    def _coerce_args(cls, value: object) -> object:
        if isinstance(value, list):
            return tuple(value)
        return value


class RuntimeSettings(BaseModel):
    """Process-wide knobs, read once at startup and passed explicitly."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    force_reasoning: bool = Field(
        default=False,
        description="Ask codex for raw reasoning and detailed summaries",
    )
    use_tty: bool = Field(
        default=False,
        description="Wrap the process in a pseudo-terminal for line flushing",
    )
    debug_log: bool = Field(default=False, description="Enable the debug log file")
    log_path: Path = Field(
        default=DEFAULT_LOG_PATH,
        description="Destination of the debug log file",
    )
    shutdown_timeout: float = Field(
        default=2.0,
        ge=0,
        description="Seconds close() waits for pumps and process exit",
    )
    drain_timeout: float = Field(
        default=0.5,
        ge=0,
        description="Seconds close() lets the writer flush before killing codex",
    )


class CodexiaConfig(BaseModel):
    """Top-level codexia.yaml configuration."""

    model_config = ConfigDict(extra="forbid")

    version: str = Field(default="1", description="Config schema version")
    codex: CodexConfig = Field(
        default_factory=CodexConfig,
        description="Session defaults",
    )
    runtime: RuntimeSettings = Field(
        default_factory=RuntimeSettings,
        description="Runtime settings",
    )
