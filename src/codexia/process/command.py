"""Command builder — turns a CodexConfig into a ``codex proto`` invocation."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from codexia.config.models import CodexConfig, normalize_sandbox_mode
from codexia.errors import DiscoveryFailed
from codexia.process.discovery import discover_codex_command

logger = logging.getLogger(__name__)

#: Machine-protocol subcommand (as opposed to the interactive TUI).
PROTO_SUBCOMMAND = "proto"

#: Extra ``-c`` overrides applied when reasoning output is forced on.
_FORCE_REASONING_OVERRIDES = (
    "show_raw_agent_reasoning=true",
    "model_reasoning_effort=high",
    "model_reasoning_summary=detailed",
)

Discover = Callable[[], Path | None]


@dataclass(frozen=True)
class CodexCommand:
    """A resolved invocation: program, ordered arguments, working directory."""

    program: str
    args: list[str] = field(default_factory=list)
    cwd: str | None = None

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]


def build_command(
    config: CodexConfig,
    *,
    force_reasoning: bool = False,
    discover: Discover = discover_codex_command,
) -> CodexCommand:
    """Build the ``codex proto`` command line for *config*.

    ``codex`` lets a later ``-c key=value`` override an earlier one, so the
    order here (provider, model, approval policy, sandbox, forced reasoning,
    then custom args) is what gives custom args the last word.

    Raises:
        DiscoveryFailed: No ``codex_path`` configured and none discovered.
    """
    program = _resolve_program(config, discover)

    args: list[str] = [PROTO_SUBCOMMAND]

    if config.use_oss:
        args.extend(["-c", "model_provider=oss"])

    if config.model:
        args.extend(["-c", f"model={config.model}"])

    if config.approval_policy:
        args.extend(["-c", f"approval_policy={config.approval_policy}"])

    if config.sandbox_mode:
        mode = normalize_sandbox_mode(config.sandbox_mode)
        if mode != config.sandbox_mode:
            logger.warning(
                "Unknown sandbox mode %r, falling back to %s",
                config.sandbox_mode,
                mode,
            )
        args.extend(["-c", f"sandbox_mode={mode}"])

    if force_reasoning:
        for override in _FORCE_REASONING_OVERRIDES:
            args.extend(["-c", override])

    args.extend(config.custom_args)

    cwd = config.working_directory or None
    return CodexCommand(program=program, args=args, cwd=cwd)


def _resolve_program(config: CodexConfig, discover: Discover) -> str:
    if config.codex_path:
        return config.codex_path
    found = discover()
    if found is None:
        raise DiscoveryFailed()
    return str(found)
