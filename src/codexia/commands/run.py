"""codexia run — send one prompt to codex and stream its events as JSONL."""

from __future__ import annotations

import asyncio
import contextlib
import json
import uuid
from pathlib import Path
from typing import Any

import click

from codexia.config.models import CodexConfig, RuntimeSettings
from codexia.config.parser import ConfigError, load_config
from codexia.errors import CodexiaError
from codexia.logs import configure_logging
from codexia.process.launcher import SpawnStrategy
from codexia.protocol.events import (
    ApplyPatchApprovalRequestMsg,
    CodexEvent,
    ErrorMsg,
    ExecApprovalRequestMsg,
    ShutdownCompleteMsg,
    TaskCompleteMsg,
    TurnAbortedMsg,
    UnknownEventMsg,
)
from codexia.session.client import CodexClient
from codexia.session.sinks import QueueSink


@click.command()
@click.argument("prompt")
@click.option(
    "-f", "--file", "config_file", type=click.Path(), help="Config file path."
)
@click.option("-m", "--model", default=None, help="Model identifier.")
@click.option(
    "-s",
    "--sandbox",
    "sandbox_mode",
    default=None,
    help="read-only, workspace-write or danger-full-access.",
)
@click.option(
    "-a", "--approval-policy", default=None, help="codex approval policy."
)
@click.option(
    "-C",
    "--cwd",
    "working_directory",
    type=click.Path(file_okay=False),
    default=None,
    help="Working directory for codex.",
)
@click.option("--oss", "use_oss", is_flag=True, help="Use the local OSS provider.")
@click.option(
    "--auto-approve",
    is_flag=True,
    help="Allow every exec/patch approval request (default: deny).",
)
def run(
    prompt: str,
    config_file: str | None,
    model: str | None,
    sandbox_mode: str | None,
    approval_policy: str | None,
    working_directory: str | None,
    use_oss: bool,
    auto_approve: bool,
) -> None:
    """Run PROMPT through codex, printing each event as one JSON line."""
    try:
        config = load_config(Path(config_file) if config_file else None)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    overrides: dict[str, Any] = {
        "model": model,
        "sandbox_mode": sandbox_mode,
        "approval_policy": approval_policy,
        "working_directory": working_directory,
    }
    update = {k: v for k, v in overrides.items() if v is not None}
    if use_oss:
        update["use_oss"] = True
    codex_config = config.codex.model_copy(update=update)

    configure_logging(config.runtime)

    try:
        code = asyncio.run(
            run_prompt(codex_config, config.runtime, prompt, auto_approve=auto_approve)
        )
    except CodexiaError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    raise SystemExit(code)


async def run_prompt(
    config: CodexConfig,
    settings: RuntimeSettings,
    prompt: str,
    *,
    auto_approve: bool = False,
    strategy: SpawnStrategy | None = None,
) -> int:
    """Drive one turn: start, send *prompt*, stream events, close.

    Returns the process exit code for the CLI: 0 when the task completed,
    1 on an error event, an aborted turn, or codex exiting early.
    """
    session_id = uuid.uuid4().hex[:12]
    sink = QueueSink()
    channel = sink.channel(session_id)

    client = await CodexClient.start(
        session_id, config, sink, settings=settings, strategy=strategy
    )
    stderr_task = asyncio.create_task(_echo_stderr(channel.errors))
    stdout_task = client.pump_tasks[1]

    try:
        await client.send_user_input(prompt)
        while True:
            getter = asyncio.ensure_future(channel.events.get())
            done, _ = await asyncio.wait(
                {getter, stdout_task}, return_when=asyncio.FIRST_COMPLETED
            )
            if getter not in done:
                getter.cancel()
                click.echo("codex exited before the task completed", err=True)
                return 1

            event = getter.result()
            click.echo(_render(event))
            result = await _handle_event(client, event, auto_approve)
            if result is not None:
                return result
    finally:
        await client.close()
        stderr_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await stderr_task


async def _handle_event(
    client: CodexClient, event: CodexEvent, auto_approve: bool
) -> int | None:
    """Answer approval requests; return an exit code when the run is over."""
    match event.msg:
        case ExecApprovalRequestMsg(call_id=call_id, command=command):
            click.echo(f"[exec {_verdict(auto_approve)}] {' '.join(command)}", err=True)
            await client.approve_execution(call_id, auto_approve)
        case ApplyPatchApprovalRequestMsg(call_id=call_id):
            click.echo(f"[patch {_verdict(auto_approve)}] {call_id}", err=True)
            await client.approve_patch(call_id, auto_approve)
        case TaskCompleteMsg() | ShutdownCompleteMsg():
            return 0
        case ErrorMsg(message=message):
            click.echo(f"codex error: {message}", err=True)
            return 1
        case TurnAbortedMsg(reason=reason):
            click.echo(f"turn aborted: {reason}", err=True)
            return 1
        case UnknownEventMsg(
            type="exec_approval_request", raw={"call_id": str() as call_id}
        ):
            click.echo(f"[exec {_verdict(auto_approve)}] {call_id}", err=True)
            await client.approve_execution(call_id, auto_approve)
        case UnknownEventMsg(
            type="apply_patch_approval_request", raw={"call_id": str() as call_id}
        ):
            click.echo(f"[patch {_verdict(auto_approve)}] {call_id}", err=True)
            await client.approve_patch(call_id, auto_approve)
    return None


async def _echo_stderr(errors: asyncio.Queue[str]) -> None:
    while True:
        line = await errors.get()
        click.echo(line, err=True)


def _verdict(approved: bool) -> str:
    return "allowed" if approved else "denied"


def _render(event: CodexEvent) -> str:
    """The event as codex sent it: no model defaults, unknown payloads raw."""
    data = event.model_dump(mode="json", exclude_unset=True)
    if isinstance(event.msg, UnknownEventMsg):
        data["msg"] = event.msg.raw
    return json.dumps(data, ensure_ascii=False)
