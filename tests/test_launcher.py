"""Tests for spawn strategies, shell quoting and binary discovery."""

from __future__ import annotations

import asyncio
import shlex
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from codexia.errors import SpawnFailed, VersionCheckFailed
from codexia.process.command import CodexCommand
from codexia.process.discovery import check_codex_version, discover_codex_command
from codexia.process.launcher import (
    MAX_LINE_BYTES,
    DirectSpawn,
    PtyWrappedSpawn,
    shell_command_line,
    spawn_with_pipes,
    strategy_for,
)


def _piped_process() -> MagicMock:
    proc = MagicMock()
    proc.pid = 99
    proc.stdin = MagicMock()
    proc.stdout = MagicMock()
    proc.stderr = MagicMock()
    return proc


# ------------------------------------------------------------------ #
# Shell quoting
# ------------------------------------------------------------------ #


class TestShellCommandLine:
    @pytest.mark.parametrize(
        "argv",
        [
            ["codex", "proto"],
            ["/path with space/codex", "proto", "-c", "model=gpt 5"],
            ["codex", "it's", "\"quoted\"", "$HOME", "`cmd`", "a;b"],
            ["codex", ""],
            ["codex", "-c", "sandbox_mode=workspace-write", "*"],
        ],
    )
    def test_round_trips_through_shell_parsing(self, argv: list[str]) -> None:
        assert shlex.split(shell_command_line(argv)) == argv

    def test_single_quote_escaped(self) -> None:
        line = shell_command_line(["echo", "it's"])
        assert line == "echo 'it'\"'\"'s'"

    def test_empty_argument_kept(self) -> None:
        assert shell_command_line(["codex", ""]) == "codex ''"


# ------------------------------------------------------------------ #
# Strategies
# ------------------------------------------------------------------ #


class TestPtyWrappedSpawn:
    _CMD = CodexCommand(program="/bin/codex", args=["proto", "-c", "model=m"])

    def test_prefers_script(self) -> None:
        strategy = PtyWrappedSpawn(which=lambda name: f"/usr/bin/{name}")
        argv = strategy.wrap(self._CMD)
        assert argv[:3] == ["script", "-qf", "-c"]
        assert argv[-1] == "/dev/null"
        assert shlex.split(argv[3]) == ["/bin/codex", "proto", "-c", "model=m"]

    def test_falls_back_to_stdbuf(self) -> None:
        strategy = PtyWrappedSpawn(
            which=lambda name: "/usr/bin/stdbuf" if name == "stdbuf" else None
        )
        assert strategy.wrap(self._CMD) == [
            "stdbuf",
            "-oL",
            "-eL",
            "/bin/codex",
            "proto",
            "-c",
            "model=m",
        ]

    def test_falls_back_to_direct(self) -> None:
        strategy = PtyWrappedSpawn(which=lambda name: None)
        assert strategy.wrap(self._CMD) == self._CMD.argv

    async def test_spawn_uses_wrapped_argv_and_cwd(self) -> None:
        strategy = PtyWrappedSpawn(which=lambda name: None)
        cmd = CodexCommand(program="codex", args=["proto"], cwd="/work")
        with patch(
            "asyncio.create_subprocess_exec", return_value=_piped_process()
        ) as mock_exec:
            await strategy.spawn(cmd)
        assert mock_exec.call_args[0] == ("codex", "proto")
        assert mock_exec.call_args[1]["cwd"] == "/work"


class TestStrategyFor:
    def test_direct_by_default(self) -> None:
        assert isinstance(strategy_for(False), DirectSpawn)

    def test_tty(self) -> None:
        assert isinstance(strategy_for(True), PtyWrappedSpawn)


class TestSpawnWithPipes:
    async def test_requests_three_pipes(self) -> None:
        proc = _piped_process()
        with patch("asyncio.create_subprocess_exec", return_value=proc) as mock_exec:
            handles = await DirectSpawn().spawn(
                CodexCommand(program="codex", args=["proto"])
            )

        kwargs = mock_exec.call_args[1]
        assert kwargs["stdin"] == asyncio.subprocess.PIPE
        assert kwargs["stdout"] == asyncio.subprocess.PIPE
        assert kwargs["stderr"] == asyncio.subprocess.PIPE
        assert kwargs["cwd"] is None
        assert kwargs["limit"] == MAX_LINE_BYTES
        assert "env" not in kwargs
        assert handles.process is proc
        assert handles.stdin is proc.stdin

    async def test_missing_binary(self) -> None:
        with patch(
            "asyncio.create_subprocess_exec",
            side_effect=FileNotFoundError("no such file"),
        ):
            with pytest.raises(SpawnFailed) as info:
                await spawn_with_pipes(["codex", "proto"], None)
        assert isinstance(info.value.cause, FileNotFoundError)
        assert info.value.program == "codex"

    async def test_permission_denied(self) -> None:
        with patch(
            "asyncio.create_subprocess_exec",
            side_effect=PermissionError("denied"),
        ):
            with pytest.raises(SpawnFailed, match="denied"):
                await spawn_with_pipes(["codex"], None)

    async def test_missing_pipe_raises(self) -> None:
        proc = _piped_process()
        proc.stderr = None
        with patch("asyncio.create_subprocess_exec", return_value=proc):
            with pytest.raises(RuntimeError, match="pipes"):
                await spawn_with_pipes(["codex"], None)

    async def test_real_process_bad_cwd(self, tmp_path: Path) -> None:
        with pytest.raises(SpawnFailed):
            await spawn_with_pipes(["true"], str(tmp_path / "does-not-exist"))


# ------------------------------------------------------------------ #
# Discovery and version check
# ------------------------------------------------------------------ #


class TestDiscovery:
    def test_uses_path_first(self) -> None:
        with patch("shutil.which", return_value="/usr/bin/codex"):
            assert discover_codex_command() == Path("/usr/bin/codex")

    def test_fallback_directory(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        bin_dir = tmp_path / ".local" / "bin"
        bin_dir.mkdir(parents=True)
        binary = bin_dir / "codex"
        binary.write_text("#!/bin/sh\n")
        binary.chmod(0o755)
        monkeypatch.setenv("HOME", str(tmp_path))

        with patch("shutil.which", return_value=None):
            assert discover_codex_command() == binary

    def test_not_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        with (
            patch("shutil.which", return_value=None),
            patch("os.access", return_value=False),
        ):
            assert discover_codex_command() is None


class TestVersionCheck:
    async def test_success(self) -> None:
        proc = MagicMock()
        proc.returncode = 0
        proc.communicate = AsyncMock(return_value=(b"codex-cli 0.40.0\n", b""))
        with patch("asyncio.create_subprocess_exec", return_value=proc) as mock_exec:
            result = await check_codex_version("/bin/codex")
        assert result == "codex-cli 0.40.0"
        assert mock_exec.call_args[0] == ("/bin/codex", "-V")

    async def test_nonzero_exit(self) -> None:
        proc = MagicMock()
        proc.returncode = 2
        proc.communicate = AsyncMock(return_value=(b"", b"bad flag\n"))
        with patch("asyncio.create_subprocess_exec", return_value=proc):
            with pytest.raises(VersionCheckFailed, match="bad flag"):
                await check_codex_version("/bin/codex")

    async def test_spawn_failure(self) -> None:
        with patch(
            "asyncio.create_subprocess_exec",
            side_effect=FileNotFoundError("gone"),
        ):
            with pytest.raises(VersionCheckFailed, match="Failed to execute"):
                await check_codex_version("/nowhere/codex")

    async def test_defaults_to_discovered_binary(self) -> None:
        proc = MagicMock()
        proc.returncode = 0
        proc.communicate = AsyncMock(return_value=(b"1.0\n", b""))
        with (
            patch(
                "codexia.process.discovery.discover_codex_command",
                return_value=Path("/found/codex"),
            ),
            patch("asyncio.create_subprocess_exec", return_value=proc) as mock_exec,
        ):
            await check_codex_version()
        assert mock_exec.call_args[0][0] == "/found/codex"
