"""Tests for the codex command builder."""

from __future__ import annotations

from pathlib import Path

import pytest

from codexia.config.models import CodexConfig
from codexia.errors import DiscoveryFailed
from codexia.process.command import build_command

# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _found() -> Path:
    return Path("/usr/local/bin/codex")


def _missing() -> Path | None:
    return None


def _c_pairs(args: list[str]) -> list[str]:
    """Return the values following each ``-c`` flag, in order."""
    return [args[i + 1] for i, a in enumerate(args) if a == "-c"]


# ------------------------------------------------------------------ #
# Program resolution
# ------------------------------------------------------------------ #


class TestProgram:
    def test_explicit_path_used_verbatim(self) -> None:
        cmd = build_command(
            CodexConfig(codex_path="/opt/codex/bin/codex"), discover=_missing
        )
        assert cmd.program == "/opt/codex/bin/codex"
        assert cmd.args[0] == "proto"

    def test_discovered_path(self) -> None:
        cmd = build_command(CodexConfig(), discover=_found)
        assert cmd.program == "/usr/local/bin/codex"
        assert cmd.argv == ["/usr/local/bin/codex", "proto"]

    def test_discovery_failure(self) -> None:
        with pytest.raises(DiscoveryFailed, match="codex"):
            build_command(CodexConfig(), discover=_missing)

    def test_explicit_path_skips_discovery(self) -> None:
        calls: list[int] = []

        def discover() -> Path | None:
            calls.append(1)
            return None

        build_command(CodexConfig(codex_path="codex"), discover=discover)
        assert calls == []


# ------------------------------------------------------------------ #
# Arguments
# ------------------------------------------------------------------ #


class TestArguments:
    def test_model_only(self) -> None:
        cfg = CodexConfig(model="gpt-5", approval_policy="", sandbox_mode="")
        cmd = build_command(cfg, discover=_found)
        assert cmd.args == ["proto", "-c", "model=gpt-5"]

    def test_empty_config_is_bare_proto(self) -> None:
        assert build_command(CodexConfig(), discover=_found).args == ["proto"]

    def test_canonical_order(self) -> None:
        cfg = CodexConfig(
            use_oss=True,
            model="m",
            approval_policy="p",
            sandbox_mode="read-only",
            custom_args=["-c", "model=override", "--verbose"],
        )
        cmd = build_command(cfg, discover=_found)
        assert cmd.args == [
            "proto",
            "-c",
            "model_provider=oss",
            "-c",
            "model=m",
            "-c",
            "approval_policy=p",
            "-c",
            "sandbox_mode=read-only",
            "-c",
            "model=override",
            "--verbose",
        ]

    def test_custom_args_unmodified_and_last(self) -> None:
        cfg = CodexConfig(model="m", custom_args=["--flag with space", ""])
        cmd = build_command(cfg, discover=_found)
        assert cmd.args[-2:] == ["--flag with space", ""]

    @pytest.mark.parametrize(
        "mode", ["read-only", "workspace-write", "danger-full-access"]
    )
    def test_known_sandbox_modes_pass_through(self, mode: str) -> None:
        cmd = build_command(CodexConfig(sandbox_mode=mode), discover=_found)
        assert _c_pairs(cmd.args) == [f"sandbox_mode={mode}"]

    @pytest.mark.parametrize("mode", ["readonly", "full", "WORKSPACE-WRITE", " "])
    def test_unknown_sandbox_mode_degrades(self, mode: str) -> None:
        cmd = build_command(CodexConfig(sandbox_mode=mode), discover=_found)
        assert "sandbox_mode=workspace-write" in cmd.args

    def test_force_reasoning_after_sandbox_before_custom(self) -> None:
        cfg = CodexConfig(sandbox_mode="read-only", custom_args=["--x"])
        cmd = build_command(cfg, force_reasoning=True, discover=_found)
        assert _c_pairs(cmd.args) == [
            "sandbox_mode=read-only",
            "show_raw_agent_reasoning=true",
            "model_reasoning_effort=high",
            "model_reasoning_summary=detailed",
        ]
        assert cmd.args[-1] == "--x"


# ------------------------------------------------------------------ #
# Working directory
# ------------------------------------------------------------------ #


class TestWorkingDirectory:
    def test_empty_means_no_override(self) -> None:
        cmd = build_command(CodexConfig(), discover=_found)
        assert cmd.cwd is None

    def test_set_directory(self, tmp_path: Path) -> None:
        cmd = build_command(
            CodexConfig(working_directory=str(tmp_path)), discover=_found
        )
        assert cmd.cwd == str(tmp_path)
        assert str(tmp_path) not in cmd.args
