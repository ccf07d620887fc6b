"""Load, validate, and resolve codexia.yaml configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from codexia.config.models import CodexiaConfig

DEFAULT_CONFIG_NAME = "codexia.yaml"

_TRUE_VALUES = {"1", "true", "TRUE"}


class ConfigError(Exception):
    """User-facing configuration error."""


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> CodexiaConfig:
    """Load and validate a codexia.yaml file.

    Args:
        path: Explicit config file path. If None, uses codexia.yaml in the
              current directory when present and defaults otherwise.
        environ: Environment to read toggles from (defaults to os.environ,
                 after loading any .env next to the config file).

    Returns:
        A validated CodexiaConfig instance.

    Raises:
        ConfigError: On missing explicit file, bad YAML, or validation failure.
    """
    config_path = _resolve_path(path)
    raw: dict[str, Any] = {}
    if config_path is not None:
        raw = _read_yaml(config_path)
        _load_env(config_path.parent)
    else:
        _load_env(Path.cwd())

    env = os.environ if environ is None else environ
    _apply_env_toggles(raw, env)
    return _validate(raw)


def _resolve_path(path: Path | None) -> Path | None:
    if path is not None:
        resolved = Path(path)
        if not resolved.is_file():
            msg = f"Config file not found: {resolved}"
            raise ConfigError(msg)
        return resolved

    default = Path.cwd() / DEFAULT_CONFIG_NAME
    if default.is_file():
        return default
    return None


def _read_yaml(path: Path) -> dict[str, Any]:
    """Parse *path*; an empty document counts as an empty mapping."""
    try:
        with path.open(encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        msg = f"Cannot read config file {path}: {exc}"
        raise ConfigError(msg) from exc
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        where = f" at line {mark.line + 1}, column {mark.column + 1}" if mark else ""
        msg = f"Invalid YAML in {path.name}{where}"
        raise ConfigError(msg) from exc

    match data:
        case None:
            return {}
        case dict():
            return data
        case _:
            kind = type(data).__name__
            msg = f"Expected a YAML mapping at the top of {path.name}, got {kind}"
            raise ConfigError(msg)


def _load_env(config_dir: Path) -> None:
    env_path = config_dir / ".env"
    if env_path.is_file():
        load_dotenv(env_path)


def _apply_env_toggles(raw: dict[str, Any], env: Mapping[str, str]) -> None:
    """Overlay the CODEX_* / CODEXIA_* environment toggles onto ``runtime``."""
    runtime = raw.get("runtime")
    if runtime is None:
        runtime = {}
        raw["runtime"] = runtime
    if not isinstance(runtime, dict):
        return

    if env.get("CODEX_FORCE_REASONING") == "1":
        runtime["force_reasoning"] = True
    if env.get("CODEX_TTY") == "1":
        runtime["use_tty"] = True
    if env.get("CODEXIA_DEBUG_LOG") in _TRUE_VALUES:
        runtime["debug_log"] = True
    log_path = env.get("CODEXIA_LOG_PATH")
    if log_path:
        runtime["log_path"] = log_path


def _validate(raw: dict[str, Any]) -> CodexiaConfig:
    try:
        return CodexiaConfig.model_validate(raw)
    except ValidationError as exc:
        lines = [_describe(err) for err in exc.errors()]
        msg = "Config validation failed:\n" + "\n".join(lines)
        raise ConfigError(msg) from exc


def _describe(err: Mapping[str, Any]) -> str:
    """Render one pydantic error as ``  codex.model: <reason>``."""
    where = ".".join(str(part) for part in err["loc"]) or "<root>"
    reason = err["msg"]
    if err["type"] == "missing":
        reason = "required setting is missing"
    elif err["type"] == "extra_forbidden":
        reason = "unknown setting"
    return f"  {where}: {reason}"
