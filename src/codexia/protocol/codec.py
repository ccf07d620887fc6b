"""Line codec — one JSON document per protocol line."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from codexia.errors import DecodeError, EncodeError
from codexia.protocol.events import CodexEvent, UnknownEventMsg
from codexia.protocol.submissions import Submission

logger = logging.getLogger(__name__)


def encode_submission(submission: Submission) -> str:
    """Serialize *submission* to a single line of JSON (no trailing newline)."""
    try:
        line = submission.model_dump_json()
    except (ValueError, TypeError) as exc:
        msg = f"Cannot encode submission {submission.id}: {exc}"
        raise EncodeError(msg) from exc
    # Compact JSON escapes control characters, so this only guards misuse.
    if "\n" in line:
        msg = f"Encoded submission {submission.id} spans multiple lines"
        raise EncodeError(msg)
    return line


def decode_event(line: str) -> CodexEvent:
    """Parse one stdout line into a :class:`CodexEvent`.

    Payloads are not interpreted beyond routing: an unknown kind, or a known
    kind whose fields do not fit its model, decodes to :class:`UnknownEventMsg`
    with the raw object kept.

    Raises:
        DecodeError: The line is not JSON, not an object, or lacks a
            valid ``id``/``msg`` envelope.
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as exc:
        msg = f"invalid JSON: {exc}"
        raise DecodeError(msg) from exc

    if not isinstance(data, dict):
        msg = f"expected a JSON object, got {type(data).__name__}"
        raise DecodeError(msg)

    try:
        return CodexEvent.model_validate(data)
    except ValidationError as exc:
        event = _as_unknown(data)
        if event is None:
            msg = f"not a protocol event: {exc.error_count()} validation error(s)"
            raise DecodeError(msg) from exc
        logger.debug(
            "Event %r did not match its model (%d error(s)), kept raw",
            event.kind,
            exc.error_count(),
        )
        return event


def _as_unknown(data: dict[str, Any]) -> CodexEvent | None:
    """Re-decode an envelope whose known payload failed validation.

    Returns ``None`` when the envelope itself (``id`` and ``msg``) is bad.
    """
    msg = data.get("msg")
    if not isinstance(msg, dict):
        return None
    try:
        return CodexEvent.model_validate(
            {**data, "msg": UnknownEventMsg.model_validate(msg)}
        )
    except ValidationError:
        return None
