"""Parse server-sent completion records into generation events."""

from __future__ import annotations

import json
import logging

from schemas.domains import DeltaEvent, GenerationEvent, MalformedEvent, TerminalEvent


logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
TERMINAL_SENTINEL = "[DONE]"


def parse_event(line: str) -> GenerationEvent | None:
    """Turn one logical line into a generation event.

    Returns None for blank lines. Lines that fail to parse come back as
    `MalformedEvent` rather than raising.
    """
    data = line.strip()
    if data.startswith(DATA_PREFIX):
        data = data[len(DATA_PREFIX) :]
    if not data:
        return None

    if TERMINAL_SENTINEL in data:
        return TerminalEvent()

    try:
        text = _delta_content(json.loads(data))
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        logger.debug("Failed to parse completion record (%s): %s", type(exc).__name__, data)
        return MalformedEvent(raw=data)
    return DeltaEvent(text=text)


def _delta_content(record: object) -> str:
    """Extract `choices[0].delta.content`.

    A delta without `content` (the role-only opener or the empty closing
    delta) is an empty fragment, not an error.
    """
    if not isinstance(record, dict):
        raise TypeError("record is not an object")
    choice = record["choices"][0]
    delta = choice["delta"]
    if not isinstance(delta, dict):
        raise TypeError("delta is not an object")
    content = delta.get("content")
    if content is None:
        return ""
    if not isinstance(content, str):
        raise TypeError("delta content is not a string")
    return content
