from __future__ import annotations

import json
import re

from loguru import logger
from pydantic import ValidationError

from species_stream.models.events import StreamEvent

_DATA_PREFIX = re.compile(r"^data:\s*")
# Other SSE fields carry no record payload.
_SSE_FIELDS = ("event:", "id:", "retry:")
_EXCERPT_CHARS = 120


def _excerpt(text: str) -> str:
    if len(text) > _EXCERPT_CHARS:
        return text[:_EXCERPT_CHARS] + "..."
    return text


def strip_prefix(line: str) -> str | None:
    """Return the JSON payload of a line, or None for SSE lines that carry none."""
    text = line.strip()
    if not text or text.startswith(":"):
        return None
    if text.startswith(_SSE_FIELDS):
        return None
    return _DATA_PREFIX.sub("", text, count=1).strip() or None


def parse_record(line: str) -> StreamEvent | None:
    """Parse one logical line into a StreamEvent.

    Best effort: a corrupt record is logged and dropped, the caller keeps
    reading.
    """
    payload = strip_prefix(line)
    if payload is None:
        return None

    try:
        raw = json.loads(payload)
    except json.JSONDecodeError as exc:
        logger.warning(f"Skipping unparsable stream record ({exc.msg}): {_excerpt(payload)}")
        return None

    if not isinstance(raw, dict):
        logger.warning(f"Skipping non-object stream record: {_excerpt(payload)}")
        return None

    try:
        return StreamEvent.model_validate(raw)
    except ValidationError as exc:
        logger.warning(
            f"Skipping invalid stream record ({exc.error_count()} errors): {_excerpt(payload)}"
        )
        return None
