from __future__ import annotations

from enum import Enum
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError, ValidatorFunctionWrapHandler, field_validator


class EventKind(str, Enum):
    INIT = "init"
    STATUS = "status"
    CACHED_ITEM = "cached_item"
    NEW_ITEM = "new_item"
    PROGRESS = "progress"
    COMPLETE = "complete"
    ERROR = "error"
    # Conversational search variant
    CHUNK = "chunk"
    RESULT = "result"
    SESSION_CREATED = "session_created"


TERMINAL_KINDS = frozenset({EventKind.COMPLETE, EventKind.ERROR})


class StreamEvent(BaseModel):
    """One JSON record read off a discovery stream."""

    model_config = ConfigDict(extra="allow")

    type: str
    message: str | None = None
    data: Any = None
    location: str | None = None

    # progress counters
    count: int | None = None
    checked: int | None = None
    found: int | None = None
    new_found: int | None = None
    total: int | None = None
    percentage: float | None = None
    cached_count: int | None = None

    # completion summary
    total_found: int | None = None
    newly_discovered: int | None = None
    total_checked: int | None = None
    cached: int | None = None
    total_species: int | None = None

    # area discovery
    fao_areas: list[dict[str, Any]] | None = None

    # search agent
    session_id: str | None = None
    content: str | None = None

    @field_validator("session_id", mode="before")
    @classmethod
    def _numeric_session_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator(
        "message", "location", "count", "checked", "found", "new_found", "total",
        "percentage", "cached_count", "total_found", "newly_discovered", "total_checked",
        "cached", "total_species", "fao_areas", "session_id", "content",
        mode="wrap",
    )
    @classmethod
    def _drop_mistyped(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        # Only `type` is required to be well formed; a bad optional field is unset.
        try:
            return handler(value)
        except ValidationError:
            logger.debug(f"Ignoring mistyped stream field value: {value!r}")
            return None
