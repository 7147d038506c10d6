from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class StatsSnapshot(BaseModel):
    checked: int = 0
    found: int = 0
    new_found: int = 0
    total: int = 0
    cached_count: int = 0


class CatalogEntryResponse(BaseModel):
    scientific_name: str
    name: str = ""
    local_name: str | None = None
    habitat: str = ""
    difficulty: str = "Easy"
    season: str = ""
    is_toxic: bool = False
    danger_type: str | None = None
    image: str | None = None
    slug: str | None = None
    risk_badge: str | None = None
    flagged_for_review: bool = False
    probability_score: float | None = None
    id: str | None = None


class SessionSnapshot(BaseModel):
    session_id: str | None = None
    profile: str
    previously_known: list[CatalogEntryResponse]
    newly_discovered: list[CatalogEntryResponse]
    combined: list[CatalogEntryResponse]
    is_streaming: bool
    is_complete: bool
    error: str | None = None
    progress: float = 0
    status_message: str = ""
    stats: StatsSnapshot
    location: str | None = None
    areas: list[dict[str, Any]] = []
    remote_session_id: str | None = None
    transcript: str = ""
    results: list[Any] = []
