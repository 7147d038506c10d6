from __future__ import annotations

from typing import Any

from species_stream.models.catalog import CatalogEntry
from species_stream.models.schemas import (
    CatalogEntryResponse,
    SessionSnapshot,
    StatsSnapshot,
)
from species_stream.streaming.progress import ProgressAggregator, ProgressStats
from species_stream.streaming.store import CatalogStore


class SessionState:
    """Observable state of one stream session.

    Only the event router and the session controller write to it. Once the
    session reaches complete, error or cancellation the state is frozen.
    """

    def __init__(self) -> None:
        self.store = CatalogStore()
        self.aggregator = ProgressAggregator()
        self.is_streaming = False
        self.is_complete = False
        self.error: str | None = None
        self.status_message = ""
        self.cancelled = False

        self.location: str | None = None
        self.areas: list[dict[str, Any]] = []
        self.remote_session_id: str | None = None
        self.transcript = ""
        self.results: list[Any] = []

    @property
    def previously_known(self) -> list[CatalogEntry]:
        return self.store.previously_known

    @property
    def newly_discovered(self) -> list[CatalogEntry]:
        return self.store.newly_discovered

    @property
    def combined(self) -> list[CatalogEntry]:
        return self.store.combined

    @property
    def progress(self) -> float:
        return self.aggregator.percentage

    @property
    def stats(self) -> ProgressStats:
        return self.aggregator.stats

    @property
    def frozen(self) -> bool:
        return self.is_complete or self.error is not None or self.cancelled

    def fail(self, message: str) -> None:
        if self.frozen:
            return
        self.error = message
        self.is_streaming = False

    def to_snapshot(self, *, profile: str, session_id: str | None = None) -> SessionSnapshot:
        def _entries(entries: list[CatalogEntry]) -> list[CatalogEntryResponse]:
            return [CatalogEntryResponse(**entry.to_dict()) for entry in entries]

        stats = self.stats
        return SessionSnapshot(
            session_id=session_id,
            profile=profile,
            previously_known=_entries(self.previously_known),
            newly_discovered=_entries(self.newly_discovered),
            combined=_entries(self.combined),
            is_streaming=self.is_streaming,
            is_complete=self.is_complete,
            error=self.error,
            progress=self.progress,
            status_message=self.status_message,
            stats=StatsSnapshot(
                checked=stats.checked,
                found=stats.found,
                new_found=stats.new_found,
                total=stats.total,
                cached_count=stats.cached_count,
            ),
            location=self.location,
            areas=list(self.areas),
            remote_session_id=self.remote_session_id,
            transcript=self.transcript,
            results=list(self.results),
        )
