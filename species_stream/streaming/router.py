from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from loguru import logger

from species_stream.models.catalog import CatalogEntry
from species_stream.models.events import EventKind, StreamEvent
from species_stream.streaming.state import SessionState

if TYPE_CHECKING:
    from species_stream.profiles import StreamProfile

Handler = Callable[[SessionState, StreamEvent], None]


class EventRouter:
    """Dispatch table from event kind to the state update it causes."""

    def __init__(self, profile: StreamProfile):
        self.profile = profile
        self._handlers: dict[EventKind, Handler] = {
            EventKind.INIT: self._on_init,
            EventKind.STATUS: self._on_status,
            EventKind.CACHED_ITEM: self._on_cached_item,
            EventKind.NEW_ITEM: self._on_new_item,
            EventKind.PROGRESS: self._on_progress,
            EventKind.COMPLETE: self._on_complete,
            EventKind.ERROR: self._on_error,
            EventKind.CHUNK: self._on_chunk,
            EventKind.RESULT: self._on_result,
            EventKind.SESSION_CREATED: self._on_session_created,
        }

    def dispatch(self, state: SessionState, event: StreamEvent) -> EventKind | None:
        """Apply one event to ``state``. Returns the kind applied, or None if ignored."""
        if state.frozen:
            logger.debug(f"Ignoring '{event.type}' event on a finished session")
            return None

        kind = self.profile.resolve_kind(event.type)
        if kind is None:
            logger.debug(f"Ignoring unknown stream event type '{event.type}'")
            return None

        self._handlers[kind](state, event)
        return kind

    # --- catalog ---

    def _transform(self, raw: Any, *, known: bool = False) -> CatalogEntry | None:
        if not isinstance(raw, dict):
            logger.warning(f"Skipping item with non-object payload: {raw!r}")
            return None
        try:
            entry = self.profile.to_known_entry(raw) if known else self.profile.transform(raw)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning(f"Skipping item the {self.profile.name} transform rejected: {exc}")
            return None
        if not entry.scientific_name:
            logger.warning(f"Skipping item without a scientific name: {raw}")
            return None
        return entry

    def _on_cached_item(self, state: SessionState, event: StreamEvent) -> None:
        entry = self._transform(event.data, known=True)
        if entry is not None and not state.store.add_known(entry):
            logger.debug(f"Duplicate species discarded: {entry.scientific_name}")

    def _on_new_item(self, state: SessionState, event: StreamEvent) -> None:
        self._add_discovered(state, event.data)

    def _add_discovered(self, state: SessionState, raw: Any) -> None:
        entry = self._transform(raw)
        if entry is not None and not state.store.add_discovered(entry):
            logger.debug(f"Duplicate species discarded: {entry.scientific_name}")

    # --- status / progress ---

    @staticmethod
    def _note_context(state: SessionState, event: StreamEvent) -> None:
        if event.location:
            state.location = event.location
        if event.fao_areas:
            state.areas = list(event.fao_areas)

    def _on_init(self, state: SessionState, event: StreamEvent) -> None:
        state.status_message = event.message or "Initializing..."
        self._note_context(state, event)

    def _on_status(self, state: SessionState, event: StreamEvent) -> None:
        state.status_message = event.message or ""
        if event.cached_count is not None:
            state.aggregator.seed_cached_count(event.cached_count)
        self._note_context(state, event)

    def _on_progress(self, state: SessionState, event: StreamEvent) -> None:
        state.aggregator.apply_progress(
            event.percentage,
            checked=event.checked,
            found=event.found,
            new_found=event.new_found,
            total=event.total,
        )

    # --- terminal ---

    def _on_complete(self, state: SessionState, event: StreamEvent) -> None:
        state.aggregator.apply_summary(
            total_found=event.total_found,
            newly_discovered=event.newly_discovered,
            total_checked=event.total_checked,
            cached=event.cached,
        )
        state.status_message = event.message or "Complete"
        state.is_complete = True
        state.is_streaming = False

    def _on_error(self, state: SessionState, event: StreamEvent) -> None:
        state.fail(event.message or "An error occurred")

    # --- search agent ---

    def _on_session_created(self, state: SessionState, event: StreamEvent) -> None:
        session_id = event.session_id
        if session_id is None and isinstance(event.data, dict):
            session_id = event.data.get("id") or event.data.get("session_id")
        if session_id:
            state.remote_session_id = str(session_id)

    def _on_chunk(self, state: SessionState, event: StreamEvent) -> None:
        text = event.content if event.content is not None else event.message
        if text:
            state.transcript += text

    def _on_result(self, state: SessionState, event: StreamEvent) -> None:
        if event.data is None:
            return
        state.results.append(event.data)
        if not isinstance(event.data, dict):
            return
        species = event.data.get("species")
        if species is None:
            return
        if not isinstance(species, list):
            logger.warning(f"Skipping result species that is not a list: {species!r}")
            return
        for raw in species:
            self._add_discovered(state, raw)
