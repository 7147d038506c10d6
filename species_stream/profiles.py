"""Stream profiles: the backend discovery feeds this client knows how to consume.

Each profile bundles the endpoint, the wire names the producer uses for the
two item kinds, the entity transform, and the precondition for auto-start.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Mapping

from species_stream.config import settings
from species_stream.models.catalog import DIFFICULTIES, CatalogEntry
from species_stream.models.events import EventKind
from species_stream.tools.slugs import generate_fish_slug
from species_stream.tools.transport import StreamRequest

Transform = Callable[[dict[str, Any]], CatalogEntry]
RequestBuilder = Callable[[dict[str, Any]], StreamRequest]
Precondition = Callable[[dict[str, Any]], bool]

DISCOVERY_KINDS = frozenset(
    {
        EventKind.INIT,
        EventKind.STATUS,
        EventKind.CACHED_ITEM,
        EventKind.NEW_ITEM,
        EventKind.PROGRESS,
        EventKind.COMPLETE,
        EventKind.ERROR,
    }
)
SEARCH_KINDS = DISCOVERY_KINDS | {EventKind.CHUNK, EventKind.RESULT, EventKind.SESSION_CREATED}


def _always_ready(_params: dict[str, Any]) -> bool:
    return True


@dataclass(frozen=True)
class StreamProfile:
    name: str
    build_request: RequestBuilder
    transform: Transform
    transform_known: Transform | None = None
    aliases: Mapping[str, EventKind] = field(default_factory=dict)
    kinds: frozenset[EventKind] = DISCOVERY_KINDS
    ready: Precondition = _always_ready

    def resolve_kind(self, type_name: str) -> EventKind | None:
        kind = self.aliases.get(type_name)
        if kind is None:
            try:
                kind = EventKind(type_name)
            except ValueError:
                return None
        return kind if kind in self.kinds else None

    def to_known_entry(self, raw: dict[str, Any]) -> CatalogEntry:
        return (self.transform_known or self.transform)(raw)


# --- field helpers ---


def _first(raw: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return default


def _flag(raw: dict[str, Any], *keys: str, default: bool) -> bool:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return bool(value)
    return default


def _difficulty(value: Any) -> str:
    if isinstance(value, str) and value.strip().capitalize() in DIFFICULTIES:
        return value.strip().capitalize()
    return "Easy"


def _text(raw: dict[str, Any], *keys: str) -> str | None:
    value = _first(raw, *keys)
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    return str(value)


def _name(raw: dict[str, Any], default: str = "") -> str:
    return str(_first(raw, "name", "common_name", default=default))


def _scientific_name(raw: dict[str, Any]) -> str:
    return str(_first(raw, "scientific_name", "scientificName", default="")).strip()


# --- transforms ---


def known_fish_entry(raw: dict[str, Any], *, default_toxic: bool = False) -> CatalogEntry:
    """Full record for a species the backend already had on file."""
    return CatalogEntry(
        scientific_name=_scientific_name(raw),
        name=_name(raw),
        local_name=_text(raw, "local_name", "localName"),
        habitat=str(raw.get("habitat") or ""),
        difficulty=_difficulty(raw.get("difficulty")),
        season=str(raw.get("season") or ""),
        is_toxic=_flag(raw, "is_toxic", "isToxic", default=default_toxic),
        danger_type=_text(raw, "danger_type", "dangerType"),
        image=_text(raw, "image_url", "image"),
        slug=_text(raw, "slug"),
    )


def discovered_fish_entry(raw: dict[str, Any]) -> CatalogEntry:
    # Fresh discoveries only carry names, water type and an image.
    return CatalogEntry(
        scientific_name=_scientific_name(raw),
        name=_name(raw),
        habitat="Marine" if raw.get("water_type") == "saltwater" else "Freshwater",
        difficulty="Easy",
        season="Year-round",
        is_toxic=False,
        image=_text(raw, "image_url", "image"),
    )


def area_fish_entry(raw: dict[str, Any]) -> CatalogEntry:
    scientific_name = _scientific_name(raw)
    name = _name(raw)
    identifier = raw.get("id")
    return CatalogEntry(
        scientific_name=scientific_name,
        name=name,
        local_name=_text(raw, "local_name", "localName"),
        habitat=str(raw.get("habitat") or ""),
        difficulty=_difficulty(raw.get("difficulty")),
        season=str(raw.get("season") or ""),
        is_toxic=_flag(raw, "is_toxic", "isToxic", default=False),
        danger_type=_text(raw, "danger_type", "dangerType"),
        risk_badge=_text(raw, "risk_badge", "riskBadge"),
        image=_text(raw, "image"),
        slug=_text(raw, "slug") or generate_fish_slug(scientific_name or name),
        flagged_for_review=bool(raw.get("flagged_for_review") or False),
        id=str(identifier) if identifier is not None else None,
    )


def search_result_entry(raw: dict[str, Any]) -> CatalogEntry:
    scientific_name = _scientific_name(raw)
    score = _first(raw, "probability_score", "probabilityScore", "probability")
    return CatalogEntry(
        scientific_name=scientific_name,
        name=_name(raw, default="Unknown"),
        local_name=_text(raw, "local_name", "localName"),
        habitat=str(raw.get("habitat") or "Unknown"),
        difficulty=_difficulty(raw.get("difficulty")),
        season=str(raw.get("season") or "Unknown"),
        is_toxic=_flag(raw, "is_toxic", "isToxic", default=False),
        danger_type=_text(raw, "danger_type", "dangerType"),
        image=_text(raw, "image_url", "image"),
        slug=_text(raw, "slug") or generate_fish_slug(scientific_name),
        probability_score=float(score) if score is not None else None,
    )


# --- requests ---


def _fish_request(_params: dict[str, Any]) -> StreamRequest:
    return StreamRequest(path="fish/stream")


def _toxic_request(params: dict[str, Any]) -> StreamRequest:
    return StreamRequest(
        path=params.get("path") or "fish/toxic/stream",
        accept="text/event-stream",
    )


def _area_request(params: dict[str, Any]) -> StreamRequest:
    query: dict[str, Any] = {}
    for key in ("latitude", "longitude"):
        value = params.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            query[key] = str(value)
    return StreamRequest(path="fao/fish/stream", params=query)


def _search_request(params: dict[str, Any]) -> StreamRequest:
    path = "search-agent/sessions"
    if params.get("session_id"):
        path = f"{path}/{params['session_id']}"
    form = {
        "use_location_context": str(bool(params.get("use_location_context", False))).lower(),
        "use_imperial_units": str(bool(params.get("use_imperial_units", False))).lower(),
        "message": str(params.get("message") or ""),
    }
    return StreamRequest(path=path, method="POST", form=form)


# --- auto-start preconditions ---


def _has_user_location(params: dict[str, Any]) -> bool:
    location = params.get("location")
    return bool(location) and location != settings.default_location_name


def _has_message(params: dict[str, Any]) -> bool:
    return bool(str(params.get("message") or "").strip())


FISH = StreamProfile(
    name="fish",
    build_request=_fish_request,
    transform=discovered_fish_entry,
    transform_known=known_fish_entry,
    aliases={"cached_fish": EventKind.CACHED_ITEM, "fish": EventKind.NEW_ITEM},
    ready=_has_user_location,
)

TOXIC = StreamProfile(
    name="toxic",
    build_request=_toxic_request,
    transform=partial(known_fish_entry, default_toxic=True),
    transform_known=known_fish_entry,
    aliases={"cached_fish": EventKind.CACHED_ITEM, "toxic_fish": EventKind.NEW_ITEM},
)

AREA = StreamProfile(
    name="area",
    build_request=_area_request,
    transform=area_fish_entry,
    aliases={"fish": EventKind.NEW_ITEM},
)

SEARCH = StreamProfile(
    name="search",
    build_request=_search_request,
    transform=search_result_entry,
    kinds=SEARCH_KINDS,
    ready=_has_message,
)

PROFILES: dict[str, StreamProfile] = {p.name: p for p in (FISH, TOXIC, AREA, SEARCH)}


def get_profile(name: str) -> StreamProfile:
    profile = PROFILES.get(name.lower().strip())
    if profile is None:
        raise ValueError(f"Unsupported stream profile: {name}")
    return profile
