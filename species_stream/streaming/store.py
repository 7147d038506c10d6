from __future__ import annotations

from species_stream.models.catalog import CatalogEntry


class CatalogStore:
    """Two arrival-ordered buckets sharing one seen-key set.

    The buckets are append-only. ``combined`` is a projection keyed by
    scientific name in which a newly discovered entry replaces a previously
    known one with the same key.
    """

    def __init__(self) -> None:
        self.previously_known: list[CatalogEntry] = []
        self.newly_discovered: list[CatalogEntry] = []
        self._seen: set[str] = set()

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, scientific_name: object) -> bool:
        return scientific_name in self._seen

    def _claim(self, scientific_name: str) -> bool:
        if scientific_name in self._seen:
            return False
        self._seen.add(scientific_name)
        return True

    def add_known(self, entry: CatalogEntry) -> bool:
        if not self._claim(entry.scientific_name):
            return False
        self.previously_known.append(entry)
        return True

    def add_discovered(self, entry: CatalogEntry) -> bool:
        if not self._claim(entry.scientific_name):
            return False
        self.newly_discovered.append(entry)
        return True

    @property
    def combined(self) -> list[CatalogEntry]:
        merged: dict[str, CatalogEntry] = {}
        for entry in self.previously_known:
            merged[entry.scientific_name] = entry
        for entry in self.newly_discovered:
            merged[entry.scientific_name] = entry
        return list(merged.values())

    def clear(self) -> None:
        self.previously_known.clear()
        self.newly_discovered.clear()
        self._seen.clear()
