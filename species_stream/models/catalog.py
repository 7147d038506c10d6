from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal


Difficulty = Literal["Easy", "Intermediate", "Hard", "Advanced", "Expert"]
DIFFICULTIES: tuple[str, ...] = ("Easy", "Intermediate", "Hard", "Advanced", "Expert")


@dataclass(slots=True)
class CatalogEntry:
    scientific_name: str
    name: str = ""
    local_name: str | None = None
    habitat: str = ""
    difficulty: Difficulty = "Easy"
    season: str = ""
    is_toxic: bool = False
    danger_type: str | None = None
    image: str | None = None
    slug: str | None = None
    risk_badge: str | None = None
    flagged_for_review: bool = False
    probability_score: float | None = None
    id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
