from __future__ import annotations

from dataclasses import dataclass

from loguru import logger


@dataclass(slots=True)
class ProgressStats:
    checked: int = 0
    found: int = 0
    new_found: int = 0
    total: int = 0
    cached_count: int = 0


# progress event field -> stats attribute
_INCREMENTAL_FIELDS = {
    "checked": "checked",
    "found": "found",
    "new_found": "new_found",
    "total": "total",
}

# complete event summary field -> stats attribute
_SUMMARY_FIELDS = {
    "total_found": "found",
    "newly_discovered": "new_found",
    "total_checked": "checked",
    "cached": "cached_count",
}


def clamp_percentage(value: float) -> float:
    return min(max(float(value), 0.0), 100.0)


class ProgressAggregator:
    """Counters and percentage fed from status, progress and complete events."""

    def __init__(self) -> None:
        self.stats = ProgressStats()
        self.percentage: float = 0.0

    def seed_cached_count(self, cached_count: int) -> None:
        self.stats.cached_count = max(int(cached_count), 0)

    def apply_progress(self, percentage: float | None = None, **counters: int | None) -> None:
        if percentage is not None:
            self.percentage = clamp_percentage(percentage)

        for field_name, attr in _INCREMENTAL_FIELDS.items():
            value = counters.get(field_name)
            if value is None:
                continue
            current = getattr(self.stats, attr)
            if value < current:
                logger.debug(f"Ignoring decreasing {field_name}: {current} -> {value}")
                continue
            setattr(self.stats, attr, value)

    def apply_summary(self, **summary: int | None) -> None:
        """Apply the final tally of a complete event.

        Unlike progress events, the tally is authoritative and may lower a
        counter; any disagreement with a non-zero streamed value is logged.
        """
        self.percentage = 100.0
        for field_name, attr in _SUMMARY_FIELDS.items():
            value = summary.get(field_name)
            if value is None:
                continue
            current = getattr(self.stats, attr)
            if current and value != current:
                logger.warning(
                    f"Final {field_name}={value} disagrees with streamed {attr}={current}; "
                    "using the final tally"
                )
            setattr(self.stats, attr, value)
