from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from loguru import logger

# 호출 1회당 예상 할당량 단위
QUOTA_COST = {
    "youtubeAnalytics.reports.query": 1,
    "youtube.channels.list": 1,
    "youtube.playlistItems.list": 1,
    "youtube.videos.list": 1,
}


@dataclass(frozen=True)
class QuotaEvent:
    action: str
    units: int
    details: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class QuotaTracker:
    def __init__(self):
        self.totals: dict[str, int] = defaultdict(int)
        self.events: list[QuotaEvent] = []

    def record(self, action: str, units: Optional[int] = None, **details) -> None:
        units = QUOTA_COST.get(action, 1) if units is None else units
        if units <= 0:
            return
        self.totals[action] += units
        self.events.append(QuotaEvent(action=action, units=units, details=details))
        logger.debug("[quota] +{} units via {} {}", units, action, details or "")

    @property
    def total_units(self) -> int:
        return sum(self.totals.values())

    def snapshot(self) -> dict:
        return {
            "totals": dict(self.totals),
            "total_units": self.total_units,
            "event_count": len(self.events),
        }

    def reset(self) -> None:
        self.totals.clear()
        self.events = []
