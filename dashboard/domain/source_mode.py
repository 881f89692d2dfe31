from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from dashboard.domain.period import DateRange


class SourceMode(str, Enum):
    PRIMARY = "primary"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class SourceModeChanged:
    """
    세션의 데이터 소스가 전환되었음을 알리는 이벤트입니다.
    UI 계층은 이 이벤트를 받아 경고 문구를 노출합니다.
    """
    previous: SourceMode
    current: SourceMode
    reason: str
    date_range: Optional[DateRange] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
