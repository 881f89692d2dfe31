from dataclasses import dataclass
from enum import Enum
from typing import Optional

from dashboard.domain.channel_aggregate import ChannelAggregate
from dashboard.domain.period import ComparisonPeriod


class ComparisonMetric(str, Enum):
    VIEWS = "views"
    WATCH_TIME_HOURS = "watch_time_hours"
    NET_SUBSCRIBERS = "net_subscribers"

    @property
    def is_net(self) -> bool:
        # 순증감 지표는 기준값이 음수일 수 있어 절댓값을 분모로 쓴다.
        return self == ComparisonMetric.NET_SUBSCRIBERS

    def value_of(self, aggregate: ChannelAggregate) -> int:
        if self == ComparisonMetric.VIEWS:
            return aggregate.views
        if self == ComparisonMetric.WATCH_TIME_HOURS:
            return aggregate.watch_time_hours
        return aggregate.net_subscribers


@dataclass(frozen=True)
class ComparisonResult:
    metric: ComparisonMetric
    current: float
    previous: float
    year_ago: float
    change_from_previous: float
    change_from_previous_percent: float
    change_from_year_ago: float
    change_from_year_ago_percent: float
    previous_available: bool = True
    year_ago_available: bool = True
    previous_period: Optional[ComparisonPeriod] = None
    year_ago_period: Optional[ComparisonPeriod] = None
