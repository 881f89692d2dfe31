from dataclasses import dataclass

from dashboard.domain.source_mode import SourceMode


@dataclass(frozen=True)
class ChannelAggregate:
    """
    한 기간에 대한 채널 단위 집계입니다. 조회할 때마다 새로 만들어 통째로 교체합니다.
    폴백 소스로 만든 값은 기간 내 실제 수치가 아니라 누적 카운터 기반 추정치입니다.
    """
    views: int = 0
    estimated_watch_minutes: float = 0.0
    subscribers_gained: int = 0
    subscribers_lost: int = 0
    avg_view_duration: float = 0.0
    avg_view_percentage: float = 0.0
    source: SourceMode = SourceMode.PRIMARY
    video_count: int = 0

    @property
    def net_subscribers(self) -> int:
        return self.subscribers_gained - self.subscribers_lost

    @property
    def watch_time_hours(self) -> int:
        return int(self.estimated_watch_minutes // 60)

    @property
    def is_estimate(self) -> bool:
        return self.source == SourceMode.FALLBACK


@dataclass(frozen=True)
class ChannelTotals:
    subscriber_count: int = 0
    view_count: int = 0
    video_count: int = 0


@dataclass(frozen=True)
class MonthlyPoint:
    month: str
    views: int
    watch_time_hours: int
    subscribers_gained: int
    subscribers_lost: int
    subscribers_net: int
    is_current_month: bool = False

    @classmethod
    def from_aggregate(cls, month: str, aggregate: ChannelAggregate, is_current_month: bool = False) -> "MonthlyPoint":
        return cls(
            month=month,
            views=aggregate.views,
            watch_time_hours=aggregate.watch_time_hours,
            subscribers_gained=aggregate.subscribers_gained,
            subscribers_lost=aggregate.subscribers_lost,
            subscribers_net=aggregate.net_subscribers,
            is_current_month=is_current_month,
        )
