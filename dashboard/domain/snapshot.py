from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from dashboard.domain.breakdown import (
    DemographicsItem,
    DeviceItem,
    GeographyItem,
    SearchTermItem,
    SubscriberSourceItem,
    TrafficSourceItem,
)
from dashboard.domain.channel_aggregate import ChannelAggregate, ChannelTotals, MonthlyPoint
from dashboard.domain.comparison import ComparisonMetric, ComparisonResult
from dashboard.domain.period import DateRange
from dashboard.domain.source_mode import SourceMode
from dashboard.domain.video import ContentTypeTotals, RankedVideo, RankingMetric


@dataclass(frozen=True)
class FetchFailure:
    section: str
    reason: str


@dataclass(frozen=True)
class FilterPreferences:
    date_range: Optional[DateRange] = None
    top_video_metric: RankingMetric = RankingMetric.VIEWS


@dataclass(frozen=True)
class DashboardState:
    """
    대시보드 한 번의 조회로 계산된 전체 결과입니다.
    오케스트레이션 계층만 새 인스턴스를 만들어 교체합니다.
    """
    date_range: Optional[DateRange] = None
    source_mode: SourceMode = SourceMode.PRIMARY
    channel_totals: Optional[ChannelTotals] = None
    aggregate: Optional[ChannelAggregate] = None
    # 조인된 전체 영상 목록 (기본 소스 순서). top_videos는 이 목록을 선택 지표로 정렬한 상위 N개
    ranked_videos: tuple[RankedVideo, ...] = ()
    top_videos: tuple[RankedVideo, ...] = ()
    bottom_videos: tuple[RankedVideo, ...] = ()
    top_shorts: tuple[RankedVideo, ...] = ()
    content_types: tuple[ContentTypeTotals, ...] = ()
    comparisons: tuple[ComparisonResult, ...] = ()
    monthly_series: tuple[MonthlyPoint, ...] = ()
    traffic_sources: tuple[TrafficSourceItem, ...] = ()
    external_sources: tuple[TrafficSourceItem, ...] = ()
    search_terms: tuple[SearchTermItem, ...] = ()
    demographics: tuple[DemographicsItem, ...] = ()
    geography: tuple[GeographyItem, ...] = ()
    devices: tuple[DeviceItem, ...] = ()
    subscriber_sources: tuple[SubscriberSourceItem, ...] = ()
    top_video_metric: RankingMetric = RankingMetric.VIEWS
    failures: tuple[FetchFailure, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self == DashboardState(top_video_metric=self.top_video_metric)

    def comparison_for(self, metric: ComparisonMetric) -> Optional[ComparisonResult]:
        for result in self.comparisons:
            if result.metric == metric:
                return result
        return None


@dataclass(frozen=True)
class DashboardSnapshot:
    channel_id: str
    query_range: DateRange
    state: DashboardState
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
