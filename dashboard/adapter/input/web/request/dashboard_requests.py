from datetime import date

from pydantic import BaseModel, Field

from dashboard.domain.period import QuickRange
from dashboard.domain.video import RankingMetric


class FetchDashboardRequest(BaseModel):
    preset: QuickRange | None = Field(default=None, description="빠른 기간 (7d, 30d, 90d, this_month, last_month)")
    start_date: date | None = None
    end_date: date | None = None
    top_video_metric: RankingMetric = RankingMetric.VIEWS
    refresh: bool = Field(default=False, description="소스 모드와 캐시를 초기화하고 다시 조회")


class UpdateFiltersRequest(BaseModel):
    start_date: date | None = None
    end_date: date | None = None
    top_video_metric: RankingMetric = RankingMetric.VIEWS


class TopVideoMetricRequest(BaseModel):
    metric: RankingMetric
