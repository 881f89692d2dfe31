from dataclasses import dataclass
from typing import Optional

from loguru import logger

from dashboard.application.usecase.concurrency import gather_settled
from dashboard.application.usecase.source_strategy import SourceStrategyResolver
from dashboard.domain.channel_aggregate import ChannelAggregate
from dashboard.domain.comparison import ComparisonMetric, ComparisonResult
from dashboard.domain.errors import AuthenticationError
from dashboard.domain.period import ComparisonPeriod, DateRange, compute_comparison_periods
from dashboard.domain.snapshot import FetchFailure

DASHBOARD_METRICS = (
    ComparisonMetric.VIEWS,
    ComparisonMetric.WATCH_TIME_HOURS,
    ComparisonMetric.NET_SUBSCRIBERS,
)


@dataclass(frozen=True)
class Baseline:
    period: ComparisonPeriod
    aggregate: ChannelAggregate
    available: bool = True
    failure: Optional[FetchFailure] = None


def percent_change(current: float, baseline: float, is_net: bool = False) -> float:
    change = current - baseline
    if baseline == 0:
        return 0.0
    denominator = abs(baseline) if is_net else baseline
    return change / denominator * 100


def build_result(
    metric: ComparisonMetric,
    current: float,
    previous: Baseline,
    year_ago: Baseline,
) -> ComparisonResult:
    previous_value = metric.value_of(previous.aggregate)
    year_ago_value = metric.value_of(year_ago.aggregate)
    return ComparisonResult(
        metric=metric,
        current=current,
        previous=previous_value,
        year_ago=year_ago_value,
        change_from_previous=current - previous_value,
        change_from_previous_percent=percent_change(current, previous_value, metric.is_net),
        change_from_year_ago=current - year_ago_value,
        change_from_year_ago_percent=percent_change(current, year_ago_value, metric.is_net),
        previous_available=previous.available,
        year_ago_available=year_ago.available,
        previous_period=previous.period,
        year_ago_period=year_ago.period,
    )


class ComparisonComputer:
    """
    현재 값을 전기/전년 동기 값과 비교합니다.
    두 기준 기간은 서로 독립적으로 조회하며, 한쪽이 실패해도 다른 쪽과 현재 값에는 영향이 없습니다.
    """

    def __init__(self, resolver: SourceStrategyResolver):
        self.resolver = resolver

    async def _fetch_baseline(self, label: str, period: ComparisonPeriod) -> Baseline:
        try:
            aggregate = await self.resolver.fetch_channel_aggregate(period.date_range)
        except AuthenticationError:
            raise
        except Exception as exc:
            logger.warning("[comparison] {} period {} unavailable: {}", label, period.date_range, exc)
            return Baseline(
                period=period,
                aggregate=ChannelAggregate(source=self.resolver.mode),
                available=False,
                failure=FetchFailure(section=f"comparison.{label}", reason=str(exc)),
            )
        # 행이 없으면 기준값 0 (데이터가 없던 기간)
        return Baseline(period=period, aggregate=aggregate or ChannelAggregate(source=self.resolver.mode))

    async def _fetch_baselines(self, date_range: DateRange) -> tuple[Baseline, Baseline]:
        previous_period, year_ago_period = compute_comparison_periods(date_range)
        previous, year_ago = await gather_settled(
            self._fetch_baseline("previous", previous_period),
            self._fetch_baseline("year_ago", year_ago_period),
        )
        return previous, year_ago

    async def compare(
        self,
        metric: ComparisonMetric | str,
        current_value: float,
        date_range: DateRange,
    ) -> ComparisonResult:
        metric = ComparisonMetric(metric)
        previous, year_ago = await self._fetch_baselines(date_range)
        return build_result(metric, current_value, previous, year_ago)

    async def compare_all(
        self,
        current: ChannelAggregate,
        date_range: DateRange,
    ) -> tuple[list[ComparisonResult], list[FetchFailure]]:
        """대시보드 지표 3개가 기간별 조회 1회를 공유한다."""
        previous, year_ago = await self._fetch_baselines(date_range)
        results = [build_result(metric, metric.value_of(current), previous, year_ago) for metric in DASHBOARD_METRICS]
        failures = [baseline.failure for baseline in (previous, year_ago) if baseline.failure is not None]
        return results, failures
