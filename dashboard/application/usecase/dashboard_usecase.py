from dataclasses import replace
from datetime import date
from typing import Any, Awaitable, Optional

from loguru import logger

from config.settings import DashboardSettings
from dashboard.application.port.analytics_report_port import AnalyticsReportPort
from dashboard.application.port.video_catalog_port import VideoCatalogPort
from dashboard.application.usecase.breakdown_usecase import BreakdownUseCase
from dashboard.application.usecase.comparison_usecase import ComparisonComputer
from dashboard.application.usecase.concurrency import gather_settled
from dashboard.application.usecase.dashboard_session import DashboardSession
from dashboard.application.usecase.metadata_cache import MetadataCache
from dashboard.application.usecase.result_cache_usecase import ResultCache
from dashboard.application.usecase.source_strategy import CurrentPeriod, SourceStrategyResolver
from dashboard.application.usecase.video_ranking import (
    bottom_by_views,
    build_ranked,
    classify_by_duration,
    classify_by_reported_type,
    enrich_with_period_rows,
    split_by_content_type,
    top_by_metric,
)
from dashboard.domain.channel_aggregate import ChannelAggregate, MonthlyPoint
from dashboard.domain.errors import AuthenticationError, DashboardBusyError
from dashboard.domain.period import DateRange, clamp_to_queryable, monthly_windows
from dashboard.domain.snapshot import DashboardSnapshot, DashboardState, FetchFailure, FilterPreferences
from dashboard.domain.video import ContentType, RankingMetric, VideoMetadata

# 폴백 소스(카탈로그 누적 카운터)로는 계산할 수 없는 섹션
PRIMARY_ONLY_SECTIONS = (
    "monthly_series",
    "traffic_sources",
    "external_sources",
    "search_terms",
    "demographics",
    "geography",
    "devices",
    "subscriber_sources",
)
FALLBACK_SKIP_REASON = "not available from the fallback source"


class DashboardUseCase:
    """
    대시보드 한 번의 조회를 조율합니다.

    1. 진행 중인 조회가 있으면 대기열에 넣지 않고 DashboardBusyError
    2. 메타데이터 캐시를 먼저 채운 뒤 현재 기간으로 소스 모드를 결정
    3. 나머지 세부 조회는 동시에 실행하고, 실패한 섹션은 비워 둔 채 사유만 기록
    4. 결과를 세션에 게시하고 저장소에 스냅샷으로 남김
    """

    def __init__(
        self,
        session: DashboardSession,
        reports: AnalyticsReportPort,
        catalog: VideoCatalogPort,
        result_cache: ResultCache,
        settings: Optional[DashboardSettings] = None,
    ):
        self.session = session
        self.catalog = catalog
        self.result_cache = result_cache
        self.settings = settings or DashboardSettings()
        self.metadata = MetadataCache(catalog)
        self.resolver = SourceStrategyResolver(session, reports, self.metadata, self.settings)
        self.comparisons = ComparisonComputer(self.resolver)
        self.breakdowns = BreakdownUseCase(reports, self.metadata)

    async def fetch_dashboard_data(
        self,
        date_range: DateRange,
        top_video_metric: RankingMetric | str = RankingMetric.VIEWS,
        today: Optional[date] = None,
    ) -> DashboardState:
        if self.session.busy:
            raise DashboardBusyError(f"dashboard fetch already in progress for {self.session.channel_id}")
        self.session.busy = True
        try:
            return await self._fetch(date_range, RankingMetric(top_video_metric), today)
        finally:
            self.session.busy = False

    async def refresh(
        self,
        date_range: DateRange,
        top_video_metric: RankingMetric | str = RankingMetric.VIEWS,
        today: Optional[date] = None,
    ) -> DashboardState:
        """명시적 새로고침: 소스 모드와 캐시를 모두 초기화하고 다시 조회한다."""
        if self.session.busy:
            raise DashboardBusyError(f"dashboard fetch already in progress for {self.session.channel_id}")
        self.session.reset_source_mode()
        self.result_cache.invalidate()
        self.metadata.invalidate()
        return await self.fetch_dashboard_data(date_range, top_video_metric, today)

    def hydrate(self) -> DashboardState:
        snapshot = self.result_cache.hydrate(self.session.channel_id)
        if self.session.apply_hydration(snapshot):
            logger.info("[dashboard] {} hydrated from stored snapshot ({})", self.session.channel_id, snapshot.query_range)
        return self.session.state

    def select_top_video_metric(self, metric: RankingMetric | str) -> DashboardState:
        """재조회 없이 이미 받은 목록을 다른 지표로 다시 정렬한다."""
        metric = RankingMetric(metric)
        state = self.session.state
        state = replace(
            state,
            top_video_metric=metric,
            top_videos=tuple(top_by_metric(state.ranked_videos, metric, self.settings.top_n)),
        )
        self.session.publish(state)
        self.result_cache.save_filters(FilterPreferences(date_range=state.date_range, top_video_metric=metric))
        if state.date_range is not None:
            self._persist(state)
        return state

    async def _guarded(
        self,
        section: str,
        awaitable: Awaitable[Any],
        failures: list[FetchFailure],
        default: Any = None,
    ) -> Any:
        try:
            return await awaitable
        except AuthenticationError:
            raise
        except Exception as exc:
            logger.warning("[dashboard] {} failed for {}: {}", section, self.session.channel_id, exc)
            failures.append(FetchFailure(section=section, reason=str(exc)))
            return default

    async def _fetch(self, date_range: DateRange, metric: RankingMetric, today: Optional[date]) -> DashboardState:
        settings = self.settings
        query_range = clamp_to_queryable(date_range, today, settings.report_lag_days, settings.timezone)
        if query_range != date_range:
            logger.info("[dashboard] range {} clamped to {}", date_range, query_range)
        failures: list[FetchFailure] = []

        # 조인 전에 카탈로그가 반드시 준비되어 있어야 한다.
        metadata, channel_totals = await gather_settled(
            self.metadata.ensure_cache(),
            self._guarded("channel_totals", self.catalog.fetch_channel_totals(), failures),
        )
        if self.metadata.failure is not None:
            failures.append(FetchFailure(section="metadata", reason=self.metadata.failure))

        current = await self.resolver.resolve_current(query_range)
        ranked = build_ranked(current.video_rows, metadata)
        is_fallback = self.session.is_fallback

        comparison_task = self._guarded(
            "comparisons", self.comparisons.compare_all(current.aggregate, query_range), failures, ([], [])
        )
        bottom_task = self._guarded("bottom_videos", self._bottom_videos(query_range, metadata), failures, [])
        content_task = self._guarded("content_types", self._content_types(current, metadata), failures, [])
        shorts_task = self._guarded("top_shorts", self._top_shorts(query_range, metadata), failures, [])

        if is_fallback:
            for section in PRIMARY_ONLY_SECTIONS:
                failures.append(FetchFailure(section=section, reason=FALLBACK_SKIP_REASON))
            settled = await gather_settled(comparison_task, bottom_task, content_task, shorts_task)
            (comparisons, comparison_failures), bottom_videos, content_types, top_shorts = settled
            monthly = traffic = external = search = demographics = geography = devices = subscribers = []
        else:
            (
                (comparisons, comparison_failures),
                bottom_videos,
                content_types,
                top_shorts,
                monthly,
                traffic,
                external,
                search,
                demographics,
                geography,
                devices,
                subscribers,
            ) = await gather_settled(
                comparison_task,
                bottom_task,
                content_task,
                shorts_task,
                self._guarded("monthly_series", self._monthly_series(today), failures, []),
                self._guarded("traffic_sources", self.breakdowns.traffic_sources(query_range), failures, []),
                self._guarded("external_sources", self.breakdowns.external_sources(query_range), failures, []),
                self._guarded("search_terms", self.breakdowns.search_terms(query_range), failures, []),
                self._guarded("demographics", self.breakdowns.demographics(query_range), failures, []),
                self._guarded("geography", self.breakdowns.geography(query_range), failures, []),
                self._guarded("devices", self.breakdowns.devices(query_range), failures, []),
                self._guarded("subscriber_sources", self.breakdowns.subscriber_sources(query_range), failures, []),
            )
        failures.extend(comparison_failures)

        state = DashboardState(
            date_range=query_range,
            source_mode=self.session.source_mode,
            channel_totals=channel_totals,
            aggregate=current.aggregate,
            ranked_videos=tuple(ranked),
            top_videos=tuple(top_by_metric(ranked, metric, settings.top_n)),
            bottom_videos=tuple(bottom_videos),
            top_shorts=tuple(top_shorts),
            content_types=tuple(content_types),
            comparisons=tuple(comparisons),
            monthly_series=tuple(monthly),
            traffic_sources=tuple(traffic),
            external_sources=tuple(external),
            search_terms=tuple(search),
            demographics=tuple(demographics),
            geography=tuple(geography),
            devices=tuple(devices),
            subscriber_sources=tuple(subscribers),
            top_video_metric=metric,
            failures=tuple(failures),
        )
        self.session.publish(state)
        self._persist(state)
        logger.info(
            "[dashboard] {} fetched {} via {} source ({} videos ranked, {} degraded sections)",
            self.session.channel_id,
            query_range,
            state.source_mode.value,
            len(ranked),
            len(failures),
        )
        return state

    def _persist(self, state: DashboardState) -> None:
        snapshot = DashboardSnapshot(channel_id=self.session.channel_id, query_range=state.date_range, state=state)
        try:
            self.result_cache.persist(snapshot)
        except Exception as exc:
            # 저장 실패로 이미 계산한 결과를 잃지 않는다.
            logger.warning("[dashboard] snapshot persist failed for {}: {}", self.session.channel_id, exc)

    async def _bottom_videos(self, date_range: DateRange, metadata: dict[str, VideoMetadata]):
        candidates = bottom_by_views(metadata, self.settings.bottom_n)
        if not candidates:
            return []
        rows = await self.resolver.fetch_video_rows(date_range, video_ids=[video.video_id for video in candidates])
        return enrich_with_period_rows(candidates, rows or [])

    async def _content_types(self, current: CurrentPeriod, metadata: dict[str, VideoMetadata]):
        if self.session.is_fallback:
            ranked = build_ranked(current.video_rows, metadata)
            return split_by_content_type(ranked, classify_by_duration(self.settings.short_form_max_seconds))
        rows = await self.breakdowns.content_type_rows(current.date_range)
        return split_by_content_type(rows, classify_by_reported_type)

    async def _top_shorts(self, date_range: DateRange, metadata: dict[str, VideoMetadata]):
        rows = await self.resolver.fetch_video_rows(
            date_range, content_type=ContentType.SHORT, limit=self.settings.max_ids_per_request
        )
        ranked = build_ranked(rows or [], metadata)
        return top_by_metric(ranked, RankingMetric.VIEWS, self.settings.top_n)

    async def _monthly_series(self, today: Optional[date]) -> list[MonthlyPoint]:
        windows = monthly_windows(today, 12, self.settings.report_lag_days, self.settings.timezone)
        aggregates = await gather_settled(
            *(self.resolver.fetch_channel_aggregate(window) for _, window, _ in windows)
        )
        return [
            MonthlyPoint.from_aggregate(month, aggregate or ChannelAggregate(), is_current)
            for (month, _, is_current), aggregate in zip(windows, aggregates)
        ]
