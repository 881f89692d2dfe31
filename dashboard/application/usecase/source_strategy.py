from dataclasses import dataclass
from typing import Any, Optional, Sequence

from loguru import logger

from config.settings import DashboardSettings
from dashboard.application.port.analytics_report_port import AnalyticsReportPort, ReportQuery
from dashboard.application.usecase.concurrency import gather_settled
from dashboard.application.usecase.dashboard_session import DashboardSession
from dashboard.application.usecase.metadata_cache import MetadataCache
from dashboard.application.usecase.video_ranking import chunked, classify_by_duration
from dashboard.domain.channel_aggregate import ChannelAggregate
from dashboard.domain.errors import AuthenticationError
from dashboard.domain.period import DateRange, to_reference_date
from dashboard.domain.source_mode import SourceMode
from dashboard.domain.video import ContentType, VideoMetadata, VideoMetricRow

CHANNEL_METRICS = (
    "views",
    "estimatedMinutesWatched",
    "subscribersGained",
    "subscribersLost",
    "averageViewDuration",
    "averageViewPercentage",
)
VIDEO_METRICS = ("views", "averageViewPercentage", "shares", "comments", "likes")
CONTENT_TYPE_FILTERS = {
    ContentType.SHORT: "creatorContentType==shorts",
    ContentType.LONG: "creatorContentType==videoOnDemand",
}


def as_int(value: Any) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def as_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class CurrentPeriod:
    date_range: DateRange
    aggregate: ChannelAggregate
    video_rows: tuple[VideoMetricRow, ...]
    mode: SourceMode


class SourceStrategyResolver:
    """
    기본 소스(리포팅 API)와 폴백 소스(카탈로그 누적 카운터) 중 무엇으로 응답할지 결정한다.
    현재 기간 조회에서 기본 소스가 비어 있으면 세션 전체를 폴백으로 전환하고,
    명시적 새로고침 전까지 기본 소스를 다시 확인하지 않는다.
    """

    def __init__(
        self,
        session: DashboardSession,
        reports: AnalyticsReportPort,
        metadata: MetadataCache,
        settings: Optional[DashboardSettings] = None,
    ):
        self.session = session
        self.reports = reports
        self.metadata = metadata
        self.settings = settings or DashboardSettings()

    @property
    def mode(self) -> SourceMode:
        return self.session.source_mode

    async def resolve_current(self, date_range: DateRange) -> CurrentPeriod:
        if not self.session.is_fallback:
            try:
                aggregate, rows = await gather_settled(
                    self._primary_aggregate(date_range),
                    self._primary_video_rows(date_range, limit=self.settings.max_ids_per_request),
                )
            except AuthenticationError:
                raise
            except Exception as exc:
                logger.warning("[source] primary probe failed for {}: {}", date_range, exc)
                aggregate, rows, reason = None, None, f"primary source unavailable: {exc}"
            else:
                reason = "primary source returned no video rows"
                if aggregate is None:
                    reason = "primary source returned no channel rows"

            if aggregate is not None and rows:
                logger.info("[source] primary data for {}: {} views, {} video rows", date_range, aggregate.views, len(rows))
                return CurrentPeriod(date_range, aggregate, tuple(rows), SourceMode.PRIMARY)
            self.session.switch_to_fallback(reason, date_range)

        aggregate = await self._fallback_aggregate(date_range)
        rows = await self._fallback_video_rows(date_range)
        return CurrentPeriod(date_range, aggregate, tuple(rows), SourceMode.FALLBACK)

    async def fetch_channel_aggregate(self, date_range: DateRange) -> Optional[ChannelAggregate]:
        """기본 소스가 0행이면 None. 오류는 호출자가 판단하도록 그대로 올린다."""
        if self.session.is_fallback:
            return await self._fallback_aggregate(date_range)
        return await self._primary_aggregate(date_range)

    async def fetch_video_rows(
        self,
        date_range: DateRange,
        video_ids: Optional[Sequence[str]] = None,
        content_type: Optional[ContentType] = None,
        limit: Optional[int] = None,
    ) -> Optional[list[VideoMetricRow]]:
        if self.session.is_fallback:
            return await self._fallback_video_rows(date_range, video_ids, content_type, limit)
        return await self._primary_video_rows(date_range, video_ids, content_type, limit)

    async def _primary_aggregate(self, date_range: DateRange) -> Optional[ChannelAggregate]:
        table = await self.reports.query(ReportQuery(date_range=date_range, metrics=CHANNEL_METRICS))
        records = table.records()
        if not records:
            return None
        # 차원 없이 조회하면 채널 전체 합계 한 행만 온다.
        record = records[0]
        return ChannelAggregate(
            views=as_int(record.get("views")),
            estimated_watch_minutes=as_float(record.get("estimatedMinutesWatched")),
            subscribers_gained=as_int(record.get("subscribersGained")),
            subscribers_lost=as_int(record.get("subscribersLost")),
            avg_view_duration=as_float(record.get("averageViewDuration")),
            avg_view_percentage=as_float(record.get("averageViewPercentage")),
            source=SourceMode.PRIMARY,
        )

    async def _primary_video_rows(
        self,
        date_range: DateRange,
        video_ids: Optional[Sequence[str]] = None,
        content_type: Optional[ContentType] = None,
        limit: Optional[int] = None,
    ) -> Optional[list[VideoMetricRow]]:
        type_filter = CONTENT_TYPE_FILTERS.get(content_type) if content_type else None
        queries: list[ReportQuery] = []
        if video_ids:
            for chunk in chunked(list(video_ids), self.settings.max_ids_per_request):
                filters = f"video=={','.join(chunk)}"
                if type_filter:
                    filters = f"{filters};{type_filter}"
                queries.append(
                    ReportQuery(
                        date_range=date_range,
                        metrics=VIDEO_METRICS,
                        dimensions=("video",),
                        filters=filters,
                        sort="-views",
                        max_results=len(chunk),
                    )
                )
        else:
            queries.append(
                ReportQuery(
                    date_range=date_range,
                    metrics=VIDEO_METRICS,
                    dimensions=("video",),
                    filters=type_filter,
                    sort="-views",
                    max_results=min(limit or self.settings.max_ids_per_request, self.settings.max_ids_per_request),
                )
            )

        rows: list[VideoMetricRow] = []
        for query in queries:
            table = await self.reports.query(query)
            rows.extend(self._to_video_row(record) for record in table.records() if record.get("video"))
        return rows or None

    @staticmethod
    def _to_video_row(record: dict) -> VideoMetricRow:
        return VideoMetricRow(
            video_id=str(record["video"]),
            views=as_int(record.get("views")),
            avg_view_percentage=as_float(record.get("averageViewPercentage")),
            comments=as_int(record.get("comments")),
            likes=as_int(record.get("likes")),
            shares=as_int(record.get("shares")),
        )

    def _published_in(self, videos: dict[str, VideoMetadata], date_range: DateRange) -> list[VideoMetadata]:
        return [
            video
            for video in videos.values()
            if video.is_public
            and video.published_at is not None
            and date_range.contains(to_reference_date(video.published_at, self.settings.timezone))
        ]

    async def _fallback_aggregate(self, date_range: DateRange) -> ChannelAggregate:
        """
        추정치: 기간 내 게시된 공개 영상의 누적 조회수 합계.
        시청 시간은 평균 영상 길이와 시청 완료율을 고정 가정해 계산하며, 구독자 수는 알 수 없어 0이다.
        """
        videos = await self.metadata.ensure_cache()
        in_range = self._published_in(videos, date_range)
        views = sum(video.raw_view_count for video in in_range)
        minutes_per_view = self.settings.assumed_avg_video_minutes * self.settings.assumed_view_completion
        logger.debug("[source] fallback estimate for {}: {} videos, {} views", date_range, len(in_range), views)
        return ChannelAggregate(
            views=views,
            estimated_watch_minutes=views * minutes_per_view,
            source=SourceMode.FALLBACK,
            video_count=len(in_range),
        )

    async def _fallback_video_rows(
        self,
        date_range: DateRange,
        video_ids: Optional[Sequence[str]] = None,
        content_type: Optional[ContentType] = None,
        limit: Optional[int] = None,
    ) -> list[VideoMetricRow]:
        videos = await self.metadata.ensure_cache()
        in_range = self._published_in(videos, date_range)
        if video_ids is not None:
            wanted = set(video_ids)
            in_range = [video for video in in_range if video.video_id in wanted]
        if content_type is not None:
            classify = classify_by_duration(self.settings.short_form_max_seconds)
            in_range = [video for video in in_range if classify(video) == content_type]
        rows = [
            VideoMetricRow(
                video_id=video.video_id,
                views=video.raw_view_count,
                comments=video.raw_comment_count,
                likes=video.raw_like_count,
            )
            for video in in_range
            # 조회수 0인 영상은 순위 대상에서 뺀다.
            if video.raw_view_count > 0
        ]
        return rows[:limit] if limit is not None else rows
