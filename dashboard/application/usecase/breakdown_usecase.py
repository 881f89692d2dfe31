from typing import Iterable

from dashboard.application.port.analytics_report_port import AnalyticsReportPort, ReportQuery
from dashboard.application.usecase.metadata_cache import MetadataCache
from dashboard.application.usecase.source_strategy import as_float, as_int
from dashboard.domain.breakdown import (
    DemographicsItem,
    DeviceItem,
    GeographyItem,
    SearchTermItem,
    SubscriberSourceItem,
    TrafficSourceItem,
)
from dashboard.domain.period import DateRange
from dashboard.domain.video import ContentTypeRow

UNKNOWN_VIDEO_TITLE = "Unknown video"


def with_share(records: Iterable[dict], label_key: str) -> list[tuple[str, int, float]]:
    """(라벨, 조회수, 비율%) 목록. 비율은 반환된 행들의 조회수 합 기준이다."""
    pairs = [(str(record.get(label_key)), as_int(record.get("views"))) for record in records]
    total = sum(views for _, views in pairs)
    return [(label, views, views / total * 100 if total > 0 else 0.0) for label, views in pairs]


class BreakdownUseCase:
    """
    기본 소스에서만 제공되는 세부 분석(유입 경로, 시청자 분포, 기기, 구독 유입 영상 등) 조회.
    폴백 모드에서는 호출하지 않는다.
    """

    def __init__(self, reports: AnalyticsReportPort, metadata: MetadataCache):
        self.reports = reports
        self.metadata = metadata

    async def traffic_sources(self, date_range: DateRange, limit: int = 10) -> list[TrafficSourceItem]:
        table = await self.reports.query(
            ReportQuery(
                date_range=date_range,
                metrics=("views",),
                dimensions=("insightTrafficSourceType",),
                sort="-views",
                max_results=limit,
            )
        )
        return [
            TrafficSourceItem(source=label, views=views, percentage=share)
            for label, views, share in with_share(table.records(), "insightTrafficSourceType")
        ]

    async def external_sources(self, date_range: DateRange, limit: int = 10) -> list[TrafficSourceItem]:
        table = await self.reports.query(
            ReportQuery(
                date_range=date_range,
                metrics=("views",),
                dimensions=("insightTrafficSourceDetail",),
                filters="insightTrafficSourceType==EXT_URL",
                sort="-views",
                max_results=limit,
            )
        )
        return [
            TrafficSourceItem(source=label, views=views, percentage=share)
            for label, views, share in with_share(table.records(), "insightTrafficSourceDetail")
        ]

    async def search_terms(self, date_range: DateRange, limit: int = 25) -> list[SearchTermItem]:
        table = await self.reports.query(
            ReportQuery(
                date_range=date_range,
                metrics=("views",),
                dimensions=("insightTrafficSourceDetail",),
                filters="insightTrafficSourceType==YT_SEARCH",
                sort="-views",
                max_results=limit,
            )
        )
        return [
            SearchTermItem(term=str(record.get("insightTrafficSourceDetail")), views=as_int(record.get("views")))
            for record in table.records()
        ]

    async def demographics(self, date_range: DateRange) -> list[DemographicsItem]:
        # 인구통계 리포트는 viewerPercentage 지표만 허용된다.
        table = await self.reports.query(
            ReportQuery(
                date_range=date_range,
                metrics=("viewerPercentage",),
                dimensions=("ageGroup", "gender"),
                sort="gender,ageGroup",
            )
        )
        return [
            DemographicsItem(
                age_group=str(record.get("ageGroup")),
                gender=str(record.get("gender")),
                viewer_percentage=as_float(record.get("viewerPercentage")),
            )
            for record in table.records()
        ]

    async def geography(self, date_range: DateRange, limit: int = 10) -> list[GeographyItem]:
        table = await self.reports.query(
            ReportQuery(
                date_range=date_range,
                metrics=("views",),
                dimensions=("country",),
                sort="-views",
                max_results=limit,
            )
        )
        return [
            GeographyItem(country=label, views=views, percentage=share)
            for label, views, share in with_share(table.records(), "country")
        ]

    async def devices(self, date_range: DateRange) -> list[DeviceItem]:
        table = await self.reports.query(
            ReportQuery(date_range=date_range, metrics=("views",), dimensions=("deviceType",), sort="-views")
        )
        return [
            DeviceItem(device_type=label, views=views, percentage=share)
            for label, views, share in with_share(table.records(), "deviceType")
        ]

    async def subscriber_sources(self, date_range: DateRange, limit: int = 10) -> list[SubscriberSourceItem]:
        table = await self.reports.query(
            ReportQuery(
                date_range=date_range,
                metrics=("subscribersGained",),
                dimensions=("video",),
                sort="-subscribersGained",
                max_results=limit,
            )
        )
        records = [record for record in table.records() if record.get("video")]
        titles = await self.metadata.lookup_titles(str(record["video"]) for record in records)
        return [
            SubscriberSourceItem(
                video_id=str(record["video"]),
                video_title=titles.get(str(record["video"]), UNKNOWN_VIDEO_TITLE),
                subscribers_gained=as_int(record.get("subscribersGained")),
            )
            for record in records
        ]

    async def content_type_rows(self, date_range: DateRange) -> list[ContentTypeRow]:
        table = await self.reports.query(
            ReportQuery(
                date_range=date_range,
                metrics=("views", "estimatedMinutesWatched", "likes", "shares", "comments"),
                dimensions=("creatorContentType",),
                sort="-views",
            )
        )
        return [
            ContentTypeRow(
                content_type=str(record.get("creatorContentType")),
                views=as_int(record.get("views")),
                estimated_watch_minutes=as_float(record.get("estimatedMinutesWatched")),
                likes=as_int(record.get("likes")),
                shares=as_int(record.get("shares")),
                comments=as_int(record.get("comments")),
            )
            for record in table.records()
        ]
