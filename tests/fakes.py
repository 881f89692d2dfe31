import asyncio
from datetime import datetime
from typing import Callable, Optional

from dashboard.application.port.analytics_report_port import AnalyticsReportPort, ReportQuery, ReportTable
from dashboard.application.port.dashboard_store_port import DashboardStorePort
from dashboard.application.port.video_catalog_port import VideoCatalogPort
from dashboard.domain.channel_aggregate import ChannelTotals
from dashboard.domain.video import VideoMetadata

CHANNEL_HEADERS = (
    "views",
    "estimatedMinutesWatched",
    "subscribersGained",
    "subscribersLost",
    "averageViewDuration",
    "averageViewPercentage",
)
VIDEO_HEADERS = ("video", "views", "averageViewPercentage", "shares", "comments", "likes")


def make_video(
    video_id: str,
    views: int = 0,
    published: str = "2024-06-10T04:00:00+00:00",
    visibility: str = "public",
    duration: Optional[int] = 300,
    likes: int = 0,
    comments: int = 0,
    title: Optional[str] = None,
) -> VideoMetadata:
    return VideoMetadata(
        video_id=video_id,
        title=title if title is not None else f"Video {video_id}",
        thumbnail_url=f"https://img/{video_id}.jpg",
        published_at=datetime.fromisoformat(published),
        visibility=visibility,
        raw_view_count=views,
        raw_like_count=likes,
        raw_comment_count=comments,
        duration_seconds=duration,
    )


def channel_table(views=0, minutes=0, gained=0, lost=0, duration=0, percentage=0) -> ReportTable:
    return ReportTable(column_headers=CHANNEL_HEADERS, rows=((views, minutes, gained, lost, duration, percentage),))


def video_table(*rows) -> ReportTable:
    """rows: (video_id, views, avg_view_percentage, shares, comments, likes)"""
    return ReportTable(column_headers=VIDEO_HEADERS, rows=tuple(rows))


class FakeReports(AnalyticsReportPort):
    """handler(query)가 ReportTable 또는 예외를 돌려주는 가짜 리포팅 소스."""

    def __init__(self, handler: Optional[Callable[[ReportQuery], object]] = None):
        self.handler = handler or (lambda query: ReportTable())
        self.queries: list[ReportQuery] = []

    async def query(self, report: ReportQuery) -> ReportTable:
        self.queries.append(report)
        await asyncio.sleep(0)
        result = self.handler(report)
        if isinstance(result, Exception):
            raise result
        return result


class FakeCatalog(VideoCatalogPort):
    def __init__(self, videos=(), totals: Optional[ChannelTotals] = None, error: Optional[Exception] = None):
        self.videos = list(videos)
        self.totals = totals or ChannelTotals(subscriber_count=1000, view_count=50000, video_count=len(self.videos))
        self.error = error
        self.calls = 0

    async def fetch_catalog(self) -> list[VideoMetadata]:
        self.calls += 1
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return list(self.videos)

    async def fetch_channel_totals(self) -> ChannelTotals:
        return self.totals


class InMemoryStore(DashboardStorePort):
    def __init__(self):
        self.data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def put(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)
