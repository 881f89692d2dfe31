from typing import Any, Optional

from googleapiclient.discovery import build

from config.settings import YouTubeSettings
from dashboard.application.port.analytics_report_port import AnalyticsReportPort, ReportQuery, ReportTable
from dashboard.domain.quota import QuotaTracker
from dashboard.infrastructure.client.google_request import bearer_credentials, execute_request


class YouTubeAnalyticsClient(AnalyticsReportPort):
    """YouTube Analytics API v2 reports.query 어댑터."""

    action = "youtubeAnalytics.reports.query"

    def __init__(
        self,
        access_token: str,
        channel_id: str = "MINE",
        quota: Optional[QuotaTracker] = None,
        settings: Optional[YouTubeSettings] = None,
        service: Any = None,
    ):
        self.credentials = bearer_credentials(access_token)
        self.channel_id = channel_id or "MINE"
        self.quota = quota
        self.settings = settings or YouTubeSettings()
        self.service = service or build(
            "youtubeAnalytics",
            "v2",
            credentials=self.credentials,
            cache_discovery=False,
        )

    def build_params(self, report: ReportQuery) -> dict:
        params = {
            "ids": f"channel=={self.channel_id}",
            **report.date_range.as_params(),
            "metrics": ",".join(report.metrics),
        }
        if report.dimensions:
            params["dimensions"] = ",".join(report.dimensions)
        if report.filters:
            params["filters"] = report.filters
        if report.sort:
            params["sort"] = report.sort
        if report.max_results:
            params["maxResults"] = report.max_results
        if self.settings.quota_user:
            params["quotaUser"] = self.settings.quota_user
        return params

    async def query(self, report: ReportQuery) -> ReportTable:
        params = self.build_params(report)
        response = await execute_request(
            self.service.reports().query(**params),
            self.credentials,
            self.action,
            self.quota,
            metrics=params["metrics"],
            dimensions=params.get("dimensions"),
        )
        # 위치 기반 행은 여기서 컬럼 이름과 묶어 경계 밖으로 내보낸다.
        headers = tuple(header.get("name", "") for header in response.get("columnHeaders") or [])
        rows = tuple(tuple(row) for row in response.get("rows") or [])
        return ReportTable(column_headers=headers, rows=rows)
