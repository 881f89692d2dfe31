import re
from datetime import datetime
from typing import Any, List, Optional

from googleapiclient.discovery import build
from loguru import logger

from config.settings import YouTubeSettings
from dashboard.application.port.video_catalog_port import VideoCatalogPort
from dashboard.application.usecase.video_ranking import chunked
from dashboard.domain.channel_aggregate import ChannelTotals
from dashboard.domain.quota import QuotaTracker
from dashboard.domain.video import VideoMetadata
from dashboard.infrastructure.client.google_request import bearer_credentials, execute_request

PAGE_SIZE = 50
DURATION_PATTERN = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")


def parse_duration(value: str | None) -> Optional[int]:
    """ISO 8601 기간(PT1H2M3S)을 초 단위로 변환. 해석할 수 없으면 None."""
    if not value:
        return None
    match = DURATION_PATTERN.match(value)
    if not match:
        return None
    days, hours, minutes, seconds = (int(group or 0) for group in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


def parse_datetime(value: str | None) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class YouTubeCatalogClient(VideoCatalogPort):
    """
    YouTube Data API v3로 채널 업로드 목록 전체를 불러온다.
    channels.list -> 업로드 재생목록 -> playlistItems.list 페이지 -> videos.list(50개씩)
    """

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
            "youtube",
            "v3",
            credentials=self.credentials,
            cache_discovery=False,
        )

    def _channel_filter(self) -> dict:
        if self.channel_id.upper() == "MINE":
            return {"mine": True}
        return {"id": self.channel_id}

    def _common_params(self) -> dict:
        return {"quotaUser": self.settings.quota_user} if self.settings.quota_user else {}

    async def _channel_item(self, part: str) -> dict:
        response = await execute_request(
            self.service.channels().list(part=part, **self._channel_filter(), **self._common_params()),
            self.credentials,
            "youtube.channels.list",
            self.quota,
            part=part,
        )
        items = response.get("items", [])
        if not items:
            raise ValueError("Channel not found")
        return items[0]

    async def fetch_channel_totals(self) -> ChannelTotals:
        stats = (await self._channel_item("statistics")).get("statistics", {})
        return ChannelTotals(
            subscriber_count=int(stats.get("subscriberCount", 0)),
            view_count=int(stats.get("viewCount", 0)),
            video_count=int(stats.get("videoCount", 0)),
        )

    async def fetch_catalog(self) -> list[VideoMetadata]:
        item = await self._channel_item("contentDetails")
        uploads = ((item.get("contentDetails") or {}).get("relatedPlaylists") or {}).get("uploads")
        if not uploads:
            logger.warning("[catalog] channel {} has no uploads playlist", self.channel_id)
            return []

        video_ids = await self._list_upload_ids(uploads)
        videos: List[VideoMetadata] = []
        for chunk in chunked(video_ids, PAGE_SIZE):
            videos.extend(await self._fetch_videos(chunk))
        logger.info("[catalog] fetched {} videos for {}", len(videos), self.channel_id)
        return videos

    async def _list_upload_ids(self, playlist_id: str) -> List[str]:
        ids: List[str] = []
        page_token = None
        while len(ids) < self.settings.catalog_max_videos:
            params = {"part": "contentDetails", "playlistId": playlist_id, "maxResults": PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token
            response = await execute_request(
                self.service.playlistItems().list(**params, **self._common_params()),
                self.credentials,
                "youtube.playlistItems.list",
                self.quota,
                page=len(ids) // PAGE_SIZE + 1,
            )
            for entry in response.get("items", []):
                video_id = (entry.get("contentDetails") or {}).get("videoId")
                if video_id:
                    ids.append(video_id)
            page_token = response.get("nextPageToken")
            if not page_token:
                break
        return ids[: self.settings.catalog_max_videos]

    async def _fetch_videos(self, video_ids: List[str]) -> List[VideoMetadata]:
        response = await execute_request(
            self.service.videos().list(
                part="snippet,statistics,status,contentDetails",
                id=",".join(video_ids),
                maxResults=PAGE_SIZE,
                **self._common_params(),
            ),
            self.credentials,
            "youtube.videos.list",
            self.quota,
            count=len(video_ids),
        )
        return [self._to_metadata(item) for item in response.get("items", []) if item.get("id")]

    @staticmethod
    def _to_metadata(item: dict) -> VideoMetadata:
        snippet = item.get("snippet", {})
        stats = item.get("statistics", {})
        status = item.get("status", {})
        content = item.get("contentDetails", {})
        thumbnails = snippet.get("thumbnails", {})
        thumbnail = thumbnails.get("high") or thumbnails.get("medium") or thumbnails.get("default") or {}
        return VideoMetadata(
            video_id=item["id"],
            title=snippet.get("title", ""),
            thumbnail_url=thumbnail.get("url"),
            published_at=parse_datetime(snippet.get("publishedAt")),
            visibility=status.get("privacyStatus") or "unknown",
            raw_view_count=int(stats.get("viewCount", 0)),
            raw_like_count=int(stats.get("likeCount", 0)) if stats.get("likeCount") else 0,
            raw_comment_count=int(stats.get("commentCount", 0)) if stats.get("commentCount") else 0,
            duration_seconds=parse_duration(content.get("duration")),
            tags=tuple(snippet.get("tags") or ()),
        )
