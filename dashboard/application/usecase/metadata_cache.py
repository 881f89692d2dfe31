import asyncio
from typing import Iterable, Optional

from loguru import logger

from dashboard.application.port.video_catalog_port import VideoCatalogPort
from dashboard.domain.errors import AuthenticationError
from dashboard.domain.video import VideoMetadata


class MetadataCache:
    """
    영상 카탈로그 전체를 세션당 한 번만 불러와 메모해 두는 접근자입니다.
    다른 컴포넌트는 읽기만 합니다.
    """

    def __init__(self, catalog: VideoCatalogPort):
        self.catalog = catalog
        self._videos: Optional[dict[str, VideoMetadata]] = None
        self._lock = asyncio.Lock()
        # 카탈로그가 실패해 빈 맵으로 대신한 경우의 사유
        self.failure: Optional[str] = None

    @property
    def is_loaded(self) -> bool:
        return self._videos is not None

    async def ensure_cache(self) -> dict[str, VideoMetadata]:
        if self._videos is not None:
            return self._videos
        async with self._lock:
            # 락을 기다리는 동안 다른 호출이 이미 채웠을 수 있다.
            if self._videos is not None:
                return self._videos
            try:
                videos = await self.catalog.fetch_catalog()
            except AuthenticationError:
                raise
            except Exception as exc:
                # 실패 시 빈 맵을 메모해 무한 재시도 대신 '메타데이터 없음'으로 처리한다.
                logger.warning("[metadata-cache] catalog fetch failed, continuing without metadata: {}", exc)
                self.failure = f"catalog unavailable: {exc}"
                videos = []
            self._videos = {video.video_id: video for video in videos if video.video_id}
            logger.info("[metadata-cache] loaded {} videos", len(self._videos))
            return self._videos

    async def lookup_titles(self, video_ids: Iterable[str]) -> dict[str, str]:
        videos = await self.ensure_cache()
        titles: dict[str, str] = {}
        for video_id in video_ids:
            video = videos.get(video_id)
            if video is not None:
                titles[video_id] = video.title or video_id
        return titles

    def invalidate(self) -> None:
        self._videos = None
        self.failure = None
