from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

PUBLIC_VISIBILITY = "public"


class ContentType(str, Enum):
    SHORT = "short"
    LONG = "long"


@dataclass(frozen=True)
class VideoMetadata:
    """
    카탈로그에서 한 번 불러오는, 잘 변하지 않는 영상 정보입니다.
    raw_* 카운터는 기간과 무관한 누적값입니다.
    """
    video_id: str
    title: str = ""
    thumbnail_url: Optional[str] = None
    published_at: Optional[datetime] = None
    visibility: str = "unknown"
    raw_view_count: int = 0
    raw_like_count: int = 0
    raw_comment_count: int = 0
    duration_seconds: Optional[int] = None
    tags: tuple[str, ...] = ()

    @property
    def is_public(self) -> bool:
        return (self.visibility or "").lower() == PUBLIC_VISIBILITY


@dataclass(frozen=True)
class VideoMetricRow:
    video_id: str
    views: int = 0
    avg_view_percentage: float = 0.0
    comments: int = 0
    likes: int = 0
    shares: int = 0


@dataclass(frozen=True)
class RankedVideo:
    video_id: str
    title: str
    thumbnail_url: Optional[str]
    published_at: Optional[datetime]
    views: int
    avg_view_percentage: float
    comments: int
    likes: int
    shares: int
    lifetime_views: int = 0
    duration_seconds: Optional[int] = None

    @classmethod
    def join(cls, row: VideoMetricRow, metadata: VideoMetadata) -> "RankedVideo":
        return cls(
            video_id=row.video_id,
            title=metadata.title,
            thumbnail_url=metadata.thumbnail_url,
            published_at=metadata.published_at,
            views=row.views,
            avg_view_percentage=row.avg_view_percentage,
            comments=row.comments,
            likes=row.likes,
            shares=row.shares,
            lifetime_views=metadata.raw_view_count,
            duration_seconds=metadata.duration_seconds,
        )


@dataclass(frozen=True)
class ContentTypeTotals:
    content_type: ContentType
    views: int = 0
    watch_time_hours: int = 0
    likes: int = 0
    shares: int = 0
    comments: int = 0
    video_count: int = 0


class RankingMetric(str, Enum):
    VIEWS = "views"
    AVG_VIEW_PERCENTAGE = "avg_view_percentage"
    SHARES = "shares"
    COMMENTS = "comments"


@dataclass(frozen=True)
class ContentTypeRow:
    """creatorContentType 차원으로 받은 콘텐츠 유형별 합계 행입니다."""
    content_type: str
    views: int = 0
    estimated_watch_minutes: float = 0.0
    likes: int = 0
    shares: int = 0
    comments: int = 0
    video_count: int = 0
