from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, Sequence

from dashboard.domain.video import (
    ContentType,
    ContentTypeTotals,
    RankedVideo,
    RankingMetric,
    VideoMetadata,
    VideoMetricRow,
)

# 리포팅 API 한 번의 요청에 넣을 수 있는 영상 ID 수
MAX_IDS_PER_REQUEST = 50
SHORT_FORM_MAX_SECONDS = 60
REPORTED_SHORT_TYPES = {"shorts", "SHORTS"}


def chunked(items: Sequence[str], size: int = MAX_IDS_PER_REQUEST) -> Iterator[list[str]]:
    if size <= 0:
        raise ValueError("chunk size must be positive")
    for index in range(0, len(items), size):
        yield list(items[index:index + size])


def build_ranked(
    rows: Iterable[VideoMetricRow],
    metadata: Mapping[str, VideoMetadata],
    limit: Optional[int] = None,
) -> list[RankedVideo]:
    """
    기간 지표 행과 메타데이터를 video_id로 내부 조인한다.
    메타데이터가 없거나 공개 상태가 아닌 영상은 랭킹 전에 제외한다.
    """
    ranked: list[RankedVideo] = []
    for row in rows:
        meta = metadata.get(row.video_id)
        if meta is None or not meta.is_public:
            continue
        ranked.append(RankedVideo.join(row, meta))
        if limit is not None and len(ranked) >= limit:
            break
    return ranked


def metric_value(video: RankedVideo, metric: RankingMetric) -> float:
    if metric == RankingMetric.VIEWS:
        return video.views
    if metric == RankingMetric.AVG_VIEW_PERCENTAGE:
        return video.avg_view_percentage
    if metric == RankingMetric.SHARES:
        return video.shares
    return video.comments


def top_by_metric(ranked: Iterable[RankedVideo], metric: RankingMetric | str, n: int) -> list[RankedVideo]:
    # 동률은 원본 순서를 유지한다 (sorted는 reverse=True여도 안정 정렬).
    metric = RankingMetric(metric)
    return sorted(ranked, key=lambda video: metric_value(video, metric), reverse=True)[:n]


def bottom_by_views(
    metadata: Mapping[str, VideoMetadata],
    n: int,
    exclude_non_public: bool = True,
) -> list[VideoMetadata]:
    """
    조회수가 매우 낮은 영상은 리포팅 API에 행 자체가 없는 경우가 많아
    카탈로그에서 출발해 누적 조회수 오름차순으로 하위 N개를 고른다.
    """
    candidates = [video for video in metadata.values() if video.is_public or not exclude_non_public]
    return sorted(candidates, key=lambda video: video.raw_view_count)[:n]


def enrich_with_period_rows(
    candidates: Iterable[VideoMetadata],
    rows: Iterable[VideoMetricRow],
) -> list[RankedVideo]:
    by_id = {row.video_id: row for row in rows}
    enriched: list[RankedVideo] = []
    for video in candidates:
        # 기간 행이 없는 영상은 제외하지 않고 기간 지표를 0으로 표시한다.
        row = by_id.get(video.video_id) or VideoMetricRow(video_id=video.video_id)
        enriched.append(RankedVideo.join(row, video))
    return enriched


def classify_by_duration(max_seconds: int = SHORT_FORM_MAX_SECONDS) -> Callable[[Any], ContentType]:
    def classify(item: Any) -> ContentType:
        duration = getattr(item, "duration_seconds", None)
        if duration is not None and 0 < duration <= max_seconds:
            return ContentType.SHORT
        return ContentType.LONG

    return classify


def classify_by_reported_type(item: Any) -> ContentType:
    return ContentType.SHORT if getattr(item, "content_type", None) in REPORTED_SHORT_TYPES else ContentType.LONG


def split_by_content_type(
    rows: Iterable[Any],
    type_of: Callable[[Any], ContentType],
) -> tuple[ContentTypeTotals, ContentTypeTotals]:
    """
    (숏폼, 롱폼) 합계를 반환한다. 해당 행이 없는 버킷도 0으로 채워 항상 포함한다.
    """
    sums = {
        content_type: {"views": 0, "minutes": 0.0, "likes": 0, "shares": 0, "comments": 0, "count": 0}
        for content_type in ContentType
    }
    for row in rows:
        bucket = sums[type_of(row)]
        bucket["views"] += getattr(row, "views", 0)
        bucket["minutes"] += getattr(row, "estimated_watch_minutes", 0.0)
        bucket["likes"] += getattr(row, "likes", 0)
        bucket["shares"] += getattr(row, "shares", 0)
        bucket["comments"] += getattr(row, "comments", 0)
        bucket["count"] += getattr(row, "video_count", 1)

    totals = {
        content_type: ContentTypeTotals(
            content_type=content_type,
            views=bucket["views"],
            watch_time_hours=int(bucket["minutes"] // 60),
            likes=bucket["likes"],
            shares=bucket["shares"],
            comments=bucket["comments"],
            video_count=bucket["count"],
        )
        for content_type, bucket in sums.items()
    }
    return totals[ContentType.SHORT], totals[ContentType.LONG]
