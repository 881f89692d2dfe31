import pytest

from dashboard.application.usecase.video_ranking import (
    bottom_by_views,
    build_ranked,
    chunked,
    classify_by_duration,
    classify_by_reported_type,
    enrich_with_period_rows,
    split_by_content_type,
    top_by_metric,
)
from dashboard.domain.video import ContentType, ContentTypeRow, RankingMetric, VideoMetricRow
from tests.fakes import make_video


def metadata_of(*videos):
    return {video.video_id: video for video in videos}


def test_build_ranked_drops_missing_and_non_public_videos():
    metadata = metadata_of(
        make_video("pub"),
        make_video("priv", visibility="private"),
        make_video("unl", visibility="unlisted"),
    )
    rows = [
        VideoMetricRow("pub", views=10),
        VideoMetricRow("priv", views=99),
        VideoMetricRow("ghost", views=50),
        VideoMetricRow("unl", views=7),
    ]

    ranked = build_ranked(rows, metadata)

    assert [video.video_id for video in ranked] == ["pub"]
    assert ranked[0].title == "Video pub"


def test_build_ranked_never_includes_non_public_for_mixed_inputs():
    visibilities = ["public", "private", "unlisted", "PUBLIC", "", "unknown"]
    videos = [make_video(f"v{index}", visibility=visibility) for index, visibility in enumerate(visibilities)]
    rows = [VideoMetricRow(video.video_id, views=index) for index, video in enumerate(videos)]

    ranked = build_ranked(rows, metadata_of(*videos))

    assert {video.video_id for video in ranked} == {"v0", "v3"}


def test_build_ranked_caps_output():
    videos = [make_video(f"v{index}") for index in range(5)]
    rows = [VideoMetricRow(video.video_id, views=index) for index, video in enumerate(videos)]
    assert len(build_ranked(rows, metadata_of(*videos), limit=3)) == 3


def test_top_by_metric_sorts_descending_and_keeps_tie_order():
    videos = [make_video(video_id) for video_id in ("a", "b", "c", "d")]
    rows = [
        VideoMetricRow("a", views=10, shares=5),
        VideoMetricRow("b", views=30, shares=5),
        VideoMetricRow("c", views=10, shares=9),
        VideoMetricRow("d", views=20, shares=5),
    ]
    ranked = build_ranked(rows, metadata_of(*videos))

    assert [video.video_id for video in top_by_metric(ranked, RankingMetric.VIEWS, 4)] == ["b", "d", "a", "c"]
    assert [video.video_id for video in top_by_metric(ranked, "shares", 3)] == ["c", "a", "b"]


def test_bottom_by_views_starts_from_catalog():
    metadata = metadata_of(
        make_video("big", views=5000),
        make_video("tiny", views=3),
        make_video("hidden", views=0, visibility="private"),
        make_video("small", views=40),
    )

    bottom = bottom_by_views(metadata, 2)
    assert [video.video_id for video in bottom] == ["tiny", "small"]
    assert [video.video_id for video in bottom_by_views(metadata, 1, exclude_non_public=False)] == ["hidden"]


def test_enrich_with_period_rows_zero_fills_missing_rows():
    candidates = [make_video("tiny", views=3), make_video("small", views=40)]
    rows = [VideoMetricRow("small", views=4, likes=1)]

    enriched = enrich_with_period_rows(candidates, rows)

    assert [video.video_id for video in enriched] == ["tiny", "small"]
    assert enriched[0].views == 0
    assert enriched[0].likes == 0
    assert enriched[0].lifetime_views == 3
    assert enriched[1].views == 4


def test_split_by_content_type_always_returns_both_buckets():
    short, long = split_by_content_type([], classify_by_reported_type)
    assert short.content_type == ContentType.SHORT
    assert long.content_type == ContentType.LONG
    assert short.views == long.views == 0


def test_split_by_reported_content_type():
    rows = [
        ContentTypeRow("shorts", views=700, estimated_watch_minutes=150, likes=30, shares=4, comments=2),
        ContentTypeRow("videoOnDemand", views=300, estimated_watch_minutes=1200, likes=10, shares=1, comments=8),
    ]

    short, long = split_by_content_type(rows, classify_by_reported_type)

    assert (short.views, short.watch_time_hours, short.likes) == (700, 2, 30)
    assert (long.views, long.watch_time_hours, long.comments) == (300, 20, 8)


def test_split_by_duration_counts_videos():
    videos = [
        make_video("s1", duration=30),
        make_video("s2", duration=60),
        make_video("l1", duration=61),
        make_video("x", duration=None),
    ]
    rows = build_ranked([VideoMetricRow(video.video_id, views=10) for video in videos], metadata_of(*videos))

    short, long = split_by_content_type(rows, classify_by_duration())

    assert short.video_count == 2
    assert long.video_count == 2
    assert short.views == 20


def test_chunked_splits_into_fixed_sizes():
    assert list(chunked(["a", "b", "c"], 2)) == [["a", "b"], ["c"]]
    with pytest.raises(ValueError):
        list(chunked(["a"], 0))
