from datetime import date, datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config.database.session import Base
from dashboard.application.usecase.result_cache_usecase import DATA_KEY, FILTER_KEY, ResultCache
from dashboard.domain.breakdown import TrafficSourceItem
from dashboard.domain.channel_aggregate import ChannelAggregate, ChannelTotals, MonthlyPoint
from dashboard.domain.comparison import ComparisonMetric, ComparisonResult
from dashboard.domain.period import ComparisonPeriod, DateRange, PeriodRule
from dashboard.domain.snapshot import DashboardSnapshot, DashboardState, FetchFailure, FilterPreferences
from dashboard.domain.source_mode import SourceMode
from dashboard.domain.video import ContentType, ContentTypeTotals, RankedVideo, RankingMetric
from dashboard.infrastructure.orm.models import DashboardStoreORM
from dashboard.infrastructure.repository.dashboard_store_impl import DashboardStoreImpl

JUNE = DateRange(date(2024, 6, 1), date(2024, 6, 30))


def sample_state() -> DashboardState:
    video = RankedVideo(
        video_id="a",
        title="First",
        thumbnail_url="https://img/a.jpg",
        published_at=datetime(2024, 6, 10, 4, 0, tzinfo=timezone.utc),
        views=900,
        avg_view_percentage=45.5,
        comments=4,
        likes=50,
        shares=3,
        lifetime_views=1000,
        duration_seconds=300,
    )
    return DashboardState(
        date_range=JUNE,
        source_mode=SourceMode.PRIMARY,
        channel_totals=ChannelTotals(subscriber_count=1000, view_count=50000, video_count=12),
        aggregate=ChannelAggregate(views=120000, estimated_watch_minutes=90000, subscribers_gained=500, subscribers_lost=100),
        ranked_videos=(video,),
        top_videos=(video,),
        content_types=(ContentTypeTotals(ContentType.SHORT, views=10), ContentTypeTotals(ContentType.LONG, views=20)),
        comparisons=(
            ComparisonResult(
                metric=ComparisonMetric.NET_SUBSCRIBERS,
                current=400,
                previous=200,
                year_ago=-50,
                change_from_previous=200,
                change_from_previous_percent=100.0,
                change_from_year_ago=450,
                change_from_year_ago_percent=900.0,
                previous_period=ComparisonPeriod(DateRange(date(2024, 5, 1), date(2024, 5, 31)), PeriodRule.FULL_MONTH),
                year_ago_period=ComparisonPeriod(DateRange(date(2023, 6, 1), date(2023, 6, 30)), PeriodRule.SHIFTED),
            ),
        ),
        monthly_series=(MonthlyPoint("2024-06", 100, 2, 5, 1, 4, True),),
        traffic_sources=(TrafficSourceItem("YT_SEARCH", 70, 70.0),),
        top_video_metric=RankingMetric.SHARES,
        failures=(FetchFailure("devices", "backend error"),),
    )


def test_persist_then_hydrate_reproduces_state(store):
    cache = ResultCache(store)
    snapshot = DashboardSnapshot(channel_id="UC123", query_range=JUNE, state=sample_state())

    cache.persist(snapshot)
    restored = cache.hydrate("UC123")

    assert restored == snapshot
    assert restored.state.comparison_for(ComparisonMetric.NET_SUBSCRIBERS).year_ago == -50


def test_hydrate_for_other_channel_discards_snapshot(store):
    cache = ResultCache(store)
    cache.persist(DashboardSnapshot(channel_id="UC123", query_range=JUNE, state=sample_state()))

    assert cache.hydrate("UC999") is None
    assert DATA_KEY not in store.data
    assert cache.hydrate("UC123") is None


def test_unreadable_snapshot_is_discarded(store):
    store.put(DATA_KEY, "{not json")
    assert ResultCache(store).hydrate("UC123") is None
    assert DATA_KEY not in store.data


def test_invalidate_removes_only_dashboard_data(store):
    cache = ResultCache(store)
    cache.persist(DashboardSnapshot(channel_id="UC123", query_range=JUNE, state=sample_state()))
    cache.save_filters(FilterPreferences(date_range=JUNE, top_video_metric=RankingMetric.COMMENTS))

    cache.invalidate()

    assert DATA_KEY not in store.data
    assert FILTER_KEY in store.data


def test_filters_round_trip_and_default(store):
    cache = ResultCache(store)
    assert cache.load_filters() == FilterPreferences()

    filters = FilterPreferences(date_range=JUNE, top_video_metric=RankingMetric.AVG_VIEW_PERCENTAGE)
    cache.save_filters(filters)

    assert cache.load_filters() == filters


@pytest.fixture
def sql_store():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine, tables=[DashboardStoreORM.__table__])
    return DashboardStoreImpl(session_factory=sessionmaker(autocommit=False, autoflush=False, bind=engine))


def test_sqlalchemy_store_put_get_delete(sql_store):
    assert sql_store.get(DATA_KEY) is None

    sql_store.put(DATA_KEY, "first")
    sql_store.put(DATA_KEY, "second")
    assert sql_store.get(DATA_KEY) == "second"

    sql_store.delete(DATA_KEY)
    sql_store.delete(DATA_KEY)
    assert sql_store.get(DATA_KEY) is None


def test_result_cache_over_sqlalchemy_store(sql_store):
    cache = ResultCache(sql_store)
    snapshot = DashboardSnapshot(channel_id="UC123", query_range=JUNE, state=sample_state())

    cache.persist(snapshot)

    assert cache.hydrate("UC123") == snapshot
