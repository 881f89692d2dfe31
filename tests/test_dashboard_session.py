from datetime import date

from dashboard.application.usecase.dashboard_session import DashboardSession
from dashboard.domain.channel_aggregate import ChannelAggregate
from dashboard.domain.period import DateRange
from dashboard.domain.quota import QuotaTracker
from dashboard.domain.snapshot import DashboardSnapshot, DashboardState
from dashboard.domain.source_mode import SourceMode

JUNE = DateRange(date(2024, 6, 1), date(2024, 6, 30))


def snapshot_for(channel_id: str, views: int = 10) -> DashboardSnapshot:
    return DashboardSnapshot(
        channel_id=channel_id,
        query_range=JUNE,
        state=DashboardState(date_range=JUNE, aggregate=ChannelAggregate(views=views)),
    )


def test_sessions_are_independent():
    first, second = DashboardSession("UC1"), DashboardSession("UC2")

    first.switch_to_fallback("no rows", JUNE)

    assert first.source_mode == SourceMode.FALLBACK
    assert second.source_mode == SourceMode.PRIMARY


def test_switch_to_fallback_notifies_once():
    session = DashboardSession("UC1")
    events = []
    unsubscribe = session.subscribe(events.append)

    assert session.switch_to_fallback("no rows", JUNE) is True
    assert session.switch_to_fallback("still no rows", JUNE) is False
    assert len(events) == 1
    assert events[0].reason == "no rows"

    unsubscribe()
    session.reset_source_mode()
    assert len(events) == 1
    assert session.mode_events[-1].reason == "explicit refresh"


def test_reset_in_primary_mode_is_a_no_op():
    session = DashboardSession("UC1")
    session.reset_source_mode()
    assert session.mode_events == []


def test_hydration_applies_at_most_once():
    session = DashboardSession("UC1")

    assert session.apply_hydration(snapshot_for("UC1", views=10)) is True
    assert session.apply_hydration(snapshot_for("UC1", views=99)) is False
    assert session.state.aggregate.views == 10


def test_hydration_never_overwrites_live_state():
    session = DashboardSession("UC1")
    live = DashboardState(date_range=JUNE, aggregate=ChannelAggregate(views=500))
    session.publish(live)

    assert session.apply_hydration(snapshot_for("UC1")) is False
    assert session.state is live


def test_quota_tracker_totals_and_reset():
    quota = QuotaTracker()
    quota.record("youtubeAnalytics.reports.query")
    quota.record("youtube.videos.list", count=50)
    quota.record("custom.action", units=5)
    quota.record("free.action", units=0)

    assert quota.total_units == 7
    assert quota.snapshot()["event_count"] == 3
    assert quota.events[1].details == {"count": 50}

    quota.reset()
    assert quota.snapshot() == {"totals": {}, "total_units": 0, "event_count": 0}
