from typing import Optional

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from dashboard.application.port.dashboard_store_port import DashboardStorePort
from dashboard.domain.snapshot import DashboardSnapshot, FilterPreferences

DATA_KEY = "channel_dashboard_data"
FILTER_KEY = "channel_dashboard_filters"

snapshot_adapter = TypeAdapter(DashboardSnapshot)
filters_adapter = TypeAdapter(FilterPreferences)


class ResultCache:
    """
    마지막 조회 결과와 사용자 필터를 키-값 저장소에 보관합니다.
    TTL은 없고, 명시적 새로고침(invalidate) 전까지 유효합니다.
    """

    def __init__(self, store: DashboardStorePort):
        self.store = store

    def persist(self, snapshot: DashboardSnapshot) -> None:
        self.store.put(DATA_KEY, snapshot_adapter.dump_json(snapshot).decode("utf-8"))
        logger.debug("[result-cache] persisted snapshot for {} ({})", snapshot.channel_id, snapshot.query_range)

    def hydrate(self, active_channel_id: str) -> Optional[DashboardSnapshot]:
        raw = self.store.get(DATA_KEY)
        if raw is None:
            return None
        try:
            snapshot = snapshot_adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning("[result-cache] discarding unreadable snapshot: {}", exc)
            self.store.delete(DATA_KEY)
            return None

        if snapshot.channel_id != active_channel_id:
            # 다른 채널의 결과는 일부라도 섞이지 않도록 통째로 버린다.
            logger.info(
                "[result-cache] snapshot belongs to {}, active channel is {}; discarding",
                snapshot.channel_id,
                active_channel_id,
            )
            self.store.delete(DATA_KEY)
            return None
        return snapshot

    def invalidate(self) -> None:
        self.store.delete(DATA_KEY)

    def save_filters(self, filters: FilterPreferences) -> None:
        self.store.put(FILTER_KEY, filters_adapter.dump_json(filters).decode("utf-8"))

    def load_filters(self) -> FilterPreferences:
        raw = self.store.get(FILTER_KEY)
        if raw is None:
            return FilterPreferences()
        try:
            return filters_adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning("[result-cache] ignoring unreadable filters: {}", exc)
            return FilterPreferences()
