from typing import Callable, Optional

from loguru import logger

from dashboard.domain.period import DateRange
from dashboard.domain.quota import QuotaTracker
from dashboard.domain.snapshot import DashboardSnapshot, DashboardState
from dashboard.domain.source_mode import SourceMode, SourceModeChanged

ModeListener = Callable[[SourceModeChanged], None]


class DashboardSession:
    """
    한 채널 대시보드 세션의 상태를 담는 컨텍스트 객체입니다.
    소스 모드/진행 중 플래그/메모리 결과를 모듈 전역 대신 여기에 보관하므로
    세션 두 개를 동시에 돌려도 서로 간섭하지 않습니다.
    """

    def __init__(self, channel_id: str, quota: Optional[QuotaTracker] = None):
        self.channel_id = channel_id
        self.source_mode = SourceMode.PRIMARY
        self.mode_events: list[SourceModeChanged] = []
        self.state = DashboardState()
        self.busy = False
        self.quota = quota or QuotaTracker()
        self._listeners: list[ModeListener] = []
        self._hydrated = False
        self._live_populated = False

    @property
    def is_fallback(self) -> bool:
        return self.source_mode == SourceMode.FALLBACK

    def subscribe(self, listener: ModeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def switch_to_fallback(self, reason: str, date_range: Optional[DateRange] = None) -> bool:
        if self.is_fallback:
            return False
        self._transition(SourceMode.FALLBACK, reason, date_range)
        return True

    def reset_source_mode(self) -> None:
        """명시적 새로고침에서만 호출. 다음 조회에서 기본 소스를 다시 확인한다."""
        if self.is_fallback:
            self._transition(SourceMode.PRIMARY, "explicit refresh")

    def _transition(self, mode: SourceMode, reason: str, date_range: Optional[DateRange] = None) -> None:
        event = SourceModeChanged(previous=self.source_mode, current=mode, reason=reason, date_range=date_range)
        self.source_mode = mode
        self.mode_events.append(event)
        logger.warning(
            "[{}] source mode {} -> {} ({})", self.channel_id, event.previous.value, event.current.value, reason
        )
        for listener in list(self._listeners):
            listener(event)

    def publish(self, state: DashboardState) -> None:
        self.state = state
        self._live_populated = True

    def apply_hydration(self, snapshot: Optional[DashboardSnapshot]) -> bool:
        """
        저장된 스냅샷을 마운트 시 한 번만 적용한다.
        같은 세션에서 이미 실시간 조회 결과가 있으면 덮어쓰지 않는다.
        """
        if self._hydrated or self._live_populated:
            self._hydrated = True
            return False
        self._hydrated = True
        if snapshot is None:
            return False
        self.state = snapshot.state
        return True
