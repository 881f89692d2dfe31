class AuthenticationError(RuntimeError):
    """자격 증명이 만료되었거나 유효하지 않음. 재시도하지 않고 그대로 노출합니다."""


class DashboardBusyError(RuntimeError):
    """이미 진행 중인 대시보드 조회가 있을 때 새 호출을 거절합니다."""


class RangeNotQueryableError(ValueError):
    """선택한 기간이 조회 가능한 최신 날짜보다 뒤에 있을 때 발생합니다."""
