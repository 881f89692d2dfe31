from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from dashboard.domain.period import DateRange


@dataclass(frozen=True)
class ReportQuery:
    date_range: DateRange
    metrics: tuple[str, ...]
    dimensions: tuple[str, ...] = ()
    filters: Optional[str] = None
    sort: Optional[str] = None
    max_results: Optional[int] = None


@dataclass(frozen=True)
class ReportTable:
    """
    리포팅 API의 위치 기반 행을 컬럼 이름으로 감싼 결과입니다.
    경계 밖에서는 records()로 이름 기반 접근만 합니다.
    """
    column_headers: tuple[str, ...] = ()
    rows: tuple[tuple[Any, ...], ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def records(self) -> list[dict[str, Any]]:
        return [dict(zip(self.column_headers, row)) for row in self.rows]


class AnalyticsReportPort(ABC):
    @abstractmethod
    async def query(self, report: ReportQuery) -> ReportTable:
        raise NotImplementedError
