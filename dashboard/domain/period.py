import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from dashboard.domain.errors import RangeNotQueryableError

# 리포팅 API의 최신 데이터는 오늘 기준 3일 전까지만 조회 가능합니다.
REPORT_LAG_DAYS = 3
DEFAULT_TIMEZONE = "Asia/Taipei"


class QuickRange(str, Enum):
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"


TRAILING_DAYS = {
    QuickRange.LAST_7_DAYS: 7,
    QuickRange.LAST_30_DAYS: 30,
    QuickRange.LAST_90_DAYS: 90,
}


class PeriodRule(str, Enum):
    SHIFTED = "shifted"
    FULL_MONTH = "full-month"
    FULL_YEAR = "full-year"


@dataclass(frozen=True)
class DateRange:
    """
    시작/종료일을 모두 포함하는 기간입니다. 날짜는 크리에이터 기준 시간대의 달력 날짜입니다.
    """
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"start ({self.start}) must not be after end ({self.end})")

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def as_params(self) -> dict[str, str]:
        return {"startDate": self.start.isoformat(), "endDate": self.end.isoformat()}

    @classmethod
    def parse(cls, start: str, end: str) -> "DateRange":
        return cls(start=date.fromisoformat(start), end=date.fromisoformat(end))

    def __str__(self) -> str:
        return f"{self.start.isoformat()} ~ {self.end.isoformat()}"


@dataclass(frozen=True)
class ComparisonPeriod:
    date_range: DateRange
    rule: PeriodRule

    @property
    def start(self) -> date:
        return self.date_range.start

    @property
    def end(self) -> date:
        return self.date_range.end


def reference_today(tz_name: str = DEFAULT_TIMEZONE, now: Optional[datetime] = None) -> date:
    """기준 시간대에서의 오늘 날짜. UTC 날짜를 쓰면 자정 전후로 하루가 어긋납니다."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(tz_name)).date()


def to_reference_date(value: datetime, tz_name: str = DEFAULT_TIMEZONE) -> date:
    """타임존 정보가 없는 값은 UTC로 간주하고 기준 시간대의 달력 날짜로 변환한다."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(ZoneInfo(tz_name)).date()


def latest_queryable_date(
    today: Optional[date] = None,
    lag_days: int = REPORT_LAG_DAYS,
    tz_name: str = DEFAULT_TIMEZONE,
) -> date:
    today = today or reference_today(tz_name)
    return today - timedelta(days=lag_days)


def month_start(day: date) -> date:
    return day.replace(day=1)


def month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def add_months(day: date, months: int) -> date:
    """월 단위 이동. 대상 월에 같은 일자가 없으면 말일로 맞춘다."""
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    last_day = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, min(day.day, last_day))


def shift_years(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # 2월 29일 -> 평년 2월 28일
        return day.replace(year=day.year + years, day=28)


def is_full_month(date_range: DateRange) -> bool:
    start, end = date_range.start, date_range.end
    return start.day == 1 and (start.year, start.month) == (end.year, end.month) and end == month_end(start)


def is_full_year(date_range: DateRange) -> bool:
    start, end = date_range.start, date_range.end
    return start.year == end.year and (start.month, start.day) == (1, 1) and (end.month, end.day) == (12, 31)


def _quick_range_bounds(preset: QuickRange, today: date, latest: date) -> tuple[date, date]:
    if preset in TRAILING_DAYS:
        return latest - timedelta(days=TRAILING_DAYS[preset] - 1), latest
    if preset == QuickRange.THIS_MONTH:
        start = month_start(today)
        return start, min(month_end(start), latest)
    if preset == QuickRange.LAST_MONTH:
        start = add_months(month_start(today), -1)
        return start, min(month_end(start), latest)
    raise ValueError(f"Unsupported quick range: {preset}")


def is_quick_range_selectable(
    preset: QuickRange | str,
    today: Optional[date] = None,
    lag_days: int = REPORT_LAG_DAYS,
    tz_name: str = DEFAULT_TIMEZONE,
) -> bool:
    preset = QuickRange(preset)
    today = today or reference_today(tz_name)
    latest = latest_queryable_date(today, lag_days)
    start, _ = _quick_range_bounds(preset, today, latest)
    return latest >= start


def resolve_quick_range(
    preset: QuickRange | str,
    today: Optional[date] = None,
    lag_days: int = REPORT_LAG_DAYS,
    tz_name: str = DEFAULT_TIMEZONE,
) -> DateRange:
    """
    빠른 기간 프리셋을 실제 기간으로 변환한다.
    - 7d/30d/90d: 조회 가능한 최신 날짜로 끝나는 N일 구간
    - this_month: 이번 달 1일부터, 아직 끝나지 않은 달이면 최신 조회 가능일까지
    - last_month: 지난달 전체 (최신 조회 가능일 이후는 잘라냄)
    """
    preset = QuickRange(preset)
    today = today or reference_today(tz_name)
    latest = latest_queryable_date(today, lag_days)
    start, end = _quick_range_bounds(preset, today, latest)
    if latest < start:
        raise RangeNotQueryableError(
            f"{preset.value} starts on {start.isoformat()} but data is only available through {latest.isoformat()}"
        )
    return DateRange(start=start, end=end)


def quick_range_options(
    today: Optional[date] = None,
    lag_days: int = REPORT_LAG_DAYS,
    tz_name: str = DEFAULT_TIMEZONE,
) -> list[dict]:
    today = today or reference_today(tz_name)
    options: list[dict] = []
    for preset in QuickRange:
        if is_quick_range_selectable(preset, today, lag_days):
            resolved = resolve_quick_range(preset, today, lag_days)
            options.append({"preset": preset, "selectable": True, "date_range": resolved})
        else:
            options.append({"preset": preset, "selectable": False, "date_range": None})
    return options


def clamp_to_queryable(
    date_range: DateRange,
    today: Optional[date] = None,
    lag_days: int = REPORT_LAG_DAYS,
    tz_name: str = DEFAULT_TIMEZONE,
) -> DateRange:
    latest = latest_queryable_date(today, lag_days, tz_name)
    end = min(date_range.end, latest)
    start = min(date_range.start, latest)
    if start > end:
        start = end
    return DateRange(start=start, end=end)


def compute_comparison_periods(date_range: DateRange) -> tuple[ComparisonPeriod, ComparisonPeriod]:
    """
    (전기 대비 기간, 전년 동기 기간)을 계산한다.
    전기는 한 달/한 해 전체를 선택한 경우 직전 달/해 전체, 그 외에는 같은 일수를 앞으로 민 구간.
    전년 동기는 규칙과 무관하게 양 끝을 정확히 1년 당긴다.
    """
    if is_full_month(date_range):
        prev_start = add_months(date_range.start, -1)
        previous = ComparisonPeriod(DateRange(prev_start, month_end(prev_start)), PeriodRule.FULL_MONTH)
    elif is_full_year(date_range):
        year = date_range.start.year - 1
        previous = ComparisonPeriod(DateRange(date(year, 1, 1), date(year, 12, 31)), PeriodRule.FULL_YEAR)
    else:
        prev_end = date_range.start - timedelta(days=1)
        prev_start = prev_end - timedelta(days=date_range.days - 1)
        previous = ComparisonPeriod(DateRange(prev_start, prev_end), PeriodRule.SHIFTED)

    year_ago = ComparisonPeriod(
        DateRange(shift_years(date_range.start, -1), shift_years(date_range.end, -1)),
        PeriodRule.SHIFTED,
    )
    return previous, year_ago


def monthly_windows(
    today: Optional[date] = None,
    months: int = 12,
    lag_days: int = REPORT_LAG_DAYS,
    tz_name: str = DEFAULT_TIMEZONE,
) -> list[tuple[str, DateRange, bool]]:
    """
    최근 N개의 완결된 달과 이번 달(최신 조회 가능일까지)의 (YYYY-MM, 기간, 이번달 여부) 목록.
    조회 가능일 이전에 시작하지 않는 구간은 제외한다.
    """
    today = today or reference_today(tz_name)
    latest = latest_queryable_date(today, lag_days)
    current = month_start(today)

    windows: list[tuple[str, DateRange, bool]] = []
    for offset in range(months, -1, -1):
        start = add_months(current, -offset)
        if start > latest:
            continue
        end = min(month_end(start), latest)
        windows.append((f"{start.year:04d}-{start.month:02d}", DateRange(start, end), offset == 0))
    return windows
