"""Monday-anchored fiscal week bucketing used by the year-over-year charts"""

from bisect import bisect_right
from datetime import date, timedelta
from typing import Iterable, List, Tuple

from dealer_backoffice.domain.models import WeekBucket
from dealer_backoffice.utils.date_utils import week_start, year_first_week_start


class FiscalCalendar:
    """
    Assigns dates to fiscal years whose first week starts on the Monday on or
    before January 1.

    Anchors cover [min_year - 1, max_year + 2] of the observed dates, so a date
    in the last days of December can land in week 1 of the next fiscal year and
    early-January dates before that Monday stay in the previous one.
    """

    def __init__(self, min_year: int, max_year: int):
        self.anchors: List[Tuple[date, int]] = sorted(
            (year_first_week_start(year), year) for year in range(min_year - 1, max_year + 3)
        )
        self._starts = [start for start, _ in self.anchors]

    @classmethod
    def for_dates(cls, dates: Iterable[date]) -> "FiscalCalendar":
        years = [d.year for d in dates]
        if not years:
            raise ValueError("FiscalCalendar needs at least one date")
        return cls(min(years), max(years))

    def assign_fiscal_year(self, day: date) -> int:
        """Greatest anchor year whose first week starts on or before the date"""
        idx = bisect_right(self._starts, day) - 1
        if idx < 0:
            return self.anchors[0][1]
        return self.anchors[idx][1]

    @staticmethod
    def week_number(day: date, fiscal_year: int) -> int:
        diff_days = (week_start(day) - year_first_week_start(fiscal_year)).days
        return diff_days // 7 + 1

    @staticmethod
    def week_start_for(fiscal_year: int, week_number: int) -> date:
        return year_first_week_start(fiscal_year) + timedelta(days=(week_number - 1) * 7)

    def week_key(self, day: date) -> WeekBucket:
        year = self.assign_fiscal_year(day)
        return WeekBucket(fiscal_year=year, week_number=self.week_number(day, year))
