"""Weekly aggregation of daily collections records into year-over-year series"""

import math
from collections import defaultdict
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from dealer_backoffice.domain.calendar import FiscalCalendar
from dealer_backoffice.domain.models import (
    ChartAxis,
    DailyRecord,
    DelinquencyRecord,
    WeeklySummary,
    YearOverYearSeries,
)
from dealer_backoffice.utils.date_utils import week_start

WeeklyValues = Dict[int, Dict[int, Optional[float]]]

CURRENCY_STEP_CANDIDATES = [1000, 2000, 2500, 5000, 7500, 10000, 20000, 50000, 100000]


def aggregate_weekly(
    records: Iterable[Tuple[date, float]],
    how: str = "sum",
    calendar: Optional[FiscalCalendar] = None,
) -> WeeklyValues:
    """
    Fold dated values into {fiscal_year: {week_number: value}}.

    how="sum" adds values, how="mean" averages them per week. The result only
    contains weeks with at least one record, and does not depend on input order.
    """
    if how not in ("sum", "mean"):
        raise ValueError(f"Unsupported aggregation: {how}")

    records = list(records)
    if not records:
        return {}

    calendar = calendar or FiscalCalendar.for_dates(d for d, _ in records)

    sums: Dict[int, Dict[int, float]] = defaultdict(lambda: defaultdict(float))
    counts: Dict[int, Dict[int, int]] = defaultdict(lambda: defaultdict(int))

    for day, value in records:
        bucket = calendar.week_key(day)
        sums[bucket.fiscal_year][bucket.week_number] += value
        counts[bucket.fiscal_year][bucket.week_number] += 1

    if how == "sum":
        return {year: dict(weeks) for year, weeks in sums.items()}

    return {
        year: {week: total / counts[year][week] for week, total in weeks.items()}
        for year, weeks in sums.items()
    }


def _chart_length(weekly: WeeklyValues, today: date) -> int:
    """
    Number of weeks to plot.

    The latest fiscal year only shows completed weeks (week start strictly
    before the current week's Monday) so a partial week never shows as a dip.
    """
    max_weeks_available = max((max(weeks) for weeks in weekly.values() if weeks), default=0)
    latest_year = max(weekly)
    current_week_start = week_start(today)

    max_display_weeks = 0
    for week_number in weekly[latest_year]:
        if FiscalCalendar.week_start_for(latest_year, week_number) < current_week_start:
            max_display_weeks = max(max_display_weeks, week_number)

    if max_display_weeks == 0:
        max_display_weeks = max_weeks_available

    return max(0, min(max_weeks_available, max_display_weeks))


def currency_axis(values: Sequence[float]) -> ChartAxis:
    """Rounded y-axis domain with four ticks for dollar series"""
    if not values:
        return ChartAxis(domain_min=0, domain_max=100000, ticks=[0, 25000, 50000, 75000])

    desired_intervals = 3
    raw_min, raw_max = min(values), max(values)
    span = max(raw_max - raw_min, max(raw_max, 1) * 0.05)
    rough_step = span / desired_intervals
    step = next((c for c in CURRENCY_STEP_CANDIDATES if rough_step <= c), CURRENCY_STEP_CANDIDATES[-1])

    domain_min = max(0, math.floor(raw_min / step) * step)
    domain_max = math.ceil(raw_max / step) * step
    if domain_max - domain_min < step * desired_intervals:
        domain_max = domain_min + step * desired_intervals

    # Rounded up so the top tick never sits below the largest value
    interval = max(step, math.ceil((domain_max - domain_min) / desired_intervals / step) * step)
    ticks = [domain_min + idx * interval for idx in range(desired_intervals + 1)]
    return ChartAxis(domain_min=ticks[0], domain_max=ticks[-1], ticks=ticks)


def percent_axis(values: Sequence[float]) -> ChartAxis:
    """0..N% axis in steps of 2, never shorter than 30%"""
    domain_max = 30
    if values:
        domain_max = max(30, math.ceil(max(values) / 2) * 2)
    return ChartAxis(domain_min=0, domain_max=domain_max, ticks=list(range(0, domain_max + 1, 2)))


def build_year_over_year_series(
    weekly: WeeklyValues,
    today: date,
    axis: Callable[[Sequence[float]], ChartAxis] = currency_axis,
) -> YearOverYearSeries:
    """
    Lay aggregated weeks out as a dense 1..chart_length grid.

    Weeks without records are None rather than 0 so line charts can bridge
    the gap instead of dropping to the axis.
    """
    if not weekly:
        return YearOverYearSeries(
            week_numbers=[],
            years=[],
            values={},
            current_year=None,
            default_visible={},
            x_ticks=[],
            y_axis=axis([]),
        )

    years = sorted(weekly)
    latest_year = years[-1]
    length = _chart_length(weekly, today)
    week_numbers = list(range(1, length + 1))

    values = {year: [weekly[year].get(week) for week in week_numbers] for year in years}
    visible_values = [v for v in values[latest_year] if v is not None]

    return YearOverYearSeries(
        week_numbers=week_numbers,
        years=years,
        values=values,
        current_year=latest_year,
        default_visible={year: year == latest_year for year in years},
        x_ticks=[week for week in week_numbers if week % 2 == 1],
        y_axis=axis(visible_values),
    )


def weekly_payment_series(payments: Sequence[DailyRecord], today: date) -> YearOverYearSeries:
    """Weekly sum of payments + late fees, one line per fiscal year"""
    weekly = aggregate_weekly(((p.date, p.total) for p in payments), how="sum")
    return build_year_over_year_series(weekly, today)


def weekly_delinquency_rates(delinquency: Sequence[DelinquencyRecord]) -> WeeklyValues:
    """Average overdue / average open accounts per week, as a percentage"""
    if not delinquency:
        return {}

    calendar = FiscalCalendar.for_dates(d.date for d in delinquency)
    avg_open = aggregate_weekly(((d.date, d.open_accounts) for d in delinquency), "mean", calendar)
    avg_overdue = aggregate_weekly(((d.date, d.overdue_accounts) for d in delinquency), "mean", calendar)

    rates: WeeklyValues = {}
    for year, weeks in avg_open.items():
        rates[year] = {}
        for week, open_accounts in weeks.items():
            # Weeks with no open accounts stay in the grid but render as gaps
            rates[year][week] = avg_overdue[year][week] / open_accounts * 100 if open_accounts > 0 else None
    return rates


def weekly_delinquency_series(delinquency: Sequence[DelinquencyRecord], today: date) -> YearOverYearSeries:
    """Weekly delinquency rate, one bar group per fiscal year"""
    return build_year_over_year_series(weekly_delinquency_rates(delinquency), today, axis=percent_axis)


def build_weekly_summaries(
    payments: Sequence[DailyRecord],
    delinquency: Sequence[DelinquencyRecord],
) -> List[WeeklySummary]:
    """
    Calendar-week totals keyed by Monday, ascending.

    A week appears when either source has a record in it; total payments are
    summed and open accounts averaged over the days reported.
    """
    payments_by_week: Dict[date, float] = defaultdict(float)
    for record in payments:
        payments_by_week[week_start(record.date)] += record.total

    open_by_week: Dict[date, List[float]] = defaultdict(list)
    for record in delinquency:
        open_by_week[week_start(record.date)].append(record.open_accounts)

    weeks = sorted(set(payments_by_week) | set(open_by_week))
    return [
        WeeklySummary(
            week_start=start,
            total_payments=payments_by_week.get(start, 0.0),
            avg_open_accounts=(
                sum(open_by_week[start]) / len(open_by_week[start]) if open_by_week.get(start) else 0.0
            ),
        )
        for start in weeks
    ]
