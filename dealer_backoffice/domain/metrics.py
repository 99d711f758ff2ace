"""Collections metrics and weekly payment forecast"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from dealer_backoffice.domain.models import (
    CollectionsMetrics,
    DailyRecord,
    DelinquencyRecord,
    ForecastDay,
    PaymentMix,
    PaymentMixSlice,
    WeeklyForecast,
    WeeklySummary,
)
from dealer_backoffice.utils.date_utils import generate_date_range, week_range, week_start

WEEKDAY_KEYS = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]

# Open accounts are read two weeks back because the delinquency feed lags
EXPECTATION_LAG_WEEKS = 2


def per_account_weekly_average(weekly: Sequence[WeeklySummary]) -> Optional[float]:
    """Mean of weekly payments per open account, over weeks with open accounts"""
    ratios = [w.total_payments / w.avg_open_accounts for w in weekly if w.avg_open_accounts > 0]
    if not ratios:
        return None
    return sum(ratios) / len(ratios)


def lagged_open_accounts(weekly: Sequence[WeeklySummary], target_week_start: date) -> float:
    """
    Average open accounts two weeks before the target week.

    When the target week is missing from the series the latest week stands in
    for it. Falls back to the target (or latest) week itself when the lag week
    is out of range, and to 0 when there is no data at all.
    """
    weeks = sorted(weekly, key=lambda w: w.week_start)
    if not weeks:
        return 0.0

    current_index = next((i for i, w in enumerate(weeks) if week_start(w.week_start) == target_week_start), -1)
    if current_index >= 0:
        current_week = weeks[current_index]
        lag_index = current_index - EXPECTATION_LAG_WEEKS
    else:
        current_week = weeks[-1]
        lag_index = len(weeks) - 1 - EXPECTATION_LAG_WEEKS

    if lag_index >= 0:
        return weeks[lag_index].avg_open_accounts
    return current_week.avg_open_accounts


def expected_weekly_total(weekly: Sequence[WeeklySummary], target_week_start: date) -> float:
    average = per_account_weekly_average(weekly) or 0.0
    return average * lagged_open_accounts(weekly, target_week_start)


def _daily_totals(payments: Sequence[DailyRecord]) -> Dict[date, float]:
    totals: Dict[date, float] = defaultdict(float)
    for record in payments:
        totals[record.date] += record.total
    return totals


def _first_max(items: Sequence[Tuple[date, float]]) -> Tuple[Optional[date], float]:
    best_key: Optional[date] = None
    best_value = 0.0
    for key, value in items:
        # Strict comparison: the earliest of equal totals keeps the record
        if best_key is None or value > best_value:
            best_key, best_value = key, value
    return best_key, best_value


def compute_collections_metrics(
    payments: Sequence[DailyRecord],
    delinquency: Sequence[DelinquencyRecord],
    weekly: Sequence[WeeklySummary],
    today: date,
) -> CollectionsMetrics:
    """Overview card numbers. Empty inputs produce zeros, never errors."""
    metrics = CollectionsMetrics()
    current_week_start = week_start(today)

    daily = _daily_totals(payments)
    metrics.today_total = daily.get(today, 0.0)
    metrics.week_to_date_total = sum(
        total for day, total in daily.items() if current_week_start <= day <= today
    )
    metrics.record_daily_date, metrics.record_daily_total = _first_max(sorted(daily.items()))

    ordered_weeks = sorted(weekly, key=lambda w: w.week_start)
    record_start, metrics.record_weekly_total = _first_max(
        [(w.week_start, w.total_payments) for w in ordered_weeks]
    )
    if record_start is not None:
        metrics.record_week_start, metrics.record_week_end = week_range(record_start)

    metrics.per_account_weekly_average = per_account_weekly_average(ordered_weeks) or 0.0
    metrics.expected_weekly_total = expected_weekly_total(ordered_weeks, current_week_start)

    today_entry = next((d for d in delinquency if d.date == today), None)
    if today_entry is not None:
        metrics.today_open_accounts = today_entry.open_accounts
        metrics.today_overdue_accounts = today_entry.overdue_accounts
        if today_entry.open_accounts > 0:
            metrics.today_delinquency_rate = today_entry.overdue_accounts / today_entry.open_accounts * 100

    return metrics


def weekday_shares(payments: Sequence[DailyRecord]) -> Dict[str, float]:
    """
    Share of historical collections falling on each weekday.

    Zero days are skipped except Sundays, which count even when closed. With no
    collections at all every weekday gets 1/7.
    """
    totals = {key: 0.0 for key in WEEKDAY_KEYS}
    included_total = 0.0
    for record in payments:
        key = WEEKDAY_KEYS[record.date.weekday()]
        if key == "sun" or record.total != 0:
            totals[key] += record.total
            included_total += record.total

    if included_total > 0:
        return {key: value / included_total for key, value in totals.items()}
    return {key: 1 / 7 for key in WEEKDAY_KEYS}


def build_weekly_forecast(
    weekly: Sequence[WeeklySummary],
    payments: Sequence[DailyRecord],
    today: date,
    selected_week_start: Optional[date] = None,
) -> Optional[WeeklyForecast]:
    """
    Expected vs actual payments per day for the selected (default: current) week.

    Returns None when there is no history to forecast from. For the current
    week only days up to today are listed.
    """
    if not weekly or not payments or per_account_weekly_average(weekly) is None:
        return None

    target_start = week_start(selected_week_start or today)
    is_current_week = target_start == week_start(today)
    weekly_total = expected_weekly_total(weekly, target_start)
    shares = weekday_shares(payments)
    actual_by_date = _daily_totals(payments)

    days: List[ForecastDay] = []
    for day in generate_date_range(target_start, target_start + timedelta(days=6)):
        if is_current_week and day > today:
            break
        key = WEEKDAY_KEYS[day.weekday()]
        days.append(
            ForecastDay(
                date=day,
                weekday=key,
                expected=weekly_total * shares[key],
                actual=actual_by_date.get(day, 0.0),
            )
        )

    return WeeklyForecast(
        week_start=target_start,
        is_current_week=is_current_week,
        expected_weekly_total=weekly_total,
        weekday_shares=shares,
        days=days,
        expected_so_far=sum(d.expected for d in days),
        actual_so_far=sum(d.actual for d in days),
    )


def compute_payment_mix(payments: Sequence[DailyRecord], today: date) -> PaymentMix:
    """Week-to-date cash vs BOA split; BOA is capped at each day's total"""
    start = week_start(today)
    total = 0.0
    boa_total = 0.0
    for record in payments:
        if record.date < start or record.date > today:
            continue
        day_total = record.total
        if day_total <= 0:
            continue
        total += day_total
        boa_total += min(day_total, record.boa_portion)

    cash_total = max(0.0, total - boa_total)
    if total > 0:
        slices = [
            PaymentMixSlice(label="Cash", value=cash_total, percentage=cash_total / total * 100),
            PaymentMixSlice(label="BOA", value=boa_total, percentage=boa_total / total * 100),
        ]
    else:
        slices = [
            PaymentMixSlice(label="Cash", value=0.0, percentage=0.0),
            PaymentMixSlice(label="BOA", value=0.0, percentage=0.0),
        ]
    return PaymentMix(total=total, slices=slices)
