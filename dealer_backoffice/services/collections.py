"""Collections overview: loads the store tables and runs the weekly computations"""

import asyncio
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from dealer_backoffice.domain.aggregation import (
    build_weekly_summaries,
    weekly_delinquency_series,
    weekly_payment_series,
)
from dealer_backoffice.domain.metrics import build_weekly_forecast, compute_collections_metrics, compute_payment_mix
from dealer_backoffice.domain.models import (
    CollectionsMetrics,
    DailyRecord,
    DelinquencyRecord,
    PaymentMix,
    WeeklyForecast,
    WeeklySummary,
    YearOverYearSeries,
)
from dealer_backoffice.infrastructure.store.repositories import CollectionsRepository


@dataclass
class CollectionsData:
    payments: List[DailyRecord]
    delinquency: List[DelinquencyRecord]

    @property
    def weekly(self) -> List[WeeklySummary]:
        return build_weekly_summaries(self.payments, self.delinquency)


class CollectionsService:
    """Each call reads fresh rows; results are recomputed, never cached"""

    def __init__(self, repository: CollectionsRepository):
        self.repository = repository

    async def load(self) -> CollectionsData:
        payments, delinquency = await asyncio.gather(
            self.repository.get_payments(),
            self.repository.get_delinquency(),
        )
        return CollectionsData(payments=payments, delinquency=delinquency)

    async def metrics(self, today: date) -> CollectionsMetrics:
        data = await self.load()
        return compute_collections_metrics(data.payments, data.delinquency, data.weekly, today)

    async def weekly_payments(self, today: date) -> YearOverYearSeries:
        payments = await self.repository.get_payments()
        return weekly_payment_series(payments, today)

    async def weekly_delinquency(self, today: date) -> YearOverYearSeries:
        delinquency = await self.repository.get_delinquency()
        return weekly_delinquency_series(delinquency, today)

    async def forecast(self, today: date, week_start: Optional[date] = None) -> Optional[WeeklyForecast]:
        data = await self.load()
        return build_weekly_forecast(data.weekly, data.payments, today, week_start)

    async def payment_mix(self, today: date) -> PaymentMix:
        payments = await self.repository.get_payments()
        return compute_payment_mix(payments, today)

    async def log_day(
        self,
        day: date,
        payments: float,
        late_fees: float,
        boa_portion: float,
        overdue_accounts: float,
        open_accounts: float,
    ) -> None:
        await self.repository.log_day(day, payments, late_fees, boa_portion, overdue_accounts, open_accounts)
