"""Nightly inventory digest assembly"""

import asyncio
from datetime import date

from dealer_backoffice.domain.digest import build_digest
from dealer_backoffice.domain.models import ReportDigest
from dealer_backoffice.infrastructure.store.repositories import InventoryRepository
from dealer_backoffice.utils.date_utils import week_start

NIGHTLY_REPORT_TYPE = "nightly_inventory"


class NightlyReportService:
    def __init__(self, repository: InventoryRepository):
        self.repository = repository

    async def build(self, today: date) -> ReportDigest:
        """
        Read today's movements plus week-to-date sales/arrivals and build the digest.

        Week-to-date reads start at this week's Monday so each sale and arrival
        gets its running number for the week.
        """
        monday = week_start(today)
        (
            sold_today,
            week_sales,
            arrived_today,
            week_arrivals,
            status_logs,
            inventory,
        ) = await asyncio.gather(
            self.repository.get_sales_on(today),
            self.repository.get_sales_since(monday),
            self.repository.get_arrivals_on(today),
            self.repository.get_arrivals_since(monday),
            self.repository.get_status_logs_on(today),
            self.repository.get_current_inventory(),
        )
        vehicles_by_id = await self.repository.get_vehicles_by_ids(log.vehicle_id for log in status_logs)

        return build_digest(
            sold_today=sold_today,
            week_sales=week_sales,
            arrived_today=arrived_today,
            week_arrivals=week_arrivals,
            status_logs=status_logs,
            vehicles_by_id=vehicles_by_id,
            inventory=inventory,
        )
