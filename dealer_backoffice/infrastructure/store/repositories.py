"""Row store reads and writes for collections and inventory"""

from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List

from dealer_backoffice.domain.models import (
    DailyRecord,
    DelinquencyRecord,
    SaleRef,
    StatusLogEntry,
    VehicleRef,
)
from dealer_backoffice.infrastructure.clients.store import RowStoreClient, eq, gte, in_, lt, neq
from dealer_backoffice.infrastructure.store import mapping
from dealer_backoffice.utils.date_utils import business_tz, format_date_key

BY_DATE = f"{mapping.quote_column('Date')}.asc"


class CollectionsRepository:
    """Payments and Delinquency tables"""

    def __init__(self, client: RowStoreClient):
        self.client = client

    async def get_payments(self) -> List[DailyRecord]:
        rows = await self.client.select(mapping.PAYMENTS_TABLE, order=BY_DATE)
        return mapping.payments_from_rows(rows)

    async def get_delinquency(self) -> List[DelinquencyRecord]:
        rows = await self.client.select(mapping.DELINQUENCY_TABLE, order=BY_DATE)
        return mapping.delinquency_from_rows(rows)

    async def log_day(
        self,
        day: date,
        payments: float,
        late_fees: float,
        boa_portion: float,
        overdue_accounts: float,
        open_accounts: float,
    ) -> None:
        """Upsert one day's numbers into both tables, keyed by Date"""
        await self.client.upsert(
            mapping.PAYMENTS_TABLE,
            mapping.payment_to_row(day, payments, late_fees, boa_portion),
            on_conflict="Date",
        )
        await self.client.upsert(
            mapping.DELINQUENCY_TABLE,
            mapping.delinquency_to_row(day, overdue_accounts, open_accounts),
            on_conflict="Date",
        )


class InventoryRepository:
    """Sales, Inventory and status_logs reads for the nightly digest"""

    def __init__(self, client: RowStoreClient):
        self.client = client

    async def get_sales_on(self, day: date) -> List[SaleRef]:
        rows = await self.client.select(mapping.SALES_TABLE, [eq("Sale Date", format_date_key(day))])
        return [mapping.sale_from_row(r) for r in rows]

    async def get_sales_since(self, day: date) -> List[SaleRef]:
        rows = await self.client.select(mapping.SALES_TABLE, [gte("Sale Date", format_date_key(day))])
        return [mapping.sale_from_row(r) for r in rows]

    async def get_arrivals_on(self, day: date) -> List[VehicleRef]:
        rows = await self.client.select(mapping.INVENTORY_TABLE, [eq("Arrival Date", format_date_key(day))])
        return [mapping.vehicle_from_row(r) for r in rows]

    async def get_arrivals_since(self, day: date) -> List[VehicleRef]:
        rows = await self.client.select(mapping.INVENTORY_TABLE, [gte("Arrival Date", format_date_key(day))])
        return [mapping.vehicle_from_row(r) for r in rows]

    async def get_status_logs_on(self, day: date) -> List[StatusLogEntry]:
        """Transitions whose timestamp falls on the given business-local day"""
        start = datetime.combine(day, time.min, tzinfo=business_tz())
        end = start + timedelta(days=1)
        rows = await self.client.select(
            mapping.STATUS_LOGS_TABLE,
            [gte("changed_at", start.isoformat()), lt("changed_at", end.isoformat())],
            order="changed_at.asc",
        )
        return [mapping.status_log_from_row(r) for r in rows]

    async def get_vehicles_by_ids(self, vehicle_ids: Iterable[str]) -> Dict[str, VehicleRef]:
        ids = sorted(set(vehicle_ids))
        if not ids:
            return {}
        rows = await self.client.select(mapping.INVENTORY_TABLE, [in_("Vehicle ID", ids)])
        vehicles = [mapping.vehicle_from_row(r) for r in rows]
        return {v.vehicle_id: v for v in vehicles}

    async def get_current_inventory(self) -> List[VehicleRef]:
        rows = await self.client.select(mapping.INVENTORY_TABLE, [neq("Status", "Sold")])
        return [mapping.vehicle_from_row(r) for r in rows]
