"""Column maps between row store tables and domain records"""

import re
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from dealer_backoffice.domain.models import (
    DailyRecord,
    DelinquencyRecord,
    SaleRef,
    StatusLogEntry,
    VehicleRef,
)
from dealer_backoffice.utils.date_utils import format_date_key, parse_date
from dealer_backoffice.utils.numbers import parse_numeric

SIMPLE_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")

PAYMENTS_TABLE = "Payments"
DELINQUENCY_TABLE = "Delinquency"
SALES_TABLE = "Sales"
INVENTORY_TABLE = "Inventory"
STATUS_LOGS_TABLE = "status_logs"

PAYMENTS_FIELD_MAP = {
    "date": "Date",
    "payments": "Payments",
    "late_fees": "Late Fees",
    "boa_portion": "BOA",
}

DELINQUENCY_FIELD_MAP = {
    "date": "Date",
    "overdue_accounts": "Overdue Accounts",
    "open_accounts": "Open Accounts",
}

SALE_FIELD_MAP = {
    "sale_date": "Sale Date",
    "year": "Year",
    "model": "Model",
    "vin": "VIN",
    "vin_last4": "Vin Last 4",
}

VEHICLE_FIELD_MAP = {
    "vehicle_id": "Vehicle ID",
    "status": "Status",
    "arrival_date": "Arrival Date",
    "year": "Year",
    "model": "Model",
    "vin": "VIN",
    "vin_last4": "Vin Last 4",
}


def quote_column(column: str) -> str:
    """Double-quote a column name for PostgREST filters unless it is a plain identifier"""
    if column.startswith('"') and column.endswith('"'):
        return column
    if SIMPLE_IDENTIFIER.match(column):
        return column
    escaped = column.replace('"', '""')
    return f'"{escaped}"'


def _field(row: Mapping[str, Any], column: str) -> Any:
    # Rows may come back keyed by the quoted name
    if column in row:
        return row[column]
    return row.get(quote_column(column))


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def payment_from_row(row: Mapping[str, Any]) -> Optional[DailyRecord]:
    """Payments row -> DailyRecord; rows without a parseable date are dropped"""
    day = parse_date(_field(row, PAYMENTS_FIELD_MAP["date"]))
    if day is None:
        return None
    return DailyRecord(
        date=day,
        payments=parse_numeric(_field(row, PAYMENTS_FIELD_MAP["payments"])),
        late_fees=parse_numeric(_field(row, PAYMENTS_FIELD_MAP["late_fees"])),
        boa_portion=parse_numeric(_field(row, PAYMENTS_FIELD_MAP["boa_portion"])),
    )


def delinquency_from_row(row: Mapping[str, Any]) -> Optional[DelinquencyRecord]:
    day = parse_date(_field(row, DELINQUENCY_FIELD_MAP["date"]))
    if day is None:
        return None
    return DelinquencyRecord(
        date=day,
        open_accounts=parse_numeric(_field(row, DELINQUENCY_FIELD_MAP["open_accounts"])),
        overdue_accounts=parse_numeric(_field(row, DELINQUENCY_FIELD_MAP["overdue_accounts"])),
    )


def sale_from_row(row: Mapping[str, Any]) -> SaleRef:
    return SaleRef(
        year=_optional_text(_field(row, SALE_FIELD_MAP["year"])),
        model=_text(_field(row, SALE_FIELD_MAP["model"])),
        vin=_text(_field(row, SALE_FIELD_MAP["vin"])),
        vin_last4=_text(_field(row, SALE_FIELD_MAP["vin_last4"])),
        sale_date=parse_date(_field(row, SALE_FIELD_MAP["sale_date"])),
    )


def vehicle_from_row(row: Mapping[str, Any]) -> VehicleRef:
    return VehicleRef(
        vehicle_id=_text(_field(row, VEHICLE_FIELD_MAP["vehicle_id"])),
        year=_optional_text(_field(row, VEHICLE_FIELD_MAP["year"])),
        model=_text(_field(row, VEHICLE_FIELD_MAP["model"])),
        vin=_text(_field(row, VEHICLE_FIELD_MAP["vin"])),
        vin_last4=_text(_field(row, VEHICLE_FIELD_MAP["vin_last4"])),
        status=_text(_field(row, VEHICLE_FIELD_MAP["status"])),
        arrival_date=parse_date(_field(row, VEHICLE_FIELD_MAP["arrival_date"])),
    )


def status_log_from_row(row: Mapping[str, Any]) -> StatusLogEntry:
    return StatusLogEntry(
        vehicle_id=_text(row.get("vehicle_id")),
        previous_status=_optional_text(row.get("previous_status")),
        new_status=_optional_text(row.get("new_status")),
        changed_at=parse_date(row.get("changed_at")),
    )


def payments_from_rows(rows: List[Mapping[str, Any]]) -> List[DailyRecord]:
    return [record for record in (payment_from_row(r) for r in rows) if record is not None]


def delinquency_from_rows(rows: List[Mapping[str, Any]]) -> List[DelinquencyRecord]:
    return [record for record in (delinquency_from_row(r) for r in rows) if record is not None]


def payment_to_row(day: date, payments: float, late_fees: float, boa_portion: float) -> Dict[str, Any]:
    return {
        PAYMENTS_FIELD_MAP["date"]: format_date_key(day),
        PAYMENTS_FIELD_MAP["payments"]: payments,
        PAYMENTS_FIELD_MAP["late_fees"]: late_fees,
        PAYMENTS_FIELD_MAP["boa_portion"]: boa_portion,
    }


def delinquency_to_row(day: date, overdue_accounts: float, open_accounts: float) -> Dict[str, Any]:
    return {
        DELINQUENCY_FIELD_MAP["date"]: format_date_key(day),
        DELINQUENCY_FIELD_MAP["overdue_accounts"]: overdue_accounts,
        DELINQUENCY_FIELD_MAP["open_accounts"]: open_accounts,
    }
