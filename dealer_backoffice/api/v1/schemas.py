"""Pydantic schemas for API request/response validation"""

import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from dealer_backoffice.config import settings
from dealer_backoffice.domain.models import CalculationMode, PaymentFrequency, SaleType
from dealer_backoffice.utils.numbers import parse_numeric, to_money


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Collections


class ChartAxisSchema(ORMModel):
    domain_min: float
    domain_max: float
    ticks: List[float]


class YearOverYearSeriesResponse(ORMModel):
    """Response for GET /v1/collections/weekly-payments and weekly-delinquency"""

    week_numbers: List[int]
    years: List[int]
    values: Dict[int, List[Optional[float]]]
    current_year: Optional[int] = None
    default_visible: Dict[int, bool]
    x_ticks: List[int]
    y_axis: ChartAxisSchema


class CollectionsMetricsResponse(ORMModel):
    """Response for GET /v1/collections/metrics"""

    today_total: float
    week_to_date_total: float
    record_daily_total: float
    record_daily_date: Optional[date] = None
    record_weekly_total: float
    record_week_start: Optional[date] = None
    record_week_end: Optional[date] = None
    per_account_weekly_average: float
    expected_weekly_total: float
    today_open_accounts: float
    today_overdue_accounts: float
    today_delinquency_rate: float


class ForecastDaySchema(ORMModel):
    date: dt.date
    weekday: str
    expected: float
    actual: float


class WeeklyForecastResponse(ORMModel):
    """Response for GET /v1/collections/forecast"""

    week_start: date
    is_current_week: bool
    expected_weekly_total: float
    weekday_shares: Dict[str, float]
    days: List[ForecastDaySchema]
    expected_so_far: float
    actual_so_far: float
    difference: float


class PaymentMixSliceSchema(ORMModel):
    label: str
    value: float
    percentage: float


class PaymentMixResponse(ORMModel):
    """Response for GET /v1/collections/payment-mix"""

    total: float
    slices: List[PaymentMixSliceSchema]


class DailyLogRequest(BaseModel):
    """Request body for POST /v1/collections/daily-log; numbers may be typed as text"""

    date: Optional[dt.date] = Field(None, description="Defaults to today in the business timezone")
    payments: float = 0.0
    late_fees: float = 0.0
    boa: float = 0.0
    overdue_accounts: float = 0.0
    open_accounts: float = 0.0

    @field_validator("payments", "late_fees", "boa", "overdue_accounts", "open_accounts", mode="before")
    @classmethod
    def coerce_numeric(cls, value: Any) -> float:
        return parse_numeric(value)


class DailyLogResponse(BaseModel):
    date: dt.date
    status: str = "logged"


# Deals


class DealQuoteRequest(BaseModel):
    """Request body for POST /v1/deals/quote and /v1/deals/schedule"""

    sales_price: Decimal = Field(..., ge=0)
    sale_type: SaleType = SaleType.RETAIL
    doc_notary_fee: Decimal = Field(default_factory=lambda: to_money(settings.default_doc_notary_fee), ge=0)
    title_license_fee: Decimal = Field(default_factory=lambda: to_money(settings.default_title_license_fee), ge=0)
    down_payment: Decimal = Field(Decimal("0"), ge=0)
    apr_percent: Decimal = Field(default_factory=lambda: to_money(settings.default_apr_percent), ge=0, le=100)
    frequency: PaymentFrequency = PaymentFrequency.BI_WEEKLY
    mode: CalculationMode = CalculationMode.BY_TERM
    term_months: Optional[int] = Field(60, ge=0, le=600)
    payment_amount: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_mode_inputs(self) -> "DealQuoteRequest":
        if self.mode == CalculationMode.BY_PAYMENT and self.payment_amount is None:
            raise ValueError("payment_amount is required when mode is byPayment")
        if self.mode == CalculationMode.BY_TERM and self.term_months is None:
            raise ValueError("term_months is required when mode is byTerm")
        return self


class SalesTaxesSchema(ORMModel):
    state_tax: Decimal
    business_tax: Decimal
    local_tax: Decimal
    total: Decimal


class DealQuoteResponse(ORMModel):
    """Response for POST /v1/deals/quote"""

    taxes: SalesTaxesSchema
    total_price: Decimal
    amount_financed: Decimal
    frequency: PaymentFrequency
    term_months: int
    payment_amount: Decimal
    total_periods: int
    finance_charge: Decimal
    balance_due: Decimal


class ScheduleRowSchema(ORMModel):
    period: int
    payment: Decimal
    interest: Decimal
    principal: Decimal
    balance: Decimal


class DealScheduleResponse(BaseModel):
    """Response for POST /v1/deals/schedule"""

    quote: DealQuoteResponse
    rows: List[ScheduleRowSchema]


# Reports


class IndexedVehicleSchema(ORMModel):
    vehicle: str
    weekly_index: int


class NightlyReportResponse(ORMModel):
    """Response for GET /v1/reports/nightly"""

    report_date: date
    text: str
    sold: List[IndexedVehicleSchema]
    received_new: List[IndexedVehicleSchema]
    repairs: List[str]
    trash: List[str]
    received_back: List[str]
    deposit: List[str]
    total_inventory: int
    bhph_count: int
    cash_count: int


class ReportLogItem(ORMModel):
    """Single stored report snapshot"""

    id: str
    report_type: str
    report_date: date
    logged_at: datetime
    payload: Dict[str, Any]

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> str:
        return str(value)


class ReportLogListResponse(BaseModel):
    """Response for GET /v1/reports/logs"""

    report_type: str
    logs: List[ReportLogItem]


# Exports


class RemoteExportRequest(BaseModel):
    """Request body for POST /v1/exports/remote/{report_type}"""

    week_key: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$", description="Commission week (YYYY-MM-DD)")


class TableExportRequest(BaseModel):
    """Request body for POST /v1/exports/table"""

    title: str = Field(..., min_length=1)
    rows: List[Dict[str, Any]] = Field(..., min_length=1)
    filename: Optional[str] = None
