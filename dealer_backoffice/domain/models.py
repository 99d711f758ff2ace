"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional


@dataclass(frozen=True)
class DailyRecord:
    """One day of collected payments from the Payments table"""

    date: date
    payments: float
    late_fees: float
    boa_portion: float = 0.0

    @property
    def total(self) -> float:
        return self.payments + self.late_fees


@dataclass(frozen=True)
class DelinquencyRecord:
    """One day of account counts from the Delinquency table"""

    date: date
    open_accounts: float
    overdue_accounts: float


@dataclass(frozen=True, order=True)
class WeekBucket:
    """Fiscal (year, week) key for a date"""

    fiscal_year: int
    week_number: int


@dataclass
class WeeklySummary:
    """Per-week payment total and average open accounts"""

    week_start: date
    total_payments: float
    avg_open_accounts: float


@dataclass
class ChartAxis:
    """Y-axis domain and tick positions for a rendered series"""

    domain_min: float
    domain_max: float
    ticks: List[float]


@dataclass
class YearOverYearSeries:
    """Dense week-indexed series with one column per fiscal year"""

    week_numbers: List[int]
    years: List[int]
    values: Dict[int, List[Optional[float]]]
    current_year: Optional[int]
    default_visible: Dict[int, bool]
    x_ticks: List[int]
    y_axis: ChartAxis

    @property
    def is_empty(self) -> bool:
        return not self.week_numbers


@dataclass
class CollectionsMetrics:
    """Headline numbers for the collections overview cards"""

    today_total: float = 0.0
    week_to_date_total: float = 0.0
    record_daily_total: float = 0.0
    record_daily_date: Optional[date] = None
    record_weekly_total: float = 0.0
    record_week_start: Optional[date] = None
    record_week_end: Optional[date] = None
    per_account_weekly_average: float = 0.0
    expected_weekly_total: float = 0.0
    today_open_accounts: float = 0.0
    today_overdue_accounts: float = 0.0
    today_delinquency_rate: float = 0.0


@dataclass
class ForecastDay:
    """Expected vs actual payments for one day of the forecast week"""

    date: date
    weekday: str
    expected: float
    actual: float


@dataclass
class WeeklyForecast:
    """Day-by-day forecast for a selected week"""

    week_start: date
    is_current_week: bool
    expected_weekly_total: float
    weekday_shares: Dict[str, float]
    days: List[ForecastDay]
    expected_so_far: float
    actual_so_far: float

    @property
    def difference(self) -> float:
        return self.actual_so_far - self.expected_so_far


@dataclass
class PaymentMixSlice:
    label: str
    value: float
    percentage: float


@dataclass
class PaymentMix:
    """Week-to-date split of collections between cash and BOA"""

    total: float
    slices: List[PaymentMixSlice]


class PaymentFrequency(str, Enum):
    """Payment schedule options offered on a deal"""

    WEEKLY = "Weekly"
    BI_WEEKLY = "Bi-Weekly"
    SEMI_MONTHLY = "Semi-Monthly"
    MONTHLY = "Monthly"

    @property
    def days_per_period(self) -> Decimal:
        return _DAYS_PER_PERIOD[self]

    @property
    def periods_per_year(self) -> int:
        return _PERIODS_PER_YEAR[self]


_DAYS_PER_PERIOD = {
    PaymentFrequency.WEEKLY: Decimal(7),
    PaymentFrequency.BI_WEEKLY: Decimal(14),
    PaymentFrequency.SEMI_MONTHLY: Decimal(365) / Decimal(24),
    PaymentFrequency.MONTHLY: Decimal(365) / Decimal(12),
}

_PERIODS_PER_YEAR = {
    PaymentFrequency.WEEKLY: 52,
    PaymentFrequency.BI_WEEKLY: 26,
    PaymentFrequency.SEMI_MONTHLY: 24,
    PaymentFrequency.MONTHLY: 12,
}


class SaleType(str, Enum):
    RETAIL = "Retail"
    WHOLESALE = "Wholesale"


class CalculationMode(str, Enum):
    """Which loan variable the user entered; the other one is solved for"""

    BY_TERM = "byTerm"
    BY_PAYMENT = "byPayment"


@dataclass(frozen=True)
class SalesTaxes:
    state_tax: Decimal
    business_tax: Decimal
    local_tax: Decimal

    @property
    def total(self) -> Decimal:
        return self.state_tax + self.business_tax + self.local_tax


@dataclass
class DealInput:
    """Numbers entered on the deal calculator"""

    sales_price: Decimal
    sale_type: SaleType = SaleType.RETAIL
    doc_notary_fee: Decimal = Decimal("299.00")
    title_license_fee: Decimal = Decimal("139.50")
    down_payment: Decimal = Decimal("0")
    apr_percent: Decimal = Decimal("19.99")
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    mode: CalculationMode = CalculationMode.BY_TERM
    term_months: Optional[int] = 60
    payment_amount: Optional[Decimal] = None


@dataclass
class DealQuote:
    """Derived deal figures; recomputed on every request"""

    taxes: SalesTaxes
    total_price: Decimal
    amount_financed: Decimal
    frequency: PaymentFrequency
    term_months: int
    payment_amount: Decimal
    total_periods: int
    finance_charge: Decimal
    balance_due: Decimal


@dataclass
class ScheduleRow:
    """One period of an amortization schedule"""

    period: int
    payment: Decimal
    interest: Decimal
    principal: Decimal
    balance: Decimal


@dataclass(frozen=True)
class VehicleRef:
    """Inventory row reduced to what the nightly digest needs"""

    vehicle_id: str
    year: Optional[str]
    model: str
    vin: str
    vin_last4: str
    status: str
    arrival_date: Optional[date] = None


@dataclass(frozen=True)
class SaleRef:
    """Sales row reduced to what the nightly digest needs"""

    year: Optional[str]
    model: str
    vin: str
    vin_last4: str
    sale_date: Optional[date]


@dataclass(frozen=True)
class StatusLogEntry:
    """Inventory status transition from the status_logs table"""

    vehicle_id: str
    previous_status: Optional[str]
    new_status: Optional[str]
    changed_at: Optional[date] = None


@dataclass(frozen=True)
class IndexedVehicle:
    """Vehicle label with its 1-based position within the week so far"""

    vehicle: str
    weekly_index: int


@dataclass
class ReportDigest:
    """Nightly inventory digest buckets"""

    sold: List[IndexedVehicle] = field(default_factory=list)
    received_new: List[IndexedVehicle] = field(default_factory=list)
    repairs: List[str] = field(default_factory=list)
    trash: List[str] = field(default_factory=list)
    received_back: List[str] = field(default_factory=list)
    deposit: List[str] = field(default_factory=list)
    total_inventory: int = 0
    bhph_count: int = 0
    cash_count: int = 0


@dataclass(frozen=True)
class ExportArtifact:
    """A finished export ready to be downloaded"""

    content: bytes
    media_type: str
    filename: str
