"""Deal calculator: sales taxes, payment/term solving and amortization"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List

from dealer_backoffice.domain.exceptions import InfeasiblePaymentError
from dealer_backoffice.domain.models import (
    CalculationMode,
    DealInput,
    DealQuote,
    PaymentFrequency,
    SalesTaxes,
    SaleType,
    ScheduleRow,
)
from dealer_backoffice.utils.numbers import CENT, truncate_cents

ZERO = Decimal("0")
PAYOFF_THRESHOLD = CENT
MAX_BISECTION_ITERATIONS = 100
MAX_TERM_PERIODS = 1000


@dataclass(frozen=True)
class TaxRates:
    """Retail tax parameters; wholesale deals are untaxed"""

    state_rate: Decimal = Decimal("0.07346")
    business_rate: Decimal = Decimal("0.003045")
    local_flat: Decimal = Decimal("44.00")


DEFAULT_TAX_RATES = TaxRates()


def total_periods(term_months: int, frequency: PaymentFrequency) -> int:
    """ceil(term_months / 12 * periods_per_year), in exact integer arithmetic"""
    if term_months <= 0:
        return 0
    return -(-term_months * frequency.periods_per_year // 12)


def _daily_rate(apr_percent: Decimal) -> Decimal:
    return apr_percent / Decimal(100) / Decimal(365)


def _period_interest(balance: Decimal, daily_rate: Decimal, frequency: PaymentFrequency) -> Decimal:
    return truncate_cents(balance * daily_rate * frequency.days_per_period)


def _pays_off(principal: Decimal, daily_rate: Decimal, payment: Decimal,
              frequency: PaymentFrequency, max_periods: int) -> bool:
    balance = principal
    periods = 0
    while balance > PAYOFF_THRESHOLD and periods < max_periods:
        interest = _period_interest(balance, daily_rate, frequency)
        principal_paid = payment - interest
        if principal_paid <= 0:
            return False
        balance = truncate_cents(balance - principal_paid)
        periods += 1
    return balance <= PAYOFF_THRESHOLD


def calculate_sales_taxes(sales_price: Decimal, sale_type: SaleType,
                          rates: TaxRates = DEFAULT_TAX_RATES) -> SalesTaxes:
    """
    Taxes owed on a sale.

    Retail: state and business taxes are percentages of the price truncated to
    cents, local tax is a flat amount. Wholesale: all zero.
    """
    if sale_type == SaleType.WHOLESALE:
        return SalesTaxes(state_tax=ZERO, business_tax=ZERO, local_tax=ZERO)

    return SalesTaxes(
        state_tax=truncate_cents(sales_price * rates.state_rate),
        business_tax=truncate_cents(sales_price * rates.business_rate),
        local_tax=rates.local_flat,
    )


def calculate_payment_from_term(
    principal: Decimal,
    apr_percent: Decimal,
    term_months: int,
    frequency: PaymentFrequency,
) -> Decimal:
    """
    Smallest per-period payment that retires the loan within the term.

    Requirements:
    - Interest accrues daily (APR / 365) over each period's day count
    - Interest and balance are truncated to cents every period
    - Bisection on [0, 2 * principal] until the bracket is within one cent

    Returns:
        Smallest whole-cent payment that drains the balance to one cent or
        less; 0 when principal or term is not positive
    """
    if principal <= 0 or term_months <= 0:
        return ZERO

    daily_rate = _daily_rate(apr_percent)
    periods = total_periods(term_months, frequency)

    low = ZERO
    high = principal * 2
    best_payment = ZERO

    for _ in range(MAX_BISECTION_ITERATIONS):
        if high - low <= CENT:
            break
        candidate = (low + high) / 2
        if _pays_off(principal, daily_rate, candidate, frequency, periods):
            best_payment = candidate
            high = candidate
        else:
            low = candidate

    # Flooring can drop below the payoff threshold
    payment = truncate_cents(best_payment)
    while not _pays_off(principal, daily_rate, payment, frequency, periods):
        payment += CENT
    return payment


def calculate_term_from_payment(
    principal: Decimal,
    apr_percent: Decimal,
    payment: Decimal,
    frequency: PaymentFrequency,
) -> int:
    """
    Months needed to retire the loan with a fixed per-period payment.

    Raises:
        InfeasiblePaymentError: the payment does not cover a period's interest,
            or the loan is still open after MAX_TERM_PERIODS payments
    """
    if principal <= 0:
        return 0
    if payment <= 0:
        raise InfeasiblePaymentError(payment, 1)

    daily_rate = _daily_rate(apr_percent)
    balance = principal
    periods = 0
    while balance > PAYOFF_THRESHOLD and periods < MAX_TERM_PERIODS:
        interest = _period_interest(balance, daily_rate, frequency)
        principal_paid = payment - interest
        if principal_paid <= 0:
            raise InfeasiblePaymentError(payment, periods + 1)
        balance = truncate_cents(balance - principal_paid)
        periods += 1

    if balance > PAYOFF_THRESHOLD:
        raise InfeasiblePaymentError(payment, periods)

    return -(-periods * 12 // frequency.periods_per_year)


def calculate_finance_charge(
    principal: Decimal,
    apr_percent: Decimal,
    payment: Decimal,
    term_months: int,
    frequency: PaymentFrequency,
) -> Decimal:
    """Total truncated interest paid over the term at the given payment"""
    if principal <= 0 or payment <= 0 or term_months <= 0:
        return ZERO

    daily_rate = _daily_rate(apr_percent)
    max_periods = total_periods(term_months, frequency)
    balance = principal
    total_interest = ZERO
    periods = 0
    while balance > PAYOFF_THRESHOLD and periods < max_periods:
        interest = _period_interest(balance, daily_rate, frequency)
        total_interest += interest
        balance = truncate_cents(balance - (payment - interest))
        periods += 1

    return truncate_cents(total_interest)


def build_amortization_schedule(
    principal: Decimal,
    apr_percent: Decimal,
    payment: Decimal,
    term_months: int,
    frequency: PaymentFrequency,
) -> List[ScheduleRow]:
    """
    Period-by-period schedule matching calculate_finance_charge.

    The final payment is reduced to what is owed so the balance ends at zero.
    """
    if principal <= 0 or payment <= 0 or term_months <= 0:
        return []

    daily_rate = _daily_rate(apr_percent)
    max_periods = total_periods(term_months, frequency)
    balance = principal
    rows: List[ScheduleRow] = []
    while balance > PAYOFF_THRESHOLD and len(rows) < max_periods:
        period = len(rows) + 1
        interest = _period_interest(balance, daily_rate, frequency)
        if payment - interest <= 0:
            raise InfeasiblePaymentError(payment, period)

        amount = min(payment, balance + interest)
        principal_paid = amount - interest
        balance = max(ZERO, truncate_cents(balance - principal_paid))
        rows.append(
            ScheduleRow(
                period=period,
                payment=amount,
                interest=interest,
                principal=principal_paid,
                balance=balance,
            )
        )

    return rows


def build_deal_quote(deal: DealInput, rates: TaxRates = DEFAULT_TAX_RATES) -> DealQuote:
    """
    Derive every calculator output from the entered numbers.

    In BY_TERM mode the payment is solved for the given term; in BY_PAYMENT
    mode the term is solved for the given payment. Finance charge and balance
    due follow from whichever pair results.
    """
    taxes = calculate_sales_taxes(deal.sales_price, deal.sale_type, rates)
    total_price = deal.sales_price + deal.doc_notary_fee + deal.title_license_fee + taxes.total
    amount_financed = total_price - deal.down_payment

    if deal.mode == CalculationMode.BY_PAYMENT:
        payment = deal.payment_amount or ZERO
        term_months = deal.term_months or 0
        if amount_financed > 0 and payment > 0:
            term_months = calculate_term_from_payment(amount_financed, deal.apr_percent, payment, deal.frequency)
    else:
        term_months = deal.term_months or 0
        payment = calculate_payment_from_term(amount_financed, deal.apr_percent, term_months, deal.frequency)

    finance_charge = calculate_finance_charge(
        amount_financed, deal.apr_percent, payment, term_months, deal.frequency
    )

    return DealQuote(
        taxes=taxes,
        total_price=total_price,
        amount_financed=amount_financed,
        frequency=deal.frequency,
        term_months=term_months,
        payment_amount=payment,
        total_periods=total_periods(term_months, deal.frequency),
        finance_charge=finance_charge,
        balance_due=amount_financed + finance_charge,
    )
