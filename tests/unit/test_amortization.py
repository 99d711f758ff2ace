"""Unit tests for the deal calculator"""

from decimal import Decimal

import pytest

from dealer_backoffice.domain.amortization import (
    _daily_rate,
    _pays_off,
    build_amortization_schedule,
    build_deal_quote,
    calculate_finance_charge,
    calculate_payment_from_term,
    calculate_sales_taxes,
    calculate_term_from_payment,
    total_periods,
)
from dealer_backoffice.domain.exceptions import InfeasiblePaymentError
from dealer_backoffice.domain.models import CalculationMode, DealInput, PaymentFrequency, SaleType


def test_total_periods_rounds_up():
    assert total_periods(60, PaymentFrequency.BI_WEEKLY) == 130
    assert total_periods(60, PaymentFrequency.MONTHLY) == 60
    assert total_periods(1, PaymentFrequency.WEEKLY) == 5  # 52 / 12 = 4.33
    assert total_periods(0, PaymentFrequency.WEEKLY) == 0


def test_retail_sales_taxes():
    taxes = calculate_sales_taxes(Decimal("10000"), SaleType.RETAIL)

    assert taxes.state_tax == Decimal("734.60")
    assert taxes.business_tax == Decimal("30.45")
    assert taxes.local_tax == Decimal("44.00")
    assert taxes.total == Decimal("809.05")


def test_wholesale_is_untaxed():
    taxes = calculate_sales_taxes(Decimal("10000"), SaleType.WHOLESALE)
    assert taxes.total == 0


def test_payment_from_term_bi_weekly():
    payment = calculate_payment_from_term(Decimal("20000"), Decimal("19.99"), 60, PaymentFrequency.BI_WEEKLY)

    # Closed-form annuity payment is about 243.59
    assert Decimal("240") < payment < Decimal("247")
    assert payment == payment.quantize(Decimal("0.01"))


@pytest.mark.parametrize(
    "principal,frequency",
    [
        (Decimal("20000"), PaymentFrequency.BI_WEEKLY),
        (Decimal("11247.55"), PaymentFrequency.MONTHLY),
        (Decimal("8000"), PaymentFrequency.SEMI_MONTHLY),
        (Decimal("15000"), PaymentFrequency.WEEKLY),
    ],
)
def test_payment_from_term_is_smallest_cent_that_pays_off(principal, frequency):
    apr = Decimal("19.99")
    periods = total_periods(60, frequency)

    payment = calculate_payment_from_term(principal, apr, 60, frequency)

    assert _pays_off(principal, _daily_rate(apr), payment, frequency, periods)
    assert not _pays_off(principal, _daily_rate(apr), payment - Decimal("0.01"), frequency, periods)


def test_term_from_payment_inverts_payment_from_term():
    principal = Decimal("20000")
    payment = calculate_payment_from_term(principal, Decimal("19.99"), 60, PaymentFrequency.BI_WEEKLY)

    term = calculate_term_from_payment(principal, Decimal("19.99"), payment, PaymentFrequency.BI_WEEKLY)

    assert abs(term - 60) <= 1


def test_term_from_payment_below_interest_is_infeasible():
    with pytest.raises(InfeasiblePaymentError) as exc_info:
        calculate_term_from_payment(Decimal("20000"), Decimal("19.99"), Decimal("10"), PaymentFrequency.BI_WEEKLY)
    assert exc_info.value.period == 1


def test_term_from_zero_payment_is_infeasible():
    with pytest.raises(InfeasiblePaymentError):
        calculate_term_from_payment(Decimal("1000"), Decimal("0"), Decimal("0"), PaymentFrequency.MONTHLY)


def test_zero_apr_splits_principal_evenly():
    payment = calculate_payment_from_term(Decimal("1200"), Decimal("0"), 12, PaymentFrequency.MONTHLY)
    # 99.99 leaves 0.12 owed after twelve payments
    assert payment == Decimal("100.00")

    term = calculate_term_from_payment(Decimal("1200"), Decimal("0"), Decimal("100"), PaymentFrequency.MONTHLY)
    assert term == 12


def test_nothing_financed():
    assert calculate_payment_from_term(Decimal("0"), Decimal("19.99"), 60, PaymentFrequency.MONTHLY) == 0
    assert calculate_term_from_payment(Decimal("-5"), Decimal("19.99"), Decimal("100"), PaymentFrequency.MONTHLY) == 0
    assert calculate_finance_charge(Decimal("0"), Decimal("19.99"), Decimal("100"), 12, PaymentFrequency.MONTHLY) == 0


def test_default_deal_quote():
    quote = build_deal_quote(DealInput(sales_price=Decimal("10000")))

    assert quote.total_price == Decimal("11247.55")
    assert quote.amount_financed == Decimal("11247.55")
    assert quote.term_months == 60
    assert quote.total_periods == 60
    assert quote.payment_amount > 0
    assert quote.balance_due == quote.amount_financed + quote.finance_charge


def test_deal_quote_down_payment_reduces_amount_financed():
    quote = build_deal_quote(DealInput(sales_price=Decimal("10000"), down_payment=Decimal("1247.55")))
    assert quote.amount_financed == Decimal("10000.00")


def test_deal_quote_by_payment_solves_term():
    deal = DealInput(
        sales_price=Decimal("10000"),
        mode=CalculationMode.BY_PAYMENT,
        payment_amount=Decimal("500"),
        term_months=None,
    )
    quote = build_deal_quote(deal)

    assert quote.payment_amount == Decimal("500")
    assert 24 <= quote.term_months <= 30
    assert quote.total_periods == quote.term_months
    assert quote.finance_charge > 0


def test_deal_quote_by_payment_infeasible():
    deal = DealInput(sales_price=Decimal("10000"), mode=CalculationMode.BY_PAYMENT, payment_amount=Decimal("50"))
    with pytest.raises(InfeasiblePaymentError):
        build_deal_quote(deal)


def test_schedule_final_payment_is_reduced():
    rows = build_amortization_schedule(Decimal("1000"), Decimal("0"), Decimal("300"), 12, PaymentFrequency.MONTHLY)

    assert [r.payment for r in rows] == [Decimal("300"), Decimal("300"), Decimal("300"), Decimal("100")]
    assert rows[-1].balance == 0
    assert all(r.interest == 0 for r in rows)


def test_schedule_interest_matches_finance_charge():
    principal, apr, payment = Decimal("5000"), Decimal("19.99"), Decimal("500")
    rows = build_amortization_schedule(principal, apr, payment, 12, PaymentFrequency.MONTHLY)
    finance_charge = calculate_finance_charge(principal, apr, payment, 12, PaymentFrequency.MONTHLY)

    assert sum(r.interest for r in rows) == finance_charge
    assert rows[-1].balance <= Decimal("0.01")
    assert all(r.principal + r.interest == r.payment for r in rows)


def test_schedule_rejects_payment_below_interest():
    with pytest.raises(InfeasiblePaymentError):
        build_amortization_schedule(Decimal("20000"), Decimal("19.99"), Decimal("10"), 12, PaymentFrequency.MONTHLY)
