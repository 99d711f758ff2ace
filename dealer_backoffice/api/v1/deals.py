"""/v1/deals - deal calculator quote and amortization schedule"""

import logging

from fastapi import APIRouter, HTTPException, Request

from dealer_backoffice.api.dependencies import get_request_id
from dealer_backoffice.api.v1.schemas import (
    DealQuoteRequest,
    DealQuoteResponse,
    DealScheduleResponse,
    SalesTaxesSchema,
    ScheduleRowSchema,
)
from dealer_backoffice.config import settings
from dealer_backoffice.domain.amortization import TaxRates, build_amortization_schedule, build_deal_quote
from dealer_backoffice.domain.exceptions import InfeasiblePaymentError
from dealer_backoffice.domain.models import DealInput, DealQuote
from dealer_backoffice.infrastructure.observability.metrics import infeasible_payment_counter
from dealer_backoffice.utils.numbers import to_money

router = APIRouter(prefix="/deals")


def _tax_rates() -> TaxRates:
    return TaxRates(
        state_rate=to_money(settings.state_sales_tax_rate),
        business_rate=to_money(settings.business_tax_rate),
        local_flat=to_money(settings.local_sales_tax_flat),
    )


def _to_deal_input(body: DealQuoteRequest) -> DealInput:
    return DealInput(
        sales_price=body.sales_price,
        sale_type=body.sale_type,
        doc_notary_fee=body.doc_notary_fee,
        title_license_fee=body.title_license_fee,
        down_payment=body.down_payment,
        apr_percent=body.apr_percent,
        frequency=body.frequency,
        mode=body.mode,
        term_months=body.term_months,
        payment_amount=body.payment_amount,
    )


def _quote_response(quote: DealQuote) -> DealQuoteResponse:
    return DealQuoteResponse(
        taxes=SalesTaxesSchema(
            state_tax=quote.taxes.state_tax,
            business_tax=quote.taxes.business_tax,
            local_tax=quote.taxes.local_tax,
            total=quote.taxes.total,
        ),
        total_price=quote.total_price,
        amount_financed=quote.amount_financed,
        frequency=quote.frequency,
        term_months=quote.term_months,
        payment_amount=quote.payment_amount,
        total_periods=quote.total_periods,
        finance_charge=quote.finance_charge,
        balance_due=quote.balance_due,
    )


def _infeasible(e: InfeasiblePaymentError, request: Request) -> HTTPException:
    infeasible_payment_counter.inc()
    logging.warning(f"Infeasible payment: {e}", extra={"request_id": get_request_id(request)})
    return HTTPException(status_code=422, detail=str(e))


@router.post("/quote", response_model=DealQuoteResponse)
def quote_deal(request_body: DealQuoteRequest, request: Request):
    """
    Taxes, total price, amount financed, payment or term, finance charge and balance due.

    Returns:
        422 when the entered payment never pays the loan off
    """
    try:
        quote = build_deal_quote(_to_deal_input(request_body), _tax_rates())
    except InfeasiblePaymentError as e:
        raise _infeasible(e, request)
    return _quote_response(quote)


@router.post("/schedule", response_model=DealScheduleResponse)
def schedule_deal(request_body: DealQuoteRequest, request: Request):
    """Quote plus the period-by-period amortization schedule"""
    try:
        quote = build_deal_quote(_to_deal_input(request_body), _tax_rates())
        rows = build_amortization_schedule(
            quote.amount_financed,
            request_body.apr_percent,
            quote.payment_amount,
            quote.term_months,
            quote.frequency,
        )
    except InfeasiblePaymentError as e:
        raise _infeasible(e, request)

    return DealScheduleResponse(
        quote=_quote_response(quote),
        rows=[ScheduleRowSchema.model_validate(row) for row in rows],
    )
