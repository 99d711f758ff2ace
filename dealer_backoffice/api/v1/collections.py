"""/v1/collections - collections overview, charts, forecast and daily log"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from dealer_backoffice.api.dependencies import get_collections_service, get_request_id, get_today
from dealer_backoffice.api.v1.schemas import (
    CollectionsMetricsResponse,
    DailyLogRequest,
    DailyLogResponse,
    PaymentMixResponse,
    WeeklyForecastResponse,
    YearOverYearSeriesResponse,
)
from dealer_backoffice.domain.exceptions import StoreAPIError
from dealer_backoffice.services.collections import CollectionsService
from dealer_backoffice.utils.date_utils import today_local

router = APIRouter(prefix="/collections")

STORE_UNAVAILABLE = "Row store unavailable"


def _store_unavailable(e: StoreAPIError, request: Request) -> HTTPException:
    logging.error(f"Row store error: {e}", extra={"request_id": get_request_id(request)})
    return HTTPException(status_code=503, detail=STORE_UNAVAILABLE)


@router.get("/metrics", response_model=CollectionsMetricsResponse)
async def get_metrics(
    request: Request,
    today: date = Depends(get_today),
    service: CollectionsService = Depends(get_collections_service),
):
    """Today, week-to-date, records, expected weekly total and today's delinquency"""
    try:
        metrics = await service.metrics(today)
    except StoreAPIError as e:
        raise _store_unavailable(e, request)
    return CollectionsMetricsResponse.model_validate(metrics)


@router.get("/weekly-payments", response_model=YearOverYearSeriesResponse)
async def get_weekly_payments(
    request: Request,
    today: date = Depends(get_today),
    service: CollectionsService = Depends(get_collections_service),
):
    """Weekly payments + late fees, one series per fiscal year"""
    try:
        series = await service.weekly_payments(today)
    except StoreAPIError as e:
        raise _store_unavailable(e, request)
    return YearOverYearSeriesResponse.model_validate(series)


@router.get("/weekly-delinquency", response_model=YearOverYearSeriesResponse)
async def get_weekly_delinquency(
    request: Request,
    today: date = Depends(get_today),
    service: CollectionsService = Depends(get_collections_service),
):
    """Weekly delinquency rate (%), one series per fiscal year"""
    try:
        series = await service.weekly_delinquency(today)
    except StoreAPIError as e:
        raise _store_unavailable(e, request)
    return YearOverYearSeriesResponse.model_validate(series)


@router.get("/forecast", response_model=WeeklyForecastResponse)
async def get_forecast(
    request: Request,
    today: date = Depends(get_today),
    week_start: Optional[date] = Query(None, description="Any day in the week to forecast"),
    service: CollectionsService = Depends(get_collections_service),
):
    """
    Expected vs actual payments per day of the selected week.

    Returns:
        404 when there is no payment history to forecast from
    """
    try:
        forecast = await service.forecast(today, week_start)
    except StoreAPIError as e:
        raise _store_unavailable(e, request)
    if forecast is None:
        raise HTTPException(status_code=404, detail="Not enough history to forecast")
    return WeeklyForecastResponse.model_validate(forecast)


@router.get("/payment-mix", response_model=PaymentMixResponse)
async def get_payment_mix(
    request: Request,
    today: date = Depends(get_today),
    service: CollectionsService = Depends(get_collections_service),
):
    """Week-to-date cash vs BOA split"""
    try:
        mix = await service.payment_mix(today)
    except StoreAPIError as e:
        raise _store_unavailable(e, request)
    return PaymentMixResponse.model_validate(mix)


@router.post("/daily-log", response_model=DailyLogResponse)
async def log_daily_numbers(
    request_body: DailyLogRequest,
    request: Request,
    service: CollectionsService = Depends(get_collections_service),
):
    """Record (or overwrite) one day's payments and account counts"""
    day = request_body.date or today_local()
    try:
        await service.log_day(
            day,
            payments=request_body.payments,
            late_fees=request_body.late_fees,
            boa_portion=request_body.boa,
            overdue_accounts=request_body.overdue_accounts,
            open_accounts=request_body.open_accounts,
        )
    except StoreAPIError as e:
        raise _store_unavailable(e, request)

    logging.info("Daily collections logged", extra={"request_id": get_request_id(request), "date": day.isoformat()})
    return DailyLogResponse(date=day)
