"""/v1/reports - nightly inventory digest and stored report snapshots"""

import logging
import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from dealer_backoffice.api.dependencies import get_nightly_report_service, get_request_id, get_today
from dealer_backoffice.api.v1.schemas import (
    IndexedVehicleSchema,
    NightlyReportResponse,
    ReportLogItem,
    ReportLogListResponse,
)
from dealer_backoffice.domain.digest import render_digest_text
from dealer_backoffice.domain.exceptions import StoreAPIError
from dealer_backoffice.domain.models import ReportDigest
from dealer_backoffice.infrastructure.database.repositories import ReportLogRepository
from dealer_backoffice.infrastructure.database.session import get_db
from dealer_backoffice.services.reports import NIGHTLY_REPORT_TYPE, NightlyReportService

router = APIRouter(prefix="/reports")


def _nightly_response(digest: ReportDigest, report_date: date) -> NightlyReportResponse:
    return NightlyReportResponse(
        report_date=report_date,
        text=render_digest_text(digest),
        sold=[IndexedVehicleSchema.model_validate(s) for s in digest.sold],
        received_new=[IndexedVehicleSchema.model_validate(r) for r in digest.received_new],
        repairs=digest.repairs,
        trash=digest.trash,
        received_back=digest.received_back,
        deposit=digest.deposit,
        total_inventory=digest.total_inventory,
        bhph_count=digest.bhph_count,
        cash_count=digest.cash_count,
    )


async def _build_nightly(service: NightlyReportService, today: date, request: Request) -> NightlyReportResponse:
    try:
        digest = await service.build(today)
    except StoreAPIError as e:
        logging.error(f"Row store error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Row store unavailable")
    return _nightly_response(digest, today)


@router.get("/nightly", response_model=NightlyReportResponse)
async def get_nightly_report(
    request: Request,
    today: date = Depends(get_today),
    service: NightlyReportService = Depends(get_nightly_report_service),
):
    """Today's sold / arrived / moved vehicles and the lot count, plus the pasteable text"""
    return await _build_nightly(service, today, request)


@router.post("/nightly/log", response_model=ReportLogItem, status_code=201)
async def log_nightly_report(
    request: Request,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
    service: NightlyReportService = Depends(get_nightly_report_service),
):
    """Build the nightly digest and store a snapshot of it"""
    report = await _build_nightly(service, today, request)

    repo = ReportLogRepository(db)
    entry = repo.add(NIGHTLY_REPORT_TYPE, today, report.model_dump(mode="json"))
    db.commit()

    logging.info(
        "Nightly report logged",
        extra={"request_id": get_request_id(request), "report_date": today.isoformat(), "log_id": str(entry.id)},
    )
    return ReportLogItem.model_validate(entry)


@router.get("/logs", response_model=ReportLogListResponse)
def list_report_logs(
    report_type: str = Query(NIGHTLY_REPORT_TYPE, description="Report type to list"),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Stored snapshots, newest report date first"""
    entries = ReportLogRepository(db).list_by_type(report_type, limit=limit)
    return ReportLogListResponse(
        report_type=report_type,
        logs=[ReportLogItem.model_validate(e) for e in entries],
    )


@router.delete("/logs/{log_id}", status_code=204)
def delete_report_log(log_id: uuid.UUID, db: Session = Depends(get_db)):
    """Remove a stored snapshot"""
    if not ReportLogRepository(db).delete(log_id):
        raise HTTPException(status_code=404, detail="Report log not found")
    db.commit()
