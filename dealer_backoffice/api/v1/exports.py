"""/v1/exports - full-page report captures and tabular downloads"""

import logging
from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from dealer_backoffice.api.dependencies import get_report_exporter, get_request_id
from dealer_backoffice.api.v1.schemas import RemoteExportRequest, TableExportRequest
from dealer_backoffice.domain.exceptions import ExportFailedError
from dealer_backoffice.domain.models import ExportArtifact
from dealer_backoffice.services.export import ReportExporter, export_table

router = APIRouter(prefix="/exports")


class ReportType(str, Enum):
    SALES = "sales"
    COLLECTIONS = "collections"
    COMMISSION = "commission"


class TableFormat(str, Enum):
    CSV = "csv"
    PDF = "pdf"


class CaptureFormat(str, Enum):
    PDF = "pdf"
    PNG = "png"


def _download(artifact: ExportArtifact) -> Response:
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


@router.post("/remote/{report_type}")
async def export_remote(
    report_type: ReportType,
    request: Request,
    request_body: Optional[RemoteExportRequest] = None,
    format: CaptureFormat = Query(CaptureFormat.PDF),
    exporter: ReportExporter = Depends(get_report_exporter),
):
    """
    Capture a report page through the export server and stream it back.

    PDF works for every report; PNG only for sales.

    Returns:
        422 for PNG on a report other than sales
        502 with the server's message and hint when the capture fails
    """
    week_key = request_body.week_key if request_body else None
    try:
        artifact = await exporter.export(report_type.value, week_key, as_pdf=format == CaptureFormat.PDF)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ExportFailedError as e:
        logging.error(f"Export failed: {e.message}", extra={"request_id": get_request_id(request)})
        return JSONResponse(
            status_code=502,
            content={"error": "Export failed", "message": e.message, "hint": e.hint},
        )
    return _download(artifact)


@router.post("/table")
def export_table_rows(
    request_body: TableExportRequest,
    format: TableFormat = Query(TableFormat.CSV),
):
    """Render posted rows as a CSV or a letter-landscape PDF table"""
    try:
        artifact = export_table(request_body.title, request_body.rows, format.value, request_body.filename)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _download(artifact)
