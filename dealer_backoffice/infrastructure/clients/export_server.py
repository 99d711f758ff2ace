"""Headless export server client for full-page report captures"""

import logging
import re
from typing import Any, Dict, Optional

import httpx

from dealer_backoffice.config import settings
from dealer_backoffice.domain.exceptions import ExportServiceError
from dealer_backoffice.domain.models import ExportArtifact

logger = logging.getLogger(__name__)

REPORT_TYPES = ("sales", "collections", "commission")
_FILENAME_PATTERN = re.compile(r'filename="?([^";]+)"?')


def default_export_filename(report_type: str, week_key: Optional[str] = None) -> str:
    """Sales_Report.pdf, Collections_Report.pdf or Commission_Report_20240105.pdf"""
    if report_type == "commission":
        suffix = f"_{week_key.replace('-', '')}" if week_key else ""
        return f"Commission_Report{suffix}.pdf"
    return f"{report_type.capitalize()}_Report.pdf"


def _filename_from(response: httpx.Response, fallback: str) -> str:
    match = _FILENAME_PATTERN.search(response.headers.get("content-disposition", ""))
    return match.group(1) if match else fallback


def _error_from(response: httpx.Response) -> ExportServiceError:
    """Build the error from the server's JSON body, keeping its message and hint verbatim"""
    try:
        body: Dict[str, Any] = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("message") or body.get("error") or f"Export server error: {response.status_code}"
    return ExportServiceError(message, hint=body.get("hint"), status_code=response.status_code)


class ExportServerClient:
    """Client for the headless-browser export server"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.export_server_base).rstrip("/")
        self.timeout = timeout or settings.export_timeout_seconds
        self.transport = transport

    async def _post(self, path: str, payload: Dict[str, Any], fallback_filename: str) -> ExportArtifact:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(f"{self.base_url}{path}", json=payload)
            except httpx.TimeoutException as e:
                raise ExportServiceError(f"Export server timeout after {self.timeout}s") from e
            except httpx.RequestError as e:
                raise ExportServiceError(
                    f"Export server unreachable: {e}",
                    hint=f"Make sure the export server is running at {self.base_url}",
                ) from e

        if response.is_error:
            raise _error_from(response)

        if not response.content:
            raise ExportServiceError("Export server returned an empty document", status_code=response.status_code)

        return ExportArtifact(
            content=response.content,
            media_type=response.headers.get("content-type", "application/octet-stream").split(";")[0],
            filename=_filename_from(response, fallback_filename),
        )

    async def shortcut_screenshot(self, report_type: str, week_key: Optional[str] = None) -> ExportArtifact:
        """
        Have the server log in, open the report page and return it as a PDF.

        Raises:
            ValueError: Unknown report type
            ExportServiceError: Transport failure or non-2xx response
        """
        if report_type not in REPORT_TYPES:
            raise ValueError(f"Invalid report type: {report_type}")

        payload: Dict[str, Any] = {"reportType": report_type}
        if week_key:
            payload["weekKey"] = week_key

        logger.info("Requesting remote capture", extra={"report_type": report_type, "week_key": week_key})
        return await self._post(
            "/api/shortcut-screenshot", payload, default_export_filename(report_type, week_key)
        )

    async def export_sales_report(self) -> ExportArtifact:
        """Full-page PNG of the sales report"""
        return await self._post("/api/export-sales-report", {}, "Sales_Report.png")
