"""Report export: tabular CSV/PDF rendering and full-page capture with fallback"""

import csv
import io
import logging
import re
import time
from typing import Any, List, Mapping, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from dealer_backoffice.config import settings
from dealer_backoffice.domain.capture import CaptureTarget, capture_element
from dealer_backoffice.domain.exceptions import CaptureError, ExportFailedError, ExportServiceError
from dealer_backoffice.domain.models import ExportArtifact
from dealer_backoffice.infrastructure.clients.export_server import ExportServerClient, default_export_filename
from dealer_backoffice.infrastructure.observability.logging import log_export
from dealer_backoffice.infrastructure.observability.metrics import record_export

logger = logging.getLogger(__name__)

HIGHLIGHT_ROW = re.compile(r"total|summary", re.IGNORECASE)

# Dark theme palette of the dashboard tables
TABLE_BACKGROUND = colors.Color(26 / 255, 29 / 255, 33 / 255)
HEADER_BACKGROUND = colors.Color(44 / 255, 47 / 255, 51 / 255)
ALTERNATE_BACKGROUND = colors.Color(42 / 255, 45 / 255, 50 / 255)
GRID_COLOR = colors.Color(68 / 255, 72 / 255, 78 / 255)
HIGHLIGHT_BACKGROUND = colors.Color(255 / 255, 69 / 255, 0)


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def _headers_of(rows: Sequence[Mapping[str, Any]]) -> List[str]:
    if not rows:
        raise ValueError("No rows to export")
    return list(rows[0].keys())


def rows_to_csv(rows: Sequence[Mapping[str, Any]]) -> str:
    """
    Render rows as CSV with a header line taken from the first row's keys.

    Values are quoted only when they contain a comma, quote or newline.
    Lines are separated by '\\n' with no trailing newline.
    """
    headers = _headers_of(rows)
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(row.get(header)) for header in headers])
    return output.getvalue().removesuffix("\n")


def is_highlight_row(first_cell: str) -> bool:
    return bool(HIGHLIGHT_ROW.search(first_cell))


def render_table_pdf(title: str, rows: Sequence[Mapping[str, Any]]) -> bytes:
    """
    Letter-landscape table PDF.

    Header row is bold on a dark background, body rows alternate shades, and
    rows whose first column mentions "total" or "summary" are highlighted.
    """
    headers = _headers_of(rows)
    body = [[_cell(row.get(header)) for header in headers] for row in rows]

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(letter),
        leftMargin=0.67 * inch,
        rightMargin=0.67 * inch,
        topMargin=0.5 * inch,
        bottomMargin=0.5 * inch,
        title=title,
    )
    styles = getSampleStyleSheet()

    style_commands = [
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_BACKGROUND),
        ("TEXTCOLOR", (0, 0), (-1, -1), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 11),
        ("FONTSIZE", (0, 1), (-1, -1), 10),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [TABLE_BACKGROUND, ALTERNATE_BACKGROUND]),
        ("GRID", (0, 0), (-1, -1), 0.5, GRID_COLOR),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
    ]
    for idx, values in enumerate(body, start=1):
        if values and is_highlight_row(values[0]):
            style_commands += [
                ("BACKGROUND", (0, idx), (-1, idx), HIGHLIGHT_BACKGROUND),
                ("FONTNAME", (0, idx), (-1, idx), "Helvetica-Bold"),
            ]

    table = Table([headers] + body, repeatRows=1)
    table.setStyle(TableStyle(style_commands))

    doc.build([Paragraph(title, styles["Title"]), Spacer(1, 0.15 * inch), table])
    return buffer.getvalue()


def export_table(title: str, rows: Sequence[Mapping[str, Any]], fmt: str, filename: Optional[str] = None) -> ExportArtifact:
    """Render rows as a downloadable CSV or PDF table"""
    if fmt not in ("csv", "pdf"):
        raise ValueError(f"Unsupported table format: {fmt}")

    variant = "csv" if fmt == "csv" else "pdf_table"
    base_name = filename or re.sub(r"\W+", "_", title).strip("_") or "Report"
    start = time.perf_counter()
    if fmt == "csv":
        artifact = ExportArtifact(
            content=rows_to_csv(rows).encode("utf-8"),
            media_type="text/csv",
            filename=f"{base_name}.csv",
        )
    else:
        artifact = ExportArtifact(
            content=render_table_pdf(title, rows),
            media_type="application/pdf",
            filename=f"{base_name}.pdf",
        )

    duration = time.perf_counter() - start
    record_export(variant, True, duration)
    log_export(title, variant, "success", duration * 1000, len(artifact.content))
    return artifact


class ReportExporter:
    """
    Produce a full-page report export.

    The export server is tried first. If it fails and a local capture target
    was supplied, the view is rasterized in-process instead. When both fail,
    ExportFailedError carries both messages and the server's hint.

    Remote PNG capture exists only for the sales report.
    """

    def __init__(self, client: Optional[ExportServerClient] = None):
        self.client = client or ExportServerClient()

    async def _remote(self, report_type: str, week_key: Optional[str], as_pdf: bool) -> ExportArtifact:
        if as_pdf:
            return await self.client.shortcut_screenshot(report_type, week_key)
        return await self.client.export_sales_report()

    async def export(
        self,
        report_type: str,
        week_key: Optional[str] = None,
        fallback_target: Optional[CaptureTarget] = None,
        as_pdf: bool = True,
    ) -> ExportArtifact:
        """
        Raises:
            ValueError: PNG requested for a report other than sales
            ExportFailedError: Remote export failed and no local capture succeeded
        """
        if not as_pdf and report_type != "sales":
            raise ValueError(f"PNG export is only available for the sales report, not {report_type}")

        start = time.perf_counter()
        try:
            artifact = await self._remote(report_type, week_key, as_pdf)
        except ExportServiceError as e:
            duration = time.perf_counter() - start
            record_export("remote", False, duration)
            log_export(report_type, "remote", "failure", duration * 1000, error=e.message)
            if fallback_target is None:
                raise ExportFailedError(e.message, hint=e.hint) from e
            return await self._export_locally(report_type, week_key, fallback_target, as_pdf, e)

        duration = time.perf_counter() - start
        record_export("remote", True, duration)
        log_export(report_type, "remote", "success", duration * 1000, len(artifact.content))
        return artifact

    async def _export_locally(
        self,
        report_type: str,
        week_key: Optional[str],
        target: CaptureTarget,
        as_pdf: bool,
        remote_error: ExportServiceError,
    ) -> ExportArtifact:
        logger.warning(
            "Remote export failed, capturing locally",
            extra={"report_type": report_type, "error": remote_error.message},
        )
        start = time.perf_counter()
        try:
            content = await capture_element(
                target,
                as_pdf=as_pdf,
                pixel_ratio=settings.capture_pixel_ratio,
                settle_timeout=settings.capture_settle_timeout_seconds,
                poll_interval=settings.capture_poll_interval_seconds,
            )
        except CaptureError as e:
            duration = time.perf_counter() - start
            record_export("local", False, duration)
            log_export(report_type, "local", "failure", duration * 1000, error=str(e))
            raise ExportFailedError(
                f"Remote export failed ({remote_error.message}); local capture failed ({e})",
                hint=remote_error.hint,
            ) from e

        duration = time.perf_counter() - start
        record_export("local", True, duration)
        log_export(report_type, "local", "success", duration * 1000, len(content))

        filename = default_export_filename(report_type, week_key)
        if not as_pdf:
            filename = filename.removesuffix(".pdf") + ".png"
        return ExportArtifact(
            content=content,
            media_type="application/pdf" if as_pdf else "image/png",
            filename=filename,
        )
