"""Unit tests for table exports and the remote-then-local report exporter"""

import csv
import io
from io import BytesIO
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from dealer_backoffice.domain.capture import RasterImage
from dealer_backoffice.domain.exceptions import ExportFailedError, ExportServiceError
from dealer_backoffice.domain.models import ExportArtifact
from dealer_backoffice.infrastructure.clients.export_server import ExportServerClient
from dealer_backoffice.services.export import (
    ReportExporter,
    export_table,
    is_highlight_row,
    render_table_pdf,
    rows_to_csv,
)

ROWS = [
    {"Name": "Smith, John", "Note": 'He said "hi"', "Amount": 100},
    {"Name": "Total", "Note": None, "Amount": 200},
]


class Element:
    def __init__(self):
        self.scroll_top = 0
        self.styles = {}

    def get_style(self, prop):
        return self.styles.get(prop, "")

    def set_style(self, prop, value):
        self.styles[prop] = value


class StaticTarget:
    """Capture target that is always settled and rasterizes to a tiny PNG"""

    def __init__(self, fail=False):
        self.root = Element()
        self.fail = fail

    def chrome_elements(self):
        return []

    def scroll_ancestors(self):
        return []

    def is_settled(self):
        return True

    async def rasterize(self, pixel_ratio):
        if self.fail:
            raise RuntimeError("out of memory")
        buffer = BytesIO()
        Image.new("RGB", (30, 10), (26, 29, 33)).save(buffer, format="PNG")
        return RasterImage(png=buffer.getvalue(), width=30, height=10)


def test_rows_to_csv_escapes_and_has_no_trailing_newline():
    text = rows_to_csv(ROWS)

    assert text == 'Name,Note,Amount\n"Smith, John","He said ""hi""",100\nTotal,,200'
    parsed = list(csv.reader(io.StringIO(text)))
    assert parsed[1] == ["Smith, John", 'He said "hi"', "100"]


def test_rows_to_csv_requires_rows():
    with pytest.raises(ValueError):
        rows_to_csv([])


def test_is_highlight_row():
    assert is_highlight_row("Grand Total")
    assert is_highlight_row("SUMMARY")
    assert not is_highlight_row("Smith, John")


def test_render_table_pdf():
    assert render_table_pdf("Weekly Commission", ROWS).startswith(b"%PDF")


def test_export_table_csv():
    artifact = export_table("Weekly Commission", ROWS, "csv")

    assert artifact.filename == "Weekly_Commission.csv"
    assert artifact.media_type == "text/csv"
    assert artifact.content.decode("utf-8").startswith("Name,Note,Amount")


def test_export_table_pdf_with_filename():
    artifact = export_table("Weekly Commission", ROWS, "pdf", filename="commission_0304")
    assert artifact.filename == "commission_0304.pdf"
    assert artifact.media_type == "application/pdf"


def test_export_table_rejects_unknown_format():
    with pytest.raises(ValueError):
        export_table("Report", ROWS, "xlsx")


async def test_remote_export_success():
    remote = ExportArtifact(content=b"%PDF-remote", media_type="application/pdf", filename="Sales_Report.pdf")
    client = AsyncMock(spec=ExportServerClient)
    client.shortcut_screenshot.return_value = remote

    artifact = await ReportExporter(client).export("sales", fallback_target=StaticTarget())

    assert artifact == remote
    client.shortcut_screenshot.assert_awaited_once_with("sales", None)


async def test_remote_failure_without_fallback_keeps_hint():
    client = AsyncMock(spec=ExportServerClient)
    client.shortcut_screenshot.side_effect = ExportServiceError(
        "Login failed", hint="Check SHORTCUT_PASSWORD", status_code=500
    )

    with pytest.raises(ExportFailedError) as exc_info:
        await ReportExporter(client).export("collections")

    assert exc_info.value.message == "Login failed"
    assert exc_info.value.hint == "Check SHORTCUT_PASSWORD"


async def test_remote_failure_falls_back_to_local_capture():
    client = AsyncMock(spec=ExportServerClient)
    client.shortcut_screenshot.side_effect = ExportServiceError("Export server unreachable")

    artifact = await ReportExporter(client).export("commission", "2024-01-05", fallback_target=StaticTarget())

    assert artifact.content.startswith(b"%PDF")
    assert artifact.filename == "Commission_Report_20240105.pdf"


async def test_remote_png_uses_sales_report_endpoint():
    remote = ExportArtifact(content=b"\x89PNG-remote", media_type="image/png", filename="Sales_Report.png")
    client = AsyncMock(spec=ExportServerClient)
    client.export_sales_report.return_value = remote

    artifact = await ReportExporter(client).export("sales", as_pdf=False)

    assert artifact == remote
    client.export_sales_report.assert_awaited_once_with()
    client.shortcut_screenshot.assert_not_awaited()


async def test_remote_png_failure_keeps_hint():
    client = AsyncMock(spec=ExportServerClient)
    client.export_sales_report.side_effect = ExportServiceError(
        "net::ERR_CONNECTION_REFUSED", hint="Make sure the dev server is running", status_code=500
    )

    with pytest.raises(ExportFailedError) as exc_info:
        await ReportExporter(client).export("sales", as_pdf=False)

    assert exc_info.value.hint == "Make sure the dev server is running"


async def test_png_only_for_sales():
    client = AsyncMock(spec=ExportServerClient)

    with pytest.raises(ValueError):
        await ReportExporter(client).export("collections", as_pdf=False)

    client.export_sales_report.assert_not_awaited()
    client.shortcut_screenshot.assert_not_awaited()


async def test_local_png_fallback():
    client = AsyncMock(spec=ExportServerClient)
    client.export_sales_report.side_effect = ExportServiceError("timeout")

    artifact = await ReportExporter(client).export("sales", fallback_target=StaticTarget(), as_pdf=False)

    assert artifact.media_type == "image/png"
    assert artifact.filename == "Sales_Report.png"


async def test_both_paths_failing_reports_both_messages():
    client = AsyncMock(spec=ExportServerClient)
    client.shortcut_screenshot.side_effect = ExportServiceError("Login failed", hint="Check credentials")

    with pytest.raises(ExportFailedError) as exc_info:
        await ReportExporter(client).export("sales", fallback_target=StaticTarget(fail=True))

    assert "Login failed" in exc_info.value.message
    assert "out of memory" in exc_info.value.message
    assert exc_info.value.hint == "Check credentials"
