from io import BytesIO
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas
from starlette.responses import Response

app = FastAPI(title="Mock Export Server", version="1.0.0")
REPORT_TYPES = {"sales", "collections", "commission"}
# Set MOCK_EXPORT_FAIL=1 to exercise the caller's error path
FAIL = os.environ.get("MOCK_EXPORT_FAIL") == "1"


def _pdf(title: str) -> bytes:
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=letter)
    pdf.drawString(72, 720, title)
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


@app.get("/health")
def health(): return {"status": "ok"}


@app.post("/api/shortcut-screenshot")
async def shortcut_screenshot(request: Request):
    body = await request.json()
    report_type = body.get("reportType", "sales")
    week_key = body.get("weekKey")
    if report_type not in REPORT_TYPES:
        return JSONResponse(status_code=400, content={"error": f"Invalid report type: {report_type}"})
    if FAIL:
        return JSONResponse(
            status_code=500,
            content={
                "error": "Shortcut automation failed",
                "message": "Login failed",
                "hint": "Check SHORTCUT_EMAIL and SHORTCUT_PASSWORD",
            },
        )
    filename = f"{report_type.capitalize()}_Report{'_' + week_key.replace('-', '') if week_key else ''}.pdf"
    return Response(
        content=_pdf(f"{report_type} report {week_key or ''}".strip()),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/api/export-sales-report")
def export_sales_report():
    if FAIL:
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to generate report",
                "message": "net::ERR_CONNECTION_REFUSED",
                "hint": "Make sure the dev server is running",
            },
        )
    buffer = BytesIO()
    Image.new("RGB", (200, 100), "white").save(buffer, format="PNG")
    return Response(
        content=buffer.getvalue(),
        media_type="image/png",
        headers={"Content-Disposition": 'attachment; filename="Sales_Report.png"'},
    )
