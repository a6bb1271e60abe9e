"""
Waste collection agreement PDF.

Renders a one-page A4 agreement for a pickup request with ReportLab and
returns it as a ``data:`` URI so it can travel inside a chat message.
The canvas runs in invariant mode, so identical input (including
``generated_at``) yields byte-identical output.
"""
from __future__ import annotations

import base64
import io
import logging
from datetime import date, datetime, timezone
from typing import Optional, Union

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

BRAND_NAME = "Nexo Greencycle"
FOOTER_TEXT = "Nexo Greencycle • Smart Waste Management Platform • www.nexogreencycle.co.ke"

TERMS = [
    "1. The Service Provider agrees to collect the specified waste at the scheduled time and location.",
    "2. The Client agrees to have the waste properly prepared and accessible at the pickup location.",
    "3. Both parties agree to comply with all applicable waste management regulations.",
    "4. The Service Provider shall dispose of the waste in an environmentally responsible manner.",
    "5. Cancellation must be communicated at least 24 hours before the scheduled pickup.",
    "6. The Service Provider is not responsible for hazardous waste not disclosed by the Client.",
    "7. This agreement is valid for the specified pickup date only.",
    "8. Payment shall be processed through the Nexo Greencycle platform.",
]

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 15 * mm
TERMS_WIDTH = PAGE_WIDTH - 40 * mm
DETAIL_VALUE_X = 65 * mm
ELLIPSIS = "\u2026"

# Wrapped lines allowed per detail value; the rest is cut with an ellipsis
# so the signature block always stays above the footer band.
DETAIL_MAX_LINES = {"Description": 3, "Pickup Location": 2}


def _rgb(r: int, g: int, b: int) -> colors.Color:
    return colors.Color(r / 255.0, g / 255.0, b / 255.0)


DARK_NAVY = _rgb(14, 28, 54)
BRAND_GREEN = _rgb(0, 163, 82)
SIGNATURE_GREEN = _rgb(0, 100, 50)
BODY_TEXT = _rgb(30, 30, 30)
RULE_GREY = _rgb(200, 200, 200)


def _y(top_mm: float) -> float:
    """Convert a distance from the top edge (mm) into a ReportLab y."""
    return PAGE_HEIGHT - top_mm * mm


def _s(value) -> str:
    return "" if value is None else str(value)


def format_agreement_date(value: Union[str, date, datetime, None]) -> str:
    """Long-form date used on the agreement, e.g. ``1 March 2026``."""
    if value is None:
        return ""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return "{} {}".format(value.day, value.strftime("%B %Y"))


def agreement_reference(pickup_request_id: str) -> str:
    return _s(pickup_request_id)[:8].upper()


def agreement_filename(pickup_request_id: str) -> str:
    return "agreement-{}.pdf".format(_s(pickup_request_id)[:8])


def wrap_lines(text: str, font_name: str, font_size: float, width: float) -> list:
    return simpleSplit(_s(text), font_name, font_size, width) or [""]


def clip_lines(text: str, font_name: str, font_size: float, width: float, max_lines: int) -> list:
    """Wrap ``text`` and keep at most ``max_lines``, ending in an ellipsis if cut."""
    lines = wrap_lines(text, font_name, font_size, width)
    if len(lines) <= max_lines:
        return lines
    last = lines[max_lines - 1]
    while last and stringWidth(last + ELLIPSIS, font_name, font_size) > width:
        last = last[:-1]
    return lines[:max_lines - 1] + [last.rstrip() + ELLIPSIS]


def _draw_header(c: canvas.Canvas, data: dict) -> None:
    c.setFillColor(DARK_NAVY)
    c.rect(0, _y(45), PAGE_WIDTH, 45 * mm, stroke=0, fill=1)
    c.setFillColor(BRAND_GREEN)
    c.rect(0, _y(45), PAGE_WIDTH, 5 * mm, stroke=0, fill=1)

    c.setFillColor(colors.white)
    c.setFont("Helvetica-Bold", 22)
    c.drawString(MARGIN, _y(20), BRAND_NAME)
    c.setFont("Helvetica", 10)
    c.drawString(MARGIN, _y(30), "Waste Collection Service Agreement")
    c.drawString(PAGE_WIDTH - 60 * mm, _y(30), "Ref: {}".format(agreement_reference(data.get("pickup_request_id"))))


def _draw_signature_block(c: canvas.Canvas, top: float, x: float, label: str, signature: Optional[str]) -> None:
    c.setStrokeColor(RULE_GREY)
    c.line(x * mm, _y(top + 10), (x + 70) * mm, _y(top + 10))
    c.setFillColor(BODY_TEXT)
    c.setFont("Helvetica", 9)
    c.drawString(x * mm, _y(top + 16), label)
    if signature:
        c.setFont("Helvetica-Oblique", 9)
        c.setFillColor(SIGNATURE_GREEN)
        c.drawString((x + 5) * mm, _y(top + 7), signature)
        c.setFillColor(BODY_TEXT)


def render_agreement_pdf(data: dict, generated_at: Optional[datetime] = None) -> bytes:
    """
    Draw the agreement and return the PDF bytes.

    ``data`` keys: pickup_request_id, user_name, company_name, waste_type,
    waste_description, location, preferred_date, preferred_time,
    created_at, and optionally user_signature / company_signature.
    """
    generated_at = generated_at or datetime.now(timezone.utc)

    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4, invariant=1)
    c.setTitle("Waste Collection Agreement {}".format(agreement_reference(data.get("pickup_request_id"))))
    c.setAuthor(BRAND_NAME)
    c.setSubject("Waste Collection Service Agreement")

    _draw_header(c, data)

    top = 58
    c.setFillColor(BODY_TEXT)
    c.setFont("Helvetica-Bold", 14)
    c.drawCentredString(PAGE_WIDTH / 2, _y(top), "WASTE COLLECTION AGREEMENT")

    top += 12
    c.setFont("Helvetica", 10)
    c.drawString(MARGIN, _y(top), "Date: {}".format(format_agreement_date(data.get("created_at"))))

    top += 12
    c.setFont("Helvetica-Bold", 10)
    c.drawString(MARGIN, _y(top), "PARTIES:")
    top += 7
    c.setFont("Helvetica", 10)
    c.drawString(20 * mm, _y(top), "1. Client (Waste Producer): {}".format(_s(data.get("user_name"))))
    top += 6
    c.drawString(20 * mm, _y(top), "2. Service Provider: {}".format(_s(data.get("company_name"))))

    top += 12
    c.setFont("Helvetica-Bold", 10)
    c.drawString(MARGIN, _y(top), "SERVICE DETAILS:")
    top += 7

    details = [
        ("Waste Type", data.get("waste_type")),
        ("Description", data.get("waste_description") or "N/A"),
        ("Pickup Location", data.get("location")),
        ("Scheduled Date", data.get("preferred_date")),
        ("Preferred Time", data.get("preferred_time")),
    ]
    value_width = PAGE_WIDTH - DETAIL_VALUE_X - MARGIN
    for label, value in details:
        c.setFont("Helvetica-Bold", 10)
        c.drawString(20 * mm, _y(top), "{}:".format(label))
        c.setFont("Helvetica", 10)
        lines = clip_lines(value, "Helvetica", 10, value_width, DETAIL_MAX_LINES.get(label, 1))
        for i, line in enumerate(lines):
            c.drawString(DETAIL_VALUE_X, _y(top), line)
            top += 5 if i < len(lines) - 1 else 7

    top += 8
    c.setFont("Helvetica-Bold", 10)
    c.drawString(MARGIN, _y(top), "TERMS AND CONDITIONS:")
    top += 7
    c.setFont("Helvetica", 9)
    for term in TERMS:
        for line in wrap_lines(term, "Helvetica", 9, TERMS_WIDTH):
            c.drawString(20 * mm, _y(top), line)
            top += 5
        top += 2

    top += 10
    c.setFont("Helvetica-Bold", 10)
    c.drawString(MARGIN, _y(top), "SIGNATURES:")

    top += 12
    _draw_signature_block(c, top, 20, "Client Signature", data.get("user_signature"))
    _draw_signature_block(c, top, 120, "Company Signature", data.get("company_signature"))

    footer_top = 297 - 15
    c.setFillColor(BRAND_GREEN)
    c.rect(0, 0, PAGE_WIDTH, 20 * mm, stroke=0, fill=1)
    c.setFillColor(colors.white)
    c.setFont("Helvetica", 8)
    c.drawCentredString(PAGE_WIDTH / 2, _y(footer_top + 3), FOOTER_TEXT)
    c.setFont("Helvetica", 6)
    c.drawCentredString(
        PAGE_WIDTH / 2, _y(footer_top + 8),
        "Generated {}".format(generated_at.strftime("%Y-%m-%d %H:%M UTC")),
    )

    c.showPage()
    c.save()
    return buf.getvalue()


def to_data_uri(pdf_bytes: bytes) -> str:
    return "data:application/pdf;base64," + base64.b64encode(pdf_bytes).decode("ascii")


def decode_data_uri(uri: str) -> bytes:
    """Inverse of ``to_data_uri``; raises ValueError for anything else."""
    prefix, sep, payload = _s(uri).partition(",")
    if not sep or not prefix.startswith("data:application/pdf") or not prefix.endswith(";base64"):
        raise ValueError("Not a base64 PDF data URI")
    return base64.b64decode(payload)


def generate_agreement_pdf(data: dict, generated_at: Optional[datetime] = None) -> str:
    """Render the agreement and return it as a ``data:application/pdf`` URI."""
    pdf_bytes = render_agreement_pdf(data, generated_at=generated_at)
    logger.debug("Rendered agreement %s (%d bytes)", agreement_reference(data.get("pickup_request_id")), len(pdf_bytes))
    return to_data_uri(pdf_bytes)
