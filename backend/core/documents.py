# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Student ID card rendering (reportlab).

The card is a single 900 × 400 pt page: title band, personal and guardian
details on the left, enrollment details in the middle, and a QR code
encoding ``<studentId>|<email>`` on the right.
"""

import io
from dataclasses import dataclass
from typing import Optional

import qrcode
from reportlab.lib.colors import HexColor, black
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

_PAGE = (900, 400)
_ACCENT = HexColor("#00cccc")
_QR_SIZE = 120


@dataclass(frozen=True)
class IdCardData:
    student_id: int
    first_name: str
    last_name: str
    email: str
    cnic: str
    phone_number: str
    gender: str
    status: str
    roll_id: Optional[str] = None
    guardian_name: Optional[str] = None
    guardian_phone: Optional[str] = None
    guardian_relation: Optional[str] = None
    course_name: Optional[str] = None
    enrollment_date: Optional[str] = None


def qr_png(payload: str, box_size: int = 4) -> bytes:
    qr = qrcode.QRCode(border=1, box_size=box_size)
    qr.add_data(payload)
    qr.make(fit=True)
    buf = io.BytesIO()
    qr.make_image(fill_color="black", back_color="white").save(buf, format="PNG")
    return buf.getvalue()


def render_id_card(card: IdCardData, organisation: str = "Aaghaaz Tech") -> bytes:
    """Return the PDF bytes of *card*."""
    width, height = _PAGE
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=_PAGE)
    c.setTitle(f"{organisation} Student ID Card")

    # Title band (centered); reportlab's origin is bottom-left
    c.setFillColor(_ACCENT)
    c.setFont("Helvetica-Bold", 32)
    c.drawCentredString(width / 2, height - 50, organisation)
    c.setFont("Helvetica-Bold", 20)
    c.drawCentredString(width / 2, height - 85, "Student ID Card")

    def column(x: float, y: float, lines: list) -> float:
        for text, heading in lines:
            if heading:
                c.setFont("Helvetica-Bold", 14)
                c.setFillColor(_ACCENT)
                y -= 10
            else:
                c.setFont("Helvetica", 14)
                c.setFillColor(black)
            c.drawString(x, y, text)
            y -= 25
        return y

    na = "N/A"
    top = height - 140
    column(40, top, [
        (f"Name: {card.first_name} {card.last_name}", False),
        (f"Roll ID: {card.roll_id or na}", False),
        (f"CNIC: {card.cnic}", False),
        (f"Phone: {card.phone_number}", False),
        ("Guardian Information:", True),
        (f"Name: {card.guardian_name or na}", False),
        (f"Phone: {card.guardian_phone or na}", False),
    ])
    column(350, top, [
        (f"Email: {card.email}", False),
        (f"Gender: {card.gender or na}", False),
        (f"Status: {card.status}", False),
        (f"Enrollment Date: {card.enrollment_date or na}", False),
        (f"Relation: {card.guardian_relation or na}", False),
        (f"Course: {card.course_name or na}", False),
    ])

    qr = ImageReader(io.BytesIO(qr_png(f"{card.student_id}|{card.email}")))
    qr_y = top - 200 + (200 - _QR_SIZE) / 2
    c.drawImage(qr, 720, qr_y, width=_QR_SIZE, height=_QR_SIZE)

    c.showPage()
    c.save()
    return buf.getvalue()
