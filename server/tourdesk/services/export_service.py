"""Booking exports: PDF invoices and CSV/Excel reports."""

import io
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from xml.sax.saxutils import escape

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.exceptions import NotFoundError
from ..core.query import FilterRule, build_conditions
from ..models.booking import Booking, BookingStatus
from ..schemas.booking import ExportFilters
from .booking_service import booking_detail_select
from .pricing import resolve_price_per_person

logger = logging.getLogger(__name__)

ACCENT = colors.HexColor("#C87533")

EXPORT_FILTERS = {
    "start_date": FilterRule.gte(Booking.created_at),
    "end_date": FilterRule.through_day(Booking.created_at),
    "status": FilterRule.eq(Booking.status),
}


def invoice_number(booking_id: int) -> str:
    return f"INV-{booking_id:06d}"


def booking_reference(booking_id: int) -> str:
    return f"BK-{booking_id:06d}"


def _long_date(value: date) -> str:
    return value.strftime("%A, %B %d, %Y")


def _money(value: Decimal, currency: str) -> str:
    return f"{Decimal(value):,.2f} {currency}"


def _label(value) -> str:
    """Plain string for enum members and raw column values alike."""
    return getattr(value, "value", value) or ""


class ExportService:
    """Renders bookings to files; nothing is stored."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def load_export_bookings(self, filters: ExportFilters) -> list[Booking]:
        stmt = (
            booking_detail_select()
            .where(*build_conditions(filters, EXPORT_FILTERS))
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def load_invoice_booking(self, booking_id: int) -> Booking:
        stmt = (
            booking_detail_select()
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        booking = (await self.db.execute(stmt)).scalar_one_or_none()
        if booking is None:
            raise NotFoundError("booking", booking_id)
        return booking

    def bookings_frame(self, bookings: list[Booking]) -> pd.DataFrame:
        """One row per booking with customer, tour and payment columns."""
        currency = self.settings.currency
        records = []
        for booking in bookings:
            tour = booking.tour
            payment = booking.payment
            records.append({
                "Booking ID": booking.id,
                "Booking Date": booking.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                "Customer Name": booking.user.name,
                "Customer Email": booking.user.email,
                "Customer Phone": booking.user.phone or "",
                "Tour Name": tour.name,
                "City": tour.city.name,
                "Category": tour.category.name,
                "Duration (Days)": tour.duration_days,
                "Start Date": booking.start_date.isoformat(),
                "End Date": booking.end_date.isoformat(),
                "Guests": booking.guests,
                "Tier": _label(booking.tier),
                f"Total Price ({currency})": float(booking.total_price),
                "Status": _label(booking.status),
                "Payment Method": _label(payment.method) if payment else "",
                "Payment Status": _label(payment.status) if payment else "",
                "Transaction ID": (payment.transaction_id or "") if payment else "",
                "Special Requests": booking.special_requests or "",
            })

        columns = [
            "Booking ID", "Booking Date", "Customer Name", "Customer Email", "Customer Phone",
            "Tour Name", "City", "Category", "Duration (Days)", "Start Date", "End Date",
            "Guests", "Tier", f"Total Price ({currency})", "Status", "Payment Method",
            "Payment Status", "Transaction ID", "Special Requests",
        ]
        return pd.DataFrame.from_records(records, columns=columns)

    def summary_frame(self, frame: pd.DataFrame) -> pd.DataFrame:
        currency = self.settings.currency
        statuses = frame["Status"] if not frame.empty else pd.Series(dtype=str)
        total_column = f"Total Price ({currency})"

        rows = [
            ("Total Bookings", len(frame)),
            (f"Total Revenue ({currency})", round(float(frame[total_column].sum()), 2) if not frame.empty else 0.0),
        ]
        for status in BookingStatus:
            rows.append((f"{status.value.capitalize()} Bookings", int((statuses == status.value).sum())))
        rows.append(("Average Guests", round(float(frame["Guests"].mean()), 1) if not frame.empty else 0.0))
        rows.append(("Export Date", datetime.now().strftime("%Y-%m-%d %H:%M:%S")))

        return pd.DataFrame(rows, columns=["Metric", "Value"])

    async def export_csv(self, filters: ExportFilters) -> bytes:
        frame = self.bookings_frame(await self.load_export_bookings(filters))
        logger.info("Bookings exported to CSV", extra={"rows": len(frame)})
        return frame.to_csv(index=False).encode("utf-8")

    async def export_excel(self, filters: ExportFilters) -> bytes:
        frame = self.bookings_frame(await self.load_export_bookings(filters))

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            frame.to_excel(writer, sheet_name="Bookings", index=False)
            self.summary_frame(frame).to_excel(writer, sheet_name="Summary", index=False)

            sheet = writer.sheets["Bookings"]
            for column_cells in sheet.columns:
                width = max(len(str(cell.value or "")) for cell in column_cells)
                sheet.column_dimensions[column_cells[0].column_letter].width = min(width + 2, 50)

        logger.info("Bookings exported to Excel", extra={"rows": len(frame)})
        return buffer.getvalue()

    async def render_invoice(self, booking_id: int) -> bytes:
        """
        Render an A4 PDF invoice for one booking.

        Returns:
            PDF document bytes
        """
        booking = await self.load_invoice_booking(booking_id)
        tour = booking.tour
        currency = self.settings.currency
        company = self.settings.company_name

        styles = getSampleStyleSheet()
        title = ParagraphStyle("CompanyTitle", parent=styles["Title"], textColor=ACCENT, fontSize=24)
        centered = ParagraphStyle("Centered", parent=styles["Normal"], alignment=TA_CENTER, textColor=colors.grey)
        heading = styles["Heading3"]
        body = styles["Normal"]

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=18 * mm,
            rightMargin=18 * mm,
            topMargin=18 * mm,
            bottomMargin=18 * mm,
            title=f"Invoice {invoice_number(booking.id)}",
            author=company,
        )

        story: list[Any] = [
            Paragraph(escape(company.upper()), title),
            Paragraph("INVOICE", styles["Heading2"]),
            Paragraph(f"Invoice #: {invoice_number(booking.id)}", centered),
            Paragraph(f"Date: {date.today().strftime('%B %d, %Y')}", centered),
            Spacer(1, 4 * mm),
            HRFlowable(width="100%", thickness=2, color=ACCENT),
            Spacer(1, 6 * mm),
            Paragraph("Bill To:", heading),
            Paragraph(escape(booking.user.name), body),
            Paragraph(escape(booking.user.email), body),
            Paragraph(escape(booking.user.phone or "No phone provided"), body),
            Spacer(1, 6 * mm),
            Paragraph("Booking Details:", heading),
        ]

        details = [
            ["Booking Reference:", booking_reference(booking.id)],
            ["Tour Name:", tour.name],
            ["Category:", tour.category.name],
            ["Destination:", tour.city.name],
            ["Duration:", f"{tour.duration_days} days"],
            ["Start Date:", _long_date(booking.start_date)],
            ["End Date:", _long_date(booking.end_date)],
            ["Number of Guests:", f"{booking.guests} person(s)"],
            ["Package Tier:", _label(booking.tier).capitalize()],
            ["Status:", _label(booking.status).capitalize()],
        ]
        details_table = Table(details, colWidths=[50 * mm, 120 * mm])
        details_table.setStyle(TableStyle([
            ("TEXTCOLOR", (0, 0), (0, -1), colors.grey),
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ]))
        story.append(details_table)

        if booking.special_requests:
            story += [
                Spacer(1, 6 * mm),
                Paragraph("Special Requests:", heading),
                Paragraph(escape(booking.special_requests), body),
            ]

        price_per_person = resolve_price_per_person(
            booking.tier, tour.price_standard, tour.price_premium
        )
        prices = Table(
            [
                [f"Price per person ({_label(booking.tier)})", _money(price_per_person, currency)],
                ["Number of guests", f"x {booking.guests}"],
                ["Total Amount", _money(booking.total_price, currency)],
            ],
            colWidths=[70 * mm, 50 * mm],
            hAlign="RIGHT",
        )
        prices.setStyle(TableStyle([
            ("ALIGN", (1, 0), (1, -1), "RIGHT"),
            ("LINEABOVE", (0, -1), (-1, -1), 1, colors.grey),
            ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ("TEXTCOLOR", (0, -1), (-1, -1), ACCENT),
        ]))
        story += [Spacer(1, 6 * mm), Paragraph("Price Breakdown:", heading), prices]

        if booking.payment is not None:
            payment = booking.payment
            story += [
                Spacer(1, 6 * mm),
                Paragraph("Payment Information:", heading),
                Paragraph(f"Payment Method: {_label(payment.method)}", body),
                Paragraph(f"Payment Status: {_label(payment.status)}", body),
                Paragraph(f"Transaction ID: {escape(payment.transaction_id or 'N/A')}", body),
                Paragraph(f"Payment Date: {payment.created_at.strftime('%Y-%m-%d')}", body),
            ]

        story += [
            Spacer(1, 10 * mm),
            HRFlowable(width="100%", thickness=1, color=ACCENT),
            Spacer(1, 3 * mm),
            Paragraph(f"Thank you for choosing {escape(company)}!", centered),
        ]

        doc.build(story)
        logger.info("Invoice rendered", extra={"booking_id": booking.id})
        return buffer.getvalue()


def export_filename(extension: str) -> str:
    return f"bookings-export-{date.today().isoformat()}.{extension}"


def invoice_filename(booking_id: int) -> str:
    return f"invoice-{booking_id}.pdf"


__all__ = [
    "ExportService",
    "booking_reference",
    "export_filename",
    "invoice_filename",
    "invoice_number",
]
