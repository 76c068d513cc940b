"""Export router for PDF invoices and booking spreadsheets."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from ..core.dependencies import AdminUser, AppSettings, DatabaseSession, owned_by_caller
from ..core.exceptions import ApiError, InternalServerError
from ..models.booking import Booking
from ..schemas.booking import ExportFilters
from ..services.export_service import ExportService, export_filename, invoice_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/export", tags=["export"])

OWNED_BOOKING = Depends(owned_by_caller(Booking, "booking"))

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/booking/{id}/invoice", response_class=Response, summary="Booking invoice (PDF)")
async def booking_invoice(
    db: DatabaseSession,
    settings: AppSettings,
    booking: Booking = OWNED_BOOKING,
) -> Response:
    """
    Render the invoice of one booking as an A4 PDF.

    Available to the booking's owner and to administrators.
    """
    booking_id = booking.id
    try:
        pdf = await ExportService(db, settings).render_invoice(booking_id)
        return _attachment(pdf, "application/pdf", invoice_filename(booking_id))

    except ApiError:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in invoice rendering",
            extra={"booking_id": booking_id, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError("Failed to generate invoice") from e


@router.get("/bookings/csv", response_class=Response, summary="Export bookings (CSV)")
async def export_bookings_csv(
    filters: Annotated[ExportFilters, Query()],
    admin: AdminUser,
    db: DatabaseSession,
    settings: AppSettings,
) -> Response:
    content = await ExportService(db, settings).export_csv(filters)
    return _attachment(content, "text/csv; charset=utf-8", export_filename("csv"))


@router.get("/bookings/excel", response_class=Response, summary="Export bookings (Excel)")
async def export_bookings_excel(
    filters: Annotated[ExportFilters, Query()],
    admin: AdminUser,
    db: DatabaseSession,
    settings: AppSettings,
) -> Response:
    """Bookings sheet plus a Summary sheet with per-status totals."""
    content = await ExportService(db, settings).export_excel(filters)
    return _attachment(content, XLSX_MEDIA_TYPE, export_filename("xlsx"))
