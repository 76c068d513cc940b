"""Payment service: attach exactly one payment to a booking."""

import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.exceptions import InvalidStateError
from ..core.observability import metrics_collector
from ..models._mixins import utcnow
from ..models.booking import Booking, BookingStatus
from ..models.payment import Payment, PaymentStatus
from ..schemas.payment import PaymentRequest

logger = logging.getLogger(__name__)


class PaymentService:
    """Service for recording booking payments."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def record_payment(self, booking: Booking, request: PaymentRequest) -> Payment:
        """
        Insert a completed payment and confirm the booking in one transaction.

        The booking update only matches while ``payment_id`` is still NULL, so
        of two racing requests exactly one attaches its payment; the other
        rolls back its insert.

        Raises:
            InvalidStateError: If the booking already has a payment or is cancelled
        """
        if booking.payment_id is not None:
            logger.warning(
                "Payment rejected - booking already paid",
                extra={"booking_id": booking.id, "payment_id": booking.payment_id}
            )
            raise InvalidStateError("Booking already has a payment")

        if booking.status == BookingStatus.CANCELLED:
            raise InvalidStateError("Cannot pay for a cancelled booking")

        booking_id = booking.id
        payment = Payment(
            booking_id=booking_id,
            amount=booking.total_price,
            currency=self.settings.currency,
            method=request.method,
            status=PaymentStatus.COMPLETED,
            transaction_id=request.transaction_id,
            payment_details=request.payment_details,
        )

        try:
            self.db.add(payment)
            await self.db.flush()

            result = await self.db.execute(
                update(Booking)
                .where(Booking.id == booking_id, Booking.payment_id.is_(None))
                .values(
                    payment_id=payment.id,
                    status=BookingStatus.CONFIRMED,
                    updated_at=utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise InvalidStateError("Booking already has a payment")

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.warning(
                "Payment transaction rolled back",
                extra={"booking_id": booking_id, "method": request.method.value}
            )
            raise

        metrics_collector.record_payment(request.method.value)
        logger.info(
            "Payment processed successfully",
            extra={
                "booking_id": booking_id,
                "payment_id": payment.id,
                "amount": str(payment.amount),
                "method": request.method.value,
            }
        )
        return payment
