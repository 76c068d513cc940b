"""Background worker that cancels unpaid pending bookings."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.config import Settings
from ..services.booking_service import BookingService
from .base import BaseWorker

logger = logging.getLogger(__name__)


class PendingBookingExpiryWorker(BaseWorker):
    """
    Cancels pending bookings that never received a payment.

    A booking expires once it is older than ``pending_booking_ttl_hours``.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], settings: Settings):
        super().__init__(
            name="PendingBookingExpiry",
            interval_seconds=settings.booking_expiry_interval_seconds,
        )
        self.session_factory = session_factory
        self.settings = settings

    async def process(self) -> int:
        """Expire stale bookings; returns how many were cancelled."""
        async with self.session_factory() as db:
            try:
                expired_count = await BookingService(db, self.settings).expire_pending()
            except Exception as e:
                await db.rollback()
                logger.error(
                    f"Error expiring pending bookings: {e!s}",
                    exc_info=True,
                    extra={"worker": self.name}
                )
                raise

        if expired_count > 0:
            logger.info(
                f"Expired {expired_count} pending bookings",
                extra={"expired_count": expired_count, "worker": self.name}
            )
        return expired_count
