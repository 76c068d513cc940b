"""Background workers for the tour storefront."""

from .manager import WorkerManager
from .pending_booking_worker import PendingBookingExpiryWorker

__all__ = ["PendingBookingExpiryWorker", "WorkerManager"]
