"""Column helpers shared by the models."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, func
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    """Naive UTC timestamp, matching ``DateTime`` columns without timezone."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    """``created_at``/``updated_at`` set client-side so they never need a reload."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now()
    )
