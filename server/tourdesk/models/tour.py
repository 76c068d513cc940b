"""Tour model definition."""

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, CheckConstraint, ForeignKey, Integer, Numeric, String, Text, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base
from ._mixins import TimestampMixin

if TYPE_CHECKING:
    from .category import Category
    from .city import City


class Tour(TimestampMixin, Base):
    """Tour entity with standard and optional premium per-person prices."""

    __tablename__ = "tours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Catalog references
    city_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("cities.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    category_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    # Tour information
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False)
    price_standard: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    price_premium: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    max_guests: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=true(),
        index=True
    )
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        CheckConstraint("duration_days > 0", name="ck_tour_duration_positive"),
        CheckConstraint("max_guests > 0", name="ck_tour_max_guests_positive"),
        CheckConstraint("price_standard >= 0", name="ck_tour_price_standard_non_negative"),
        CheckConstraint(
            "price_premium IS NULL OR price_premium >= 0",
            name="ck_tour_price_premium_non_negative"
        ),
    )

    # Relationships
    city: Mapped["City"] = relationship("City")
    category: Mapped["Category"] = relationship("Category")

    def __repr__(self) -> str:
        return f"<Tour(id={self.id}, name='{self.name}', active={self.is_active})>"
