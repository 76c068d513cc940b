"""Review model definition."""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base
from ._mixins import TimestampMixin

if TYPE_CHECKING:
    from .tour import Tour
    from .user import User


class Review(TimestampMixin, Base):
    """A user's rating of a tour; at most one per (user, tour)."""

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    tour_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tours.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    __table_args__ = (
        UniqueConstraint("user_id", "tour_id", name="uq_review_user_tour"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
    )

    # Relationships
    user: Mapped["User"] = relationship("User")
    tour: Mapped["Tour"] = relationship("Tour")

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, user_id={self.user_id}, tour_id={self.tour_id}, rating={self.rating})>"
