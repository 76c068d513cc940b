"""Typed filter and patch translation shared by every listing and update."""

import math
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Any, Iterable, Mapping, Sequence

from pydantic import BaseModel
from sqlalchemy import ColumnElement, Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .exceptions import ValidationError


@dataclass(frozen=True)
class FilterRule:
    """
    How one filter field maps onto SQL.

    ``op`` is one of ``eq``, ``gte``, ``lte``, ``through_day`` (inclusive upper
    bound on a timestamp column given a date) or ``search`` (case-insensitive
    substring match over every column in ``columns``).
    """

    columns: Sequence[Any]
    op: str = "eq"

    @classmethod
    def eq(cls, column) -> "FilterRule":
        return cls((column,), "eq")

    @classmethod
    def gte(cls, column) -> "FilterRule":
        return cls((column,), "gte")

    @classmethod
    def lte(cls, column) -> "FilterRule":
        return cls((column,), "lte")

    @classmethod
    def through_day(cls, column) -> "FilterRule":
        return cls((column,), "through_day")

    @classmethod
    def search(cls, *columns) -> "FilterRule":
        return cls(tuple(columns), "search")

    def condition(self, value: Any) -> ColumnElement[bool]:
        column = self.columns[0]
        if self.op == "eq":
            return column == value
        if self.op == "gte":
            return column >= value
        if self.op == "lte":
            return column <= value
        if self.op == "through_day":
            if isinstance(value, datetime):
                value = value.date()
            return column < datetime.combine(value + timedelta(days=1), time.min)
        if self.op == "search":
            pattern = f"%{value}%"
            return or_(*(col.ilike(pattern) for col in self.columns))
        raise ValueError(f"Unknown filter operation: {self.op}")


def build_conditions(filters: BaseModel | None, rules: Mapping[str, FilterRule]) -> list[ColumnElement[bool]]:
    """
    Translate a filter object into WHERE conditions.

    Fields that are absent (None or empty string) are omitted, never an error.
    """
    if filters is None:
        return []

    conditions = []
    for field_name, rule in rules.items():
        value = getattr(filters, field_name, None)
        if value is None or value == "":
            continue
        conditions.append(rule.condition(value))
    return conditions


def apply_patch(entity: Any, patch: BaseModel, exclude: Iterable[str] = ()) -> dict[str, Any]:
    """
    Assign the fields explicitly set on ``patch`` to ``entity``.

    Returns:
        The applied changes

    Raises:
        ValidationError: If the patch sets no fields
    """
    changes = patch.model_dump(exclude_unset=True, exclude=set(exclude) or None)
    if not changes:
        raise ValidationError("No fields to update")

    for field_name, value in changes.items():
        setattr(entity, field_name, value)
    return changes


@dataclass
class PageResult:
    """One page of rows plus the pagination block."""

    items: list[Any]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def pagination(self) -> dict[str, int]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }


async def paginate(
    db: AsyncSession,
    stmt: Select,
    page: int = 1,
    limit: int = 10,
    scalars: bool = True,
) -> PageResult:
    """
    Run ``stmt`` for one page and count the full result set.

    Args:
        db: Database session
        stmt: Select with filters and ordering already applied
        page: 1-based page number
        limit: Page size
        scalars: Return the first column of each row instead of the row

    Returns:
        PageResult
    """
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar_one()

    result = await db.execute(stmt.offset((page - 1) * limit).limit(limit))
    items = list(result.scalars().all()) if scalars else list(result.all())

    return PageResult(items=items, page=page, limit=limit, total=total)
