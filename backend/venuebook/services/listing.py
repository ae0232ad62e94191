"""Filtered, paginated listing shared by reservation and booking queries."""

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class ListFilters:
    status: str | None = None
    payment_status: str | None = None
    skip: int = 0
    limit: int = 20


async def paginate(db: AsyncSession, model, conditions: list, filters: ListFilters) -> tuple[list, int]:
    """Return ``(items, total)`` for ``model`` rows matching ``conditions``, newest first."""
    total = await db.scalar(select(func.count()).select_from(model).where(*conditions))
    result = await db.execute(
        select(model)
        .where(*conditions)
        .order_by(model.created_at.desc())
        .offset(max(filters.skip, 0))
        .limit(min(max(filters.limit, 1), MAX_PAGE_SIZE))
    )
    return list(result.scalars().all()), total or 0
