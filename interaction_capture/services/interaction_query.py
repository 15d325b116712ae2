"""Admin queries over stored interactions (list, filter, export)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from interaction_capture.models.interaction import Interaction

# ``purchased`` filter values; "null" selects interactions with no purchase outcome.
PURCHASED_FILTERS = {"true": True, "false": False, "null": None}


@dataclass(frozen=True)
class InteractionFilters:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    staff_name: Optional[str] = None
    channel: Optional[str] = None
    branch: Optional[str] = None
    category: Optional[str] = None
    purchased: Optional[str] = None

    def conditions(self) -> list:
        conditions = []
        if self.start_date:
            start = datetime.combine(self.start_date, time.min, tzinfo=timezone.utc)
            conditions.append(Interaction.timestamp >= start)
        if self.end_date:
            # Inclusive: everything up to the end of that day.
            end = datetime.combine(self.end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
            conditions.append(Interaction.timestamp < end)
        if self.staff_name:
            conditions.append(Interaction.staff_name == self.staff_name)
        if self.channel:
            conditions.append(Interaction.channel == self.channel)
        if self.branch:
            conditions.append(Interaction.branch == self.branch)
        if self.category:
            conditions.append(Interaction.category == self.category)
        if self.purchased is not None:
            value = PURCHASED_FILTERS[self.purchased]
            if value is None:
                conditions.append(Interaction.purchased.is_(None))
            else:
                conditions.append(Interaction.purchased.is_(value))
        return conditions


async def list_interactions(
    db: AsyncSession,
    filters: InteractionFilters,
    *,
    page: int = 1,
    page_size: int = 50,
) -> Tuple[List[Interaction], int]:
    """One page of matching interactions, newest first, plus the total count."""
    conditions = filters.conditions()

    count_query = select(func.count(Interaction.id))
    query = select(Interaction)
    if conditions:
        count_query = count_query.where(and_(*conditions))
        query = query.where(and_(*conditions))

    total = int((await db.execute(count_query)).scalar_one() or 0)

    query = (
        query.order_by(Interaction.timestamp.desc(), Interaction.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def all_interactions(db: AsyncSession, filters: InteractionFilters) -> List[Interaction]:
    """Every matching interaction, newest first (export)."""
    query = select(Interaction)
    conditions = filters.conditions()
    if conditions:
        query = query.where(and_(*conditions))
    result = await db.execute(query.order_by(Interaction.timestamp.desc(), Interaction.id.desc()))
    return list(result.scalars().all())
