"""Form option sets - the dropdown values for staff, channel, category and branch.

Options are admin-managed rows in the ``form_options`` table. The form only
ever sees the ordered *active* names of each set. ``DEFAULT_OPTIONS`` is the
built-in fallback used when the table is empty or unreachable, and the seed
for a fresh database.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from interaction_capture.models.form_option import FormOption

logger = logging.getLogger(__name__)

OPTION_KINDS: Tuple[str, ...] = ("staff", "channel", "category", "branch")

DEFAULT_OPTIONS: Dict[str, Tuple[str, ...]] = {
    "staff": (
        "Mohammed",
        "Shelly",
        "Kemar",
        "Dameon",
        "Carson",
        "Mahesh",
        "Sunil",
        "Praveen",
    ),
    "channel": (
        "In-store",
        "Phone",
        "WhatsApp",
        "Instagram",
        "Facebook",
        "Email",
        "Other",
    ),
    "category": (
        "Digital Cards",
        "Consoles",
        "Games",
        "Accessories",
        "Repair/Service",
        "Pokemon Cards",
        "Electronics",
        "Other",
    ),
    "branch": (
        "Bridgetown",
        "Sheraton",
    ),
}


@dataclass(frozen=True)
class FormOptionSets:
    """Ordered active option names for the four dropdowns."""

    staff: Tuple[str, ...] = ()
    channel: Tuple[str, ...] = ()
    category: Tuple[str, ...] = ()
    branch: Tuple[str, ...] = ()

    @classmethod
    def defaults(cls) -> "FormOptionSets":
        return cls(**DEFAULT_OPTIONS)

    def names(self, kind: str) -> Tuple[str, ...]:
        if kind not in OPTION_KINDS:
            raise KeyError(kind)
        return getattr(self, kind)

    def is_complete(self) -> bool:
        """True when every set has at least one option."""
        return all(self.names(kind) for kind in OPTION_KINDS)

    def fill_from(self, fallback: "FormOptionSets") -> "FormOptionSets":
        """Replace empty sets with the corresponding set from ``fallback``."""
        return FormOptionSets(**{
            kind: self.names(kind) or fallback.names(kind)
            for kind in OPTION_KINDS
        })

    def as_dict(self) -> Dict[str, List[str]]:
        return {kind: list(self.names(kind)) for kind in OPTION_KINDS}


async def load_active_option_sets(db: AsyncSession) -> FormOptionSets:
    """Read active options from the database, grouped by kind in display order.

    Sets with no active rows come back empty; callers decide on the fallback.
    """
    result = await db.execute(
        select(FormOption.kind, FormOption.name)
        .where(FormOption.active.is_(True))
        .order_by(FormOption.kind, FormOption.display_order, FormOption.id)
    )
    grouped: Dict[str, List[str]] = {kind: [] for kind in OPTION_KINDS}
    for kind, name in result.all():
        if kind in grouped:
            grouped[kind].append(name)
    return FormOptionSets(**{kind: tuple(names) for kind, names in grouped.items()})


async def list_options(db: AsyncSession, kind: str) -> List[FormOption]:
    """All options of one kind (active and inactive), in display order."""
    result = await db.execute(
        select(FormOption)
        .where(FormOption.kind == kind)
        .order_by(FormOption.display_order, FormOption.id)
    )
    return list(result.scalars().all())


async def get_option(db: AsyncSession, kind: str, option_id: int) -> Optional[FormOption]:
    result = await db.execute(
        select(FormOption).where(FormOption.kind == kind, FormOption.id == option_id)
    )
    return result.scalar_one_or_none()


async def find_option_by_name(db: AsyncSession, kind: str, name: str) -> Optional[FormOption]:
    result = await db.execute(
        select(FormOption).where(FormOption.kind == kind, FormOption.name == name)
    )
    return result.scalar_one_or_none()


async def add_option(db: AsyncSession, kind: str, name: str) -> FormOption:
    """Append a new active option at the end of its set."""
    max_order = await db.execute(
        select(func.max(FormOption.display_order)).where(FormOption.kind == kind)
    )
    next_order = int(max_order.scalar_one_or_none() or 0) + 1

    option = FormOption(kind=kind, name=name, active=True, display_order=next_order)
    db.add(option)
    await db.commit()
    await db.refresh(option)
    logger.info("Added form option kind=%s name=%s order=%s", kind, name, next_order)
    return option


async def update_option(
    db: AsyncSession,
    option: FormOption,
    *,
    name: Optional[str] = None,
    active: Optional[bool] = None,
) -> FormOption:
    if name is not None:
        option.name = name
    if active is not None:
        option.active = active
    await db.commit()
    await db.refresh(option)
    logger.info("Updated form option id=%s kind=%s name=%s active=%s", option.id, option.kind, option.name, option.active)
    return option


async def delete_option(db: AsyncSession, option: FormOption) -> None:
    await db.delete(option)
    await db.commit()
    logger.info("Deleted form option id=%s kind=%s name=%s", option.id, option.kind, option.name)


async def move_option(db: AsyncSession, option: FormOption, direction: str) -> bool:
    """Swap display order with the neighbouring option.

    Returns False (and changes nothing) when the option is already first
    (``up``) or last (``down``).
    """
    options = await list_options(db, option.kind)
    index = next(i for i, item in enumerate(options) if item.id == option.id)
    neighbour_index = index - 1 if direction == "up" else index + 1
    if neighbour_index < 0 or neighbour_index >= len(options):
        return False

    # Duplicate orders would turn the swap into a no-op: renumber first.
    if len({item.display_order for item in options}) != len(options):
        for position, item in enumerate(options, start=1):
            item.display_order = position

    current, neighbour = options[index], options[neighbour_index]
    current.display_order, neighbour.display_order = neighbour.display_order, current.display_order
    await db.commit()
    return True


async def seed_default_options(db: AsyncSession) -> int:
    """Insert the default options for every kind that has no rows yet.

    Returns the number of options inserted.
    """
    inserted = 0
    for kind in OPTION_KINDS:
        existing = await db.execute(
            select(func.count(FormOption.id)).where(FormOption.kind == kind)
        )
        if int(existing.scalar_one() or 0) > 0:
            continue
        for order, name in enumerate(DEFAULT_OPTIONS[kind], start=1):
            db.add(FormOption(kind=kind, name=name, active=True, display_order=order))
            inserted += 1
    if inserted:
        await db.commit()
        logger.info("Seeded %s default form options", inserted)
    return inserted
