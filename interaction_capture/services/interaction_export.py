"""CSV export of stored interactions for the admin dashboard."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from interaction_capture.models.interaction import Interaction

EXPORT_HEADERS: List[str] = [
    "Date",
    "Staff Name",
    "Channel",
    "Other Channel",
    "Branch",
    "Category",
    "Other Category",
    "Wanted Item",
    "Purchased",
    "Out of Stock",
]

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _yes_no(value: Optional[bool]) -> str:
    if value is True:
        return "Yes"
    if value is False:
        return "No"
    return ""


def _format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(DATE_FORMAT)


def export_row(interaction: Interaction) -> List[str]:
    # The dashboard column reads "in stock": a recorded out_of_stock=True exports as "No".
    out_of_stock = interaction.out_of_stock
    in_stock = None if out_of_stock is None else not out_of_stock
    return [
        _format_timestamp(interaction.timestamp),
        interaction.staff_name or "",
        interaction.channel or "",
        interaction.other_channel or "",
        interaction.branch or "",
        interaction.category or "",
        interaction.other_category or "",
        interaction.wanted_item or "",
        _yes_no(interaction.purchased),
        _yes_no(in_stock),
    ]


def interactions_to_csv(interactions: Iterable[Interaction]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for interaction in interactions:
        writer.writerow(export_row(interaction))
    return buffer.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"interactions_{today.isoformat()}.csv"
