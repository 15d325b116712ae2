"""Conditional field rules for the customer interaction form.

Single source of truth for which fields are visible and which are required
for a given answer set. Both the form engine and the submission endpoint call
into this module; nothing else re-implements the rules.

Only three answers influence the result: ``channel``, ``category`` and
``purchased``. The rules, applied in order:

1. ``staffName``, ``channel``, ``category``, ``wantedItem`` are always required.
2. ``otherChannel`` is required when channel is "Other".
3. ``branch`` is shown and required when channel is "In-store".
4. ``otherCategory`` is required when category is "Other".
5. ``purchased`` is shown and required when channel is "In-store" or "WhatsApp".
6. ``outOfStock`` is shown and required when purchased is false, and only
   while rule 5 holds.

Every visible field is required, so ``visible`` and ``required`` coincide for
this rule set; they are kept separate so callers never have to assume that.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

STAFF_NAME = "staffName"
CHANNEL = "channel"
OTHER_CHANNEL = "otherChannel"
BRANCH = "branch"
CATEGORY = "category"
OTHER_CATEGORY = "otherCategory"
PURCHASED = "purchased"
OUT_OF_STOCK = "outOfStock"
WANTED_ITEM = "wantedItem"

# Form order, also the order violations and field lists are reported in.
FIELD_ORDER: tuple[str, ...] = (
    STAFF_NAME,
    CHANNEL,
    OTHER_CHANNEL,
    BRANCH,
    CATEGORY,
    OTHER_CATEGORY,
    PURCHASED,
    OUT_OF_STOCK,
    WANTED_ITEM,
)

ALWAYS_REQUIRED: FrozenSet[str] = frozenset({STAFF_NAME, CHANNEL, CATEGORY, WANTED_ITEM})

OTHER = "Other"
IN_STORE = "In-store"
WHATSAPP = "WhatsApp"
PURCHASE_CHANNELS: FrozenSet[str] = frozenset({IN_STORE, WHATSAPP})

# Free-text fields and their maximum length (minimum is always 1).
TEXT_LIMITS: Dict[str, int] = {
    OTHER_CHANNEL: 60,
    OTHER_CATEGORY: 60,
    WANTED_ITEM: 120,
}

BOOLEAN_FIELDS: FrozenSet[str] = frozenset({PURCHASED, OUT_OF_STOCK})

# Enumerated fields mapped to the option set that supplies their values.
ENUM_FIELDS: Dict[str, str] = {
    STAFF_NAME: "staff",
    CHANNEL: "channel",
    CATEGORY: "category",
    BRANCH: "branch",
}


@dataclass(frozen=True)
class FieldRequirements:
    """Visible and required field sets derived from one answer set."""

    visible: FrozenSet[str]
    required: FrozenSet[str]

    def is_visible(self, field: str) -> bool:
        return field in self.visible

    def is_required(self, field: str) -> bool:
        return field in self.required

    def ordered(self, fields: FrozenSet[str]) -> List[str]:
        return [name for name in FIELD_ORDER if name in fields]

    def as_dict(self) -> Dict[str, List[str]]:
        return {
            "visible": self.ordered(self.visible),
            "required": self.ordered(self.required),
        }


def _text_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def resolve_fields(answers: Mapping[str, Any]) -> FieldRequirements:
    """Derive the visible and required fields for ``answers``.

    Pure and total: any mapping is accepted, unknown values simply do not
    trigger a conditional field. Enum membership is checked by the validator.
    """
    # Non-text values (lists, objects from raw JSON) match no rule.
    channel = _text_or_none(answers.get(CHANNEL))
    category = _text_or_none(answers.get(CATEGORY))
    purchased = answers.get(PURCHASED)

    conditional = set()
    if channel == OTHER:
        conditional.add(OTHER_CHANNEL)
    if channel == IN_STORE:
        conditional.add(BRANCH)
    if category == OTHER:
        conditional.add(OTHER_CATEGORY)
    if channel in PURCHASE_CHANNELS:
        conditional.add(PURCHASED)
        # Only a real boolean False counts; "false" strings are a schema error.
        if purchased is False:
            conditional.add(OUT_OF_STOCK)

    visible = ALWAYS_REQUIRED | frozenset(conditional)
    return FieldRequirements(visible=visible, required=visible)


def prune_answers(answers: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``answers`` without values for fields that are hidden.

    Pruning can hide further fields (clearing ``purchased`` hides
    ``outOfStock``), so it repeats until the answer set is stable.
    """
    current = {key: value for key, value in answers.items() if key in FIELD_ORDER}
    while True:
        visible = resolve_fields(current).visible
        pruned = {key: value for key, value in current.items() if key in visible}
        if pruned == current:
            return pruned
        current = pruned


def display_label(value: Optional[str], other_value: Optional[str]) -> str:
    """Label shown for a channel or category: the free text when "Other"."""
    if value == OTHER and other_value:
        return other_value
    return value or ""
