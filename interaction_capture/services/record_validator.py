"""Record validator - turns a submitted answer set into an InteractionRecord.

Validation re-derives the required fields with ``form_rules.resolve_fields``
and then checks every field of the form:

- required fields must be present, non-blank and within bounds;
- enumerated fields must name an active option;
- booleans must be real booleans;
- fields that are not required must be empty (a ``branch`` sent for a phone
  interaction is a violation, not silently dropped).

All violations are collected and raised together as one ``ValidationError``
keyed by field name, in form order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from interaction_capture.exceptions import ValidationError
from interaction_capture.services import form_rules
from interaction_capture.services.form_options import FormOptionSets
from interaction_capture.services.form_rules import (
    BRANCH,
    CATEGORY,
    CHANNEL,
    OTHER_CATEGORY,
    OTHER_CHANNEL,
    OUT_OF_STOCK,
    PURCHASED,
    STAFF_NAME,
    WANTED_ITEM,
)

Clock = Callable[[], datetime]

REQUIRED_MESSAGES: Dict[str, str] = {
    STAFF_NAME: "Please select a staff member",
    CHANNEL: "Please select a channel",
    OTHER_CHANNEL: "Please specify the channel",
    BRANCH: "Branch is required for in-store interactions",
    CATEGORY: "Please select a category",
    OTHER_CATEGORY: "Please specify the category",
    PURCHASED: "Please specify if they made a purchase",
    OUT_OF_STOCK: "Please specify if the item was in stock",
    WANTED_ITEM: "Please enter the item the customer wanted",
}

NOT_APPLICABLE_MESSAGES: Dict[str, str] = {
    OTHER_CHANNEL: "Only allowed when the channel is Other",
    BRANCH: "Only allowed for in-store interactions",
    OTHER_CATEGORY: "Only allowed when the category is Other",
    PURCHASED: "Only allowed for in-store and WhatsApp interactions",
    OUT_OF_STOCK: "Only allowed when no purchase was made",
}

ENUM_LABELS: Dict[str, str] = {
    STAFF_NAME: "staff member",
    CHANNEL: "channel",
    CATEGORY: "category",
    BRANCH: "branch",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class InteractionRecord:
    """A validated, immutable interaction ready for the persistence gateway."""

    staff_name: str
    channel: str
    category: str
    wanted_item: str
    timestamp: datetime
    other_channel: Optional[str] = None
    branch: Optional[str] = None
    other_category: Optional[str] = None
    purchased: Optional[bool] = None
    out_of_stock: Optional[bool] = None

    @property
    def channel_label(self) -> str:
        return form_rules.display_label(self.channel, self.other_channel)

    @property
    def category_label(self) -> str:
        return form_rules.display_label(self.category, self.other_category)

    def to_row(self) -> Dict[str, Any]:
        """Column mapping for the ``interactions`` table; undefined fields are omitted."""
        row: Dict[str, Any] = {
            "timestamp": self.timestamp,
            "staff_name": self.staff_name,
            "channel": self.channel,
            "category": self.category,
            "wanted_item": self.wanted_item,
        }
        optional = {
            "other_channel": self.other_channel,
            "branch": self.branch,
            "other_category": self.other_category,
            "purchased": self.purchased,
            "out_of_stock": self.out_of_stock,
        }
        row.update({key: value for key, value in optional.items() if value is not None})
        return row


def normalize_answers(answers: Mapping[str, Any]) -> Dict[str, Any]:
    """Form fields only, with surrounding whitespace stripped from text values."""
    return {
        field: answers[field].strip() if isinstance(answers[field], str) else answers[field]
        for field in form_rules.FIELD_ORDER
        if field in answers
    }


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _check_required(field: str, value: Any, options: FormOptionSets) -> Optional[str]:
    """Message for a required field that fails its checks, else None."""
    if field in form_rules.BOOLEAN_FIELDS:
        if value is None:
            return REQUIRED_MESSAGES[field]
        if not isinstance(value, bool):
            return "Must be true or false"
        return None

    if _is_blank(value):
        return REQUIRED_MESSAGES[field]
    if not isinstance(value, str):
        return "Must be text"

    if field in form_rules.TEXT_LIMITS:
        limit = form_rules.TEXT_LIMITS[field]
        if len(value) > limit:
            return f"Must be at most {limit} characters"

    if field in form_rules.ENUM_FIELDS:
        allowed = options.names(form_rules.ENUM_FIELDS[field])
        if value not in allowed:
            return f"Unknown {ENUM_LABELS[field]} '{value}'"
    return None


def collect_violations(
    answers: Mapping[str, Any],
    *,
    options: Optional[FormOptionSets] = None,
) -> Dict[str, str]:
    """Field-keyed violations for ``answers``; empty when the answer set is valid."""
    options = options or FormOptionSets.defaults()
    answers = normalize_answers(answers)
    requirements = form_rules.resolve_fields(answers)

    violations: Dict[str, str] = {}
    for field in form_rules.FIELD_ORDER:
        value = answers.get(field)
        if requirements.is_required(field):
            message = _check_required(field, value, options)
            if message:
                violations[field] = message
        elif not _is_blank(value):
            violations[field] = NOT_APPLICABLE_MESSAGES.get(field, "Not applicable")
    return violations


def validate_record(
    answers: Mapping[str, Any],
    *,
    options: Optional[FormOptionSets] = None,
    clock: Optional[Clock] = None,
) -> InteractionRecord:
    """Validate a complete answer set and build the record.

    Raises:
        ValidationError: with one message per offending field.
    """
    violations = collect_violations(answers, options=options)
    if violations:
        raise ValidationError(violations)

    answers = normalize_answers(answers)

    def text(field: str) -> Optional[str]:
        return answers.get(field) or None

    requirements = form_rules.resolve_fields(answers)
    return InteractionRecord(
        staff_name=text(STAFF_NAME),
        channel=text(CHANNEL),
        category=text(CATEGORY),
        wanted_item=text(WANTED_ITEM),
        other_channel=text(OTHER_CHANNEL),
        branch=text(BRANCH),
        other_category=text(OTHER_CATEGORY),
        purchased=answers.get(PURCHASED) if requirements.is_required(PURCHASED) else None,
        out_of_stock=answers.get(OUT_OF_STOCK) if requirements.is_required(OUT_OF_STOCK) else None,
        timestamp=(clock or utc_now)(),
    )
