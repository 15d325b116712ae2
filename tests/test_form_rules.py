"""Tests for the conditional field rules.

Run with: pytest tests/test_form_rules.py -v
"""

import itertools
import random

import pytest

from interaction_capture.services.form_options import DEFAULT_OPTIONS
from interaction_capture.services.form_rules import (
    ALWAYS_REQUIRED,
    BRANCH,
    FIELD_ORDER,
    OTHER_CATEGORY,
    OTHER_CHANNEL,
    OUT_OF_STOCK,
    PURCHASED,
    display_label,
    prune_answers,
    resolve_fields,
)

ODD_VALUES = (None, "", "  ", ["In-store"], {"a": 1}, 0, "false")

# Every combination of the three answers that drive the rules.
DRIVING_ANSWERS = list(itertools.product(
    DEFAULT_OPTIONS["channel"] + ODD_VALUES,
    DEFAULT_OPTIONS["category"] + ODD_VALUES,
    (True, False, None, "false"),
))

NOISE_FIELDS = ("staffName", "wantedItem", "branch", "otherChannel", "otherCategory", "outOfStock", "timestamp")
NOISE_VALUES = ("Shelly", "Sheraton", "x" * 200, True, False) + ODD_VALUES


def _with_noise(answers, rng):
    noisy = dict(answers)
    for field in rng.sample(NOISE_FIELDS, rng.randint(0, len(NOISE_FIELDS))):
        noisy[field] = rng.choice(NOISE_VALUES)
    return noisy


class TestResolveFields:
    def test_empty_answers_require_only_base_fields(self):
        requirements = resolve_fields({})
        assert requirements.required == ALWAYS_REQUIRED
        assert requirements.visible == ALWAYS_REQUIRED

    def test_other_channel_requires_free_text(self):
        requirements = resolve_fields({"channel": "Other"})
        assert requirements.is_required(OTHER_CHANNEL)
        assert not requirements.is_required(BRANCH)
        assert not requirements.is_required(PURCHASED)

    def test_in_store_requires_branch_and_purchased(self):
        requirements = resolve_fields({"channel": "In-store"})
        assert requirements.is_required(BRANCH)
        assert requirements.is_required(PURCHASED)
        assert not requirements.is_required(OUT_OF_STOCK)

    def test_whatsapp_requires_purchased_but_not_branch(self):
        requirements = resolve_fields({"channel": "WhatsApp"})
        assert requirements.is_required(PURCHASED)
        assert not requirements.is_visible(BRANCH)

    def test_other_category_requires_free_text(self):
        assert resolve_fields({"category": "Other"}).is_required(OTHER_CATEGORY)
        assert not resolve_fields({"category": "Games"}).is_required(OTHER_CATEGORY)

    def test_no_purchase_requires_out_of_stock(self):
        requirements = resolve_fields({"channel": "WhatsApp", "purchased": False})
        assert requirements.is_required(OUT_OF_STOCK)

    def test_purchase_made_hides_out_of_stock(self):
        requirements = resolve_fields({"channel": "In-store", "purchased": True})
        assert not requirements.is_visible(OUT_OF_STOCK)

    def test_stray_purchased_on_phone_does_not_surface_out_of_stock(self):
        requirements = resolve_fields({"channel": "Phone", "purchased": False})
        assert not requirements.is_visible(PURCHASED)
        assert not requirements.is_visible(OUT_OF_STOCK)

    def test_string_false_is_not_a_purchase_outcome(self):
        requirements = resolve_fields({"channel": "In-store", "purchased": "false"})
        assert not requirements.is_visible(OUT_OF_STOCK)

    def test_unknown_channel_is_not_rejected(self):
        requirements = resolve_fields({"channel": "Carrier pigeon"})
        assert requirements.required == ALWAYS_REQUIRED

    def test_non_text_channel_matches_no_rule(self):
        assert resolve_fields({"channel": ["In-store"], "purchased": False}).required == ALWAYS_REQUIRED
        assert resolve_fields({"channel": {"a": 1}, "category": ["Other"]}).required == ALWAYS_REQUIRED

    def test_only_channel_category_and_purchased_matter(self):
        rng = random.Random(7)
        for channel, category, purchased in DRIVING_ANSWERS:
            base = {"channel": channel, "category": category, "purchased": purchased}
            expected = resolve_fields(base)
            for _ in range(5):
                assert resolve_fields(_with_noise(base, rng)) == expected

    def test_visible_equals_required(self):
        for channel, category, purchased in DRIVING_ANSWERS:
            requirements = resolve_fields(
                {"channel": channel, "category": category, "purchased": purchased}
            )
            assert requirements.visible == requirements.required

    def test_resolution_is_idempotent(self):
        rng = random.Random(11)
        for channel, category, purchased in DRIVING_ANSWERS:
            answers = _with_noise({"channel": channel, "category": category, "purchased": purchased}, rng)
            first = resolve_fields(answers)
            assert resolve_fields(answers) == first
            pruned = prune_answers(answers)
            assert resolve_fields(pruned) == first
            assert prune_answers(pruned) == pruned

    def test_as_dict_follows_form_order(self):
        data = resolve_fields({"channel": "In-store", "purchased": False}).as_dict()
        assert data["required"] == [
            "staffName",
            "channel",
            "branch",
            "category",
            "purchased",
            "outOfStock",
            "wantedItem",
        ]
        assert all(field in FIELD_ORDER for field in data["visible"])


class TestPruneAnswers:
    def test_drops_branch_when_channel_changes(self):
        answers = {"channel": "Phone", "branch": "Bridgetown"}
        assert prune_answers(answers) == {"channel": "Phone"}

    def test_cascades_through_purchased(self):
        answers = {"channel": "Email", "purchased": False, "outOfStock": True}
        assert prune_answers(answers) == {"channel": "Email"}

    def test_keeps_visible_answers(self, in_store_answers):
        assert prune_answers(in_store_answers) == in_store_answers

    def test_drops_unknown_keys(self):
        assert prune_answers({"channel": "Phone", "timestamp": "2024-01-01"}) == {"channel": "Phone"}


class TestDisplayLabel:
    @pytest.mark.parametrize(
        "value, other, expected",
        [
            ("Phone", None, "Phone"),
            ("Other", "Telegram", "Telegram"),
            ("Other", None, "Other"),
            ("Phone", "ignored", "Phone"),
            (None, None, ""),
        ],
    )
    def test_label(self, value, other, expected):
        assert display_label(value, other) == expected
