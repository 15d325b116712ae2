"""Tests for the form option sets and their database operations."""

import pytest

from interaction_capture.database import AsyncSessionLocal
from interaction_capture.models.form_option import FormOption
from interaction_capture.services.form_options import (
    DEFAULT_OPTIONS,
    FormOptionSets,
    add_option,
    list_options,
    load_active_option_sets,
    move_option,
    seed_default_options,
)


class TestFormOptionSets:
    def test_defaults_are_complete(self):
        defaults = FormOptionSets.defaults()
        assert defaults.is_complete()
        assert defaults.names("channel")[-1] == "Other"
        assert defaults.names("category")[-1] == "Other"

    def test_unknown_kind(self):
        with pytest.raises(KeyError):
            FormOptionSets.defaults().names("colour")

    def test_fill_from_replaces_only_empty_sets(self):
        partial = FormOptionSets(staff=("Ana",))
        filled = partial.fill_from(FormOptionSets.defaults())
        assert filled.staff == ("Ana",)
        assert filled.branch == DEFAULT_OPTIONS["branch"]


@pytest.mark.usefixtures("reset_db")
class TestOptionStorage:
    async def test_load_active_in_display_order(self):
        async with AsyncSessionLocal() as db:
            db.add_all([
                FormOption(kind="branch", name="Sheraton", active=True, display_order=2),
                FormOption(kind="branch", name="Bridgetown", active=True, display_order=1),
                FormOption(kind="branch", name="Closed", active=False, display_order=3),
            ])
            await db.commit()

            sets = await load_active_option_sets(db)

        assert sets.branch == ("Bridgetown", "Sheraton")
        assert sets.staff == ()

    async def test_add_option_after_last(self):
        async with AsyncSessionLocal() as db:
            await seed_default_options(db)
            option = await add_option(db, "branch", "Oistins")
        assert option.display_order == 3
        assert option.active is True

    async def test_move_renumbers_duplicate_orders(self):
        async with AsyncSessionLocal() as db:
            db.add_all([
                FormOption(kind="staff", name="A", active=True, display_order=0),
                FormOption(kind="staff", name="B", active=True, display_order=0),
                FormOption(kind="staff", name="C", active=True, display_order=0),
            ])
            await db.commit()
            options = await list_options(db, "staff")

            moved = await move_option(db, options[2], "up")
            names = [option.name for option in await list_options(db, "staff")]

        assert moved is True
        assert names == ["A", "C", "B"]

    async def test_move_down_at_end_is_noop(self):
        async with AsyncSessionLocal() as db:
            await seed_default_options(db)
            options = await list_options(db, "branch")
            assert await move_option(db, options[-1], "down") is False
