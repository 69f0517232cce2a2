from datetime import date

import pytest

from festival_booking.dto.festival import FestivalCreate
from festival_booking.repositories.festival_repository import editor_repository, festival_repository
from festival_booking.utils.database import db_session_context
from festival_booking.utils.exceptions import InvalidValue, MissingRequiredField, NotFound


def festival_payload(name="Festival du Jeu") -> FestivalCreate:
    return FestivalCreate(name=name, location="Montpellier", start_date=date(2026, 3, 14), end_date=date(2026, 3, 15))


class TestFestivalDirectory:
    async def test_create_and_fetch_festival(self, db):
        db_session_context.set(db)

        festival = await festival_repository.create(festival_payload())

        assert festival.id.startswith("fes_")
        fetched = await festival_repository.require(festival.id)
        assert fetched.name == "Festival du Jeu"
        assert fetched.zones == []

    async def test_festival_names_are_unique(self, db):
        db_session_context.set(db)
        await festival_repository.create(festival_payload())

        with pytest.raises(InvalidValue):
            await festival_repository.create(festival_payload())

    async def test_missing_festival(self, db):
        db_session_context.set(db)
        with pytest.raises(NotFound):
            await festival_repository.require("fes_missing")

    async def test_editors_are_looked_up(self, db):
        db_session_context.set(db)

        editor = await editor_repository.create("  Editions Nouvelles ")

        assert (await editor_repository.require(editor.id)).name == "Editions Nouvelles"
        with pytest.raises(InvalidValue):
            await editor_repository.create("Editions Nouvelles")
        with pytest.raises(MissingRequiredField):
            await editor_repository.create(" ")
