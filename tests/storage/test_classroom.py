"""Tests for educonnect.storage.classroom module."""

from __future__ import annotations

import typing as t

import pytest
import sqlalchemy.exc
from sqlalchemy.orm import Session

from educonnect.model import Classroom, ClassroomID, RoomType
from educonnect.storage import classroom as classroom_storage


class TestCreate(object):
    def test_defaults(self, db_session: Session) -> None:
        with db_session.begin():
            room = classroom_storage.create({"name": "B204"}, session=db_session)

        assert room.capacity == 40
        assert room.room_type is RoomType.Standard
        assert room.equipment == []
        assert room.is_active

    def test_equipment_round_trips(self, db_session: Session) -> None:
        with db_session.begin():
            room = classroom_storage.create(
                {"name": "Lab 1", "room_type": RoomType.Lab, "equipment": ["projector", "fume hood"]},
                session=db_session,
            )

        assert room.room_type is RoomType.Lab
        assert room.equipment == ["projector", "fume hood"]

    def test_duplicate_name_violates_constraint(self, db_session: Session, classroom: Classroom) -> None:
        with pytest.raises(sqlalchemy.exc.IntegrityError):
            with db_session.begin():
                classroom_storage.create({"name": classroom.name}, session=db_session)

    def test_capacity_out_of_range_violates_constraint(self, db_session: Session) -> None:
        with pytest.raises(sqlalchemy.exc.IntegrityError):
            with db_session.begin():
                classroom_storage.create({"name": "Hall", "capacity": 500}, session=db_session)


class TestFind(object):
    def test_search_matches_name_or_building(
        self, db_session: Session, classroom_factory: t.Callable[..., Classroom]
    ) -> None:
        classroom_factory(name="A101", building="Main")
        classroom_factory(name="B101", building="Annex")
        classroom_factory(name="Gym", building="Sports", room_type=RoomType.Gym)

        with db_session.begin():
            by_name = classroom_storage.find(search="101", session=db_session)
            by_building = classroom_storage.find(search="annex", session=db_session)
            by_type = classroom_storage.find(room_type=RoomType.Gym, session=db_session)

        assert [r.name for r in by_name.items] == ["A101", "B101"]
        assert [r.name for r in by_building.items] == ["B101"]
        assert [r.name for r in by_type.items] == ["Gym"]

    def test_find_active_skips_deactivated(
        self, db_session: Session, classroom_factory: t.Callable[..., Classroom]
    ) -> None:
        kept = classroom_factory(name="A101")
        closed = classroom_factory(name="A102")
        with db_session.begin():
            classroom_storage.update(closed.classroom_id, {"is_active": False}, session=db_session)
            active = classroom_storage.find_active(session=db_session)

        assert [r.classroom_id for r in active] == [kept.classroom_id]


class TestUpdate(object):
    def test_update_fields(self, db_session: Session, classroom: Classroom) -> None:
        with db_session.begin():
            updated = classroom_storage.update(
                classroom.classroom_id, {"capacity": 30, "building": None}, session=db_session
            )

        assert updated.capacity == 30
        assert updated.building is None
        assert updated.name == classroom.name

    def test_missing_classroom_raises_key_error(self, db_session: Session) -> None:
        with pytest.raises(KeyError):
            with db_session.begin():
                classroom_storage.update(ClassroomID(), {"capacity": 30}, session=db_session)
