from datetime import datetime, timezone
from decimal import Decimal
from itertools import count
from types import SimpleNamespace


def db_with_scalars_first(mocker, value):
    res = mocker.Mock()
    res.scalars.return_value.first.return_value = value
    db = mocker.Mock()
    db.execute = mocker.AsyncMock(return_value=res)
    return db, res


def db_session(mocker):
    db = mocker.Mock()
    db.execute = mocker.AsyncMock()
    db.flush = mocker.AsyncMock()
    db.refresh = mocker.AsyncMock()
    return db


def create_role(mocker, name: str):
    role = mocker.Mock()
    role.name = name
    return role


def dt(day: int, hour: int = 0) -> datetime:
    return datetime(2026, 5, day, hour, tzinfo=timezone.utc)


def make_event(**overrides):
    data = {
        "id": 1,
        "organizer_id": 7,
        "event_start": dt(20),
        "event_end": dt(21),
        "available_seats": 100,
        "regular_price_cents": 5000,
        "vat_rate": Decimal("1.23"),
        "vat_included": False,
        "free_of_charge": False,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def make_category(**overrides):
    data = {
        "id": 10,
        "event_id": 1,
        "name": "Regular",
        "description": None,
        "inception": dt(1),
        "expiration": dt(20),
        "max_tickets": 10,
        "price_cents": 5000,
        "access_restricted": False,
        "active": True,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def category_factory(start_id: int = 100):
    """Stand-in for categories crud.create_category that hands out increasing ids."""
    ids = count(start_id)

    async def _create(db, data):
        return SimpleNamespace(id=next(ids), **data)

    return _create
