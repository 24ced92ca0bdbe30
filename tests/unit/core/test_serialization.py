from datetime import datetime, timezone
from decimal import Decimal
from app.core.utils.serialization import normalize, normalize_ctx


def test_normalize_ctx_keeps_scalars_and_stringifies_the_rest():
    ctx = normalize_ctx({
        "category_id": 3,
        "name": "VIP",
        "restricted": True,
        "missing": None,
        "vat_rate": Decimal("1.23"),
        "expiration": datetime(2026, 5, 20, 18, tzinfo=timezone.utc),
        "ids": (1, 2),
    })

    assert ctx == {
        "category_id": 3,
        "name": "VIP",
        "restricted": True,
        "missing": None,
        "vat_rate": "1.23",
        "expiration": "2026-05-20T18:00:00+00:00",
        "ids": [1, 2],
    }


def test_normalize_nested_sequence():
    assert normalize([Decimal("1.5"), [None]]) == ["1.5", [None]]
