import pytest
from decimal import Decimal
from app.services.pricing_service import evaluate_price, stored_vat_rate


@pytest.mark.parametrize("price, vat_rate, vat_included, free_of_charge, expected", [
    (12300, Decimal("1.23"), True, False, 10000),
    (12300, Decimal("1.23"), False, False, 12300),
    (12300, Decimal("1.23"), True, True, 0),
    (12300, Decimal("1.23"), False, True, 0),
    (100, Decimal("1.23"), True, False, 81),
    (5, Decimal("2.00"), True, False, 3),
    (1, Decimal("1.50"), True, False, 1),
    (0, Decimal("1.08"), True, False, 0),
])
def test_evaluate_price(price, vat_rate, vat_included, free_of_charge, expected):
    assert evaluate_price(price, vat_rate, vat_included, free_of_charge) == expected


def test_evaluate_price_returns_int():
    assert isinstance(evaluate_price(999, Decimal("1.23"), True, False), int)


def test_stored_vat_rate_is_neutral_for_free_events():
    assert stored_vat_rate(Decimal("1.23"), True) == Decimal("1.00")
    assert stored_vat_rate(Decimal("1.23"), False) == Decimal("1.23")

