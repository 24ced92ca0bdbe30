from decimal import Decimal, ROUND_HALF_UP

UNIT = Decimal("1")


def evaluate_price(price_cents: int, vat_rate: Decimal, vat_included: bool, free_of_charge: bool) -> int:
    """
    Charged unit price for a nominal price:
    - free of charge always costs 0
    - VAT not included: the nominal price is already net, VAT is added at checkout
    - VAT included: strip the VAT share, rounded half-up to the minor unit
    """
    if free_of_charge:
        return 0
    if not vat_included:
        return price_cents
    return int((Decimal(price_cents) / Decimal(vat_rate)).quantize(UNIT, rounding=ROUND_HALF_UP))


def stored_vat_rate(vat_rate: Decimal, free_of_charge: bool) -> Decimal:
    return Decimal("1.00") if free_of_charge else vat_rate
