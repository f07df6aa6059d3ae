"""Credit pack catalog reference data

Default packs seeded at startup and the price table used to map a
money amount back to a pack code.
"""

from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Tuple, Union

DEFAULT_CREDIT_PACKS: List[dict] = [
    {"code": "STARTER_20", "name": "Starter Pack", "credits": 20, "price_currency": "USD", "price_value": Decimal("3.00"), "sort": 1},
    {"code": "VALUE_100", "name": "Value Pack", "credits": 100, "price_currency": "USD", "price_value": Decimal("12.00"), "sort": 2},
    {"code": "BUSINESS_500", "name": "Business Pack", "credits": 500, "price_currency": "USD", "price_value": Decimal("50.00"), "sort": 3},
    {"code": "MEGA_1000", "name": "Mega Pack", "credits": 1000, "price_currency": "USD", "price_value": Decimal("80.00"), "sort": 4},
]

# (currency, exact two-decimal string) -> pack code
PACK_PRICE_TABLE: Dict[Tuple[str, str], str] = {
    (pack["price_currency"], f"{pack['price_value']:.2f}"): pack["code"]
    for pack in DEFAULT_CREDIT_PACKS
}

_CENT = Decimal("0.01")


def price_key(currency: str, value: Union[Decimal, str, int]) -> Optional[Tuple[str, str]]:
    """
    Build the lookup key for a money amount

    Returns None when the value is not a decimal number or carries
    sub-cent precision (3.001 never matches 3.00).
    """
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    quantized = amount.quantize(_CENT)
    if quantized != amount:
        return None
    return currency.strip().upper(), f"{quantized:.2f}"


def resolve_pack_from_amount(currency: str, value: Union[Decimal, str, int]) -> Optional[str]:
    """Map a paid amount to the pack code it buys, or None if unknown"""
    key = price_key(currency, value)
    if key is None:
        return None
    return PACK_PRICE_TABLE.get(key)
