"""Unit tests for the credit pack catalog"""

import pytest
from decimal import Decimal

from src.domain.pack_catalog import DEFAULT_CREDIT_PACKS, PACK_PRICE_TABLE, resolve_pack_from_amount


class TestDefaultPacks:
    def test_default_catalog(self):
        catalog = {pack["code"]: (pack["credits"], pack["price_value"]) for pack in DEFAULT_CREDIT_PACKS}

        assert catalog == {
            "STARTER_20": (20, Decimal("3.00")),
            "VALUE_100": (100, Decimal("12.00")),
            "BUSINESS_500": (500, Decimal("50.00")),
            "MEGA_1000": (1000, Decimal("80.00")),
        }

    def test_price_table_is_keyed_by_exact_two_decimals(self):
        assert PACK_PRICE_TABLE[("USD", "3.00")] == "STARTER_20"


class TestResolvePackFromAmount:
    @pytest.mark.parametrize(
        "currency,value,expected",
        [
            ("USD", "3.00", "STARTER_20"),
            ("usd", 3, "STARTER_20"),
            ("USD", Decimal("12"), "VALUE_100"),
            ("USD", "80.0", "MEGA_1000"),
            ("USD", "3.001", None),
            ("USD", "4.00", None),
            ("EUR", "3.00", None),
            ("USD", "abc", None),
            ("USD", "-3.00", None),
        ],
    )
    def test_resolve(self, currency, value, expected):
        assert resolve_pack_from_amount(currency, value) == expected
