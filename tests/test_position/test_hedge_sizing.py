"""Tests for calculate_hedge_sizes.

All test cases use exact Decimal values.
"""

from decimal import Decimal

import pytest

from carry.exceptions import InvalidPriceError
from carry.position.sizing import calculate_hedge_sizes


class TestCalculateHedgeSizes:
    def test_levered_perp_leg(self) -> None:
        """10,000 USDC at 2,000 with 3x: 5 spot, 15 perp."""
        target = calculate_hedge_sizes(
            quote_amount=Decimal("10000"),
            price=Decimal("2000"),
            leverage=Decimal("3"),
        )
        assert target.spot_size == Decimal("5")
        assert target.perp_size == Decimal("15")

    def test_unlevered_legs_match(self) -> None:
        target = calculate_hedge_sizes(Decimal("1500"), Decimal("3000"))
        assert target.spot_size == Decimal("0.5")
        assert target.perp_size == Decimal("0.5")

    def test_hedge_ratio_scales_both_legs(self) -> None:
        target = calculate_hedge_sizes(
            Decimal("10000"), Decimal("2000"), Decimal("2"), hedge_ratio=Decimal("0.5")
        )
        assert target.spot_size == Decimal("2.5")
        assert target.perp_size == Decimal("5")

    @pytest.mark.parametrize("quote", ["0", "-100", "NaN", "Infinity"])
    def test_nothing_to_deploy(self, quote: str) -> None:
        target = calculate_hedge_sizes(Decimal(quote), Decimal("2000"), Decimal("3"))
        assert target.spot_size == Decimal("0")
        assert target.perp_size == Decimal("0")

    @pytest.mark.parametrize("price", ["0", "-1", "NaN", "Infinity"])
    def test_invalid_price_raises(self, price: str) -> None:
        with pytest.raises(InvalidPriceError):
            calculate_hedge_sizes(Decimal("10000"), Decimal(price))
