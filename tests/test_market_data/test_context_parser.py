"""Tests for parse_market_contexts."""

from decimal import Decimal

import pytest

from carry.exceptions import MarketDataError
from carry.market_data.parser import parse_market_contexts

RAW_RESPONSE = [
    {
        "universe": [
            {"name": "BTC", "szDecimals": 5, "maxLeverage": 40},
            {"name": "eth", "szDecimals": 4, "maxLeverage": "25x"},
            {"name": "OLD", "szDecimals": 0, "maxLeverage": 3, "isDelisted": True},
            {"name": "", "maxLeverage": 5},
            {"name": "SOL", "maxLeverage": "n/a"},
        ]
    },
    [
        {
            "funding": "0.0000125",
            "openInterest": "25000.5",
            "markPx": "61000.0",
            "oraclePx": "60990.0",
            "dayNtlVlm": "1500000000.0",
            "premium": "0.00016",
        },
        {
            "funding": "-0.00002",
            "openInterest": "300000",
            "markPx": "3000.1",
            "oraclePx": "3000.0",
            "dayNtlVlm": "800000000",
            "premium": "-0.0001",
        },
        {"funding": "0.01", "markPx": "1"},
        {"funding": "0.01", "markPx": "1"},
        {"funding": None, "markPx": "bad"},
    ],
]


class TestParseMarketContexts:
    def test_zips_universe_with_contexts(self) -> None:
        snapshots = parse_market_contexts(RAW_RESPONSE)
        by_base = {s.base: s for s in snapshots}

        btc = by_base["BTC"]
        assert btc.pair == "BTC-USD"
        assert btc.funding_rate == Decimal("0.0000125")
        assert btc.mark_price == Decimal("61000.0")
        assert btc.oracle_price == Decimal("60990.0")
        assert btc.open_interest == Decimal("25000.5")
        assert btc.volume_24h == Decimal("1500000000.0")
        assert btc.premium == Decimal("0.00016")
        assert btc.max_leverage == Decimal("40")
        assert btc.funding_interval_hours == 1

    def test_base_upper_cased_and_leverage_suffix_stripped(self) -> None:
        snapshots = parse_market_contexts(RAW_RESPONSE)
        eth = next(s for s in snapshots if s.base == "ETH")
        assert eth.pair == "ETH-USD"
        assert eth.max_leverage == Decimal("25")

    def test_skips_delisted_and_unnamed(self) -> None:
        bases = [s.base for s in parse_market_contexts(RAW_RESPONSE)]
        assert bases == ["BTC", "ETH", "SOL"]

    def test_unparsable_fields_default(self) -> None:
        sol = next(s for s in parse_market_contexts(RAW_RESPONSE) if s.base == "SOL")
        assert sol.funding_rate == Decimal("0")
        assert sol.mark_price == Decimal("0")
        assert sol.volume_24h == Decimal("0")
        assert sol.max_leverage.is_nan()

    def test_every_row_scored(self) -> None:
        for snapshot in parse_market_contexts(RAW_RESPONSE):
            assert snapshot.score is not None
            assert Decimal("0") <= snapshot.score <= Decimal("10")

    def test_missing_context_row_defaults_to_zero(self) -> None:
        raw = [{"universe": [{"name": "HYPE", "maxLeverage": 10}]}, []]
        [hype] = parse_market_contexts(raw)
        assert hype.funding_rate == Decimal("0")
        assert hype.mark_price == Decimal("0")

    def test_empty_universe(self) -> None:
        assert parse_market_contexts([{"universe": []}, []]) == []

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            {},
            [],
            [{"universe": []}],
            ["meta", []],
            [{"universe": "BTC"}, []],
            [{"universe": []}, {"ctx": 1}],
        ],
    )
    def test_malformed_shape_raises(self, raw: object) -> None:
        with pytest.raises(MarketDataError):
            parse_market_contexts(raw)
