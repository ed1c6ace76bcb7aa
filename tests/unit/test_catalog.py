"""
Unit tests for MarketCatalog.

Tests TTL caching, shared loads and invalidation.
"""

import asyncio

import pytest

from crossarb.market.catalog import MarketCatalog, split_pair


class TestSplitPair:
    """Tests for split_pair."""

    def test_spot_and_settled_symbols(self) -> None:
        """Test settle suffixes are dropped."""
        assert split_pair("ETH/BTC") == ("ETH", "BTC")
        assert split_pair("BTC/USDT:USDT") == ("BTC", "USDT")


class TestMarketCatalog:
    """Tests for MarketCatalog."""

    @pytest.mark.asyncio
    async def test_ensure_loads_once(self) -> None:
        """Test concurrent callers share one load."""
        catalog = MarketCatalog(ttl_s=60)
        loads = 0

        async def loader() -> frozenset[str]:
            nonlocal loads
            loads += 1
            await asyncio.sleep(0.01)
            return frozenset({"BTC/USDT"})

        results = await asyncio.gather(*(catalog.ensure("binance", loader) for _ in range(5)))

        assert loads == 1
        assert all(result == frozenset({"BTC/USDT"}) for result in results)
        assert catalog.is_listed("binance", "BTC/USDT")
        assert not catalog.is_listed("binance", "ETH/USDT")

    @pytest.mark.asyncio
    async def test_zero_ttl_reloads(self) -> None:
        """Test a zero TTL reloads every time."""
        catalog = MarketCatalog(ttl_s=0)
        loads = 0

        async def loader() -> frozenset[str]:
            nonlocal loads
            loads += 1
            return frozenset({"BTC/USDT"})

        await catalog.ensure("binance", loader)
        await asyncio.sleep(0.001)
        await catalog.ensure("binance", loader)

        assert loads == 2

    def test_invalidate(self) -> None:
        """Test invalidation drops one or all exchanges."""
        catalog = MarketCatalog()
        catalog.update("binance", ["BTC/USDT"])
        catalog.update("kraken", ["BTC/USDT", "ETH/USDT"])

        catalog.invalidate("binance")
        assert catalog.get("binance") is None
        assert catalog.listed_pairs("kraken", ["ETH/USDT", "SOL/USDT"]) == ["ETH/USDT"]

        catalog.invalidate()
        assert len(catalog) == 0

    @pytest.mark.asyncio
    async def test_loader_errors_propagate(self) -> None:
        """Test a failed load caches nothing."""
        catalog = MarketCatalog()

        async def loader() -> frozenset[str]:
            raise RuntimeError("down")

        with pytest.raises(RuntimeError):
            await catalog.ensure("binance", loader)

        assert catalog.get("binance") is None
