#!/usr/bin/env python3
"""
Latency Benchmark Script.

Measures internal latencies of the evaluation path: VWAP walks, pairwise
evaluation across venues and a full aggregation cycle over in-memory books.
"""

import asyncio
import statistics
import sys
from decimal import Decimal
from pathlib import Path

# Add src to path for direct execution
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from crossarb.core.types import (
    OrderBookLevel,
    OrderBookSnapshot,
    RawOrderBook,
    TradeIntent,
    VenueHealth,
    WalletStatus,
)
from crossarb.market.aggregator import MarketDataAggregator
from crossarb.strategy.evaluator import OpportunityEvaluator, sort_by_profit
from crossarb.strategy.vwap import estimate_vwap
from crossarb.utils.time import format_duration_us, get_timestamp_ms, get_timestamp_us


EXCHANGES = ("binance", "bybit", "kraken", "kucoin", "okx")
PAIRS = ("BTC/USDT", "ETH/USDT", "SOL/USDT")
HEALTHY = VenueHealth(WalletStatus.OK, frozenset({"TRC20", "ERC20"}))


def build_levels(start: Decimal, step: Decimal, count: int = 100) -> tuple[OrderBookLevel, ...]:
    """Build a ladder of levels with 0.5 base units each."""
    return tuple(OrderBookLevel(start + step * i, Decimal("0.5")) for i in range(count))


def build_book(offset: int) -> RawOrderBook:
    mid = Decimal(50000 + offset * 10)
    return RawOrderBook(
        bids=build_levels(mid - 1, Decimal("-1")),
        asks=build_levels(mid + 1, Decimal("1")),
        timestamp_ms=get_timestamp_ms(),
    )


class InMemoryGateway:
    """Gateway answering every call from prebuilt books."""

    def __init__(self) -> None:
        self._books = {exchange: build_book(i) for i, exchange in enumerate(EXCHANGES)}

    async def load_markets(self, exchange: str) -> frozenset[str]:
        return frozenset(PAIRS)

    async def fetch_order_book(self, exchange: str, pair: str, depth: int) -> RawOrderBook:
        return self._books[exchange]

    async def fetch_currency_status(self, exchange: str) -> dict[str, VenueHealth]:
        return {pair.split("/")[0]: HEALTHY for pair in PAIRS}

    async def close(self) -> None:
        pass


def summarize(latencies: list[int]) -> dict[str, float]:
    return {
        "min": min(latencies),
        "max": max(latencies),
        "avg": statistics.mean(latencies),
        "p50": statistics.median(latencies),
        "p99": sorted(latencies)[int(len(latencies) * 0.99)],
    }


def benchmark_vwap(iterations: int = 10000) -> dict[str, float]:
    """Benchmark a VWAP walk through a 100-level book."""
    asks = build_levels(Decimal(50001), Decimal(1))
    target = Decimal("1000000")
    latencies: list[int] = []

    for _ in range(iterations):
        start = get_timestamp_us()
        estimate_vwap(asks, target)
        latencies.append(get_timestamp_us() - start)

    return summarize(latencies)


def benchmark_evaluation(iterations: int = 1000) -> dict[str, float]:
    """Benchmark pairwise evaluation of five venues on three pairs."""
    evaluator = OpportunityEvaluator()
    intent = TradeIntent(
        trade_amount_quote=Decimal("10000"),
        min_profit_percentage=Decimal("0.1"),
        risk_percentage=Decimal("1"),
        risk_reward_ratio=Decimal("2"),
    )
    snapshots = {}
    for i, exchange in enumerate(EXCHANGES):
        book = build_book(i)
        for pair in PAIRS:
            snapshots[(exchange, pair)] = OrderBookSnapshot(
                exchange=exchange,
                pair=pair,
                bids=book.bids,
                asks=book.asks,
                captured_at_ms=book.timestamp_ms,
                health=HEALTHY,
                cycle_id=1,
            )

    latencies: list[int] = []

    for _ in range(iterations):
        start = get_timestamp_us()
        sort_by_profit(evaluator.evaluate(PAIRS, snapshots, {}, intent))
        latencies.append(get_timestamp_us() - start)

    return summarize(latencies)


async def benchmark_aggregation(iterations: int = 500) -> dict[str, float]:
    """Benchmark one aggregation cycle over in-memory venues."""
    aggregator = MarketDataAggregator(gateway=InMemoryGateway())
    latencies: list[int] = []

    for _ in range(iterations):
        start = get_timestamp_us()
        await aggregator.fetch_snapshots(EXCHANGES, PAIRS)
        latencies.append(get_timestamp_us() - start)

    return summarize(latencies)


def format_stats(stats: dict[str, float]) -> str:
    """Format stats for display."""
    return (
        f"min={format_duration_us(int(stats['min']))}, "
        f"avg={format_duration_us(int(stats['avg']))}, "
        f"p50={format_duration_us(int(stats['p50']))}, "
        f"p99={format_duration_us(int(stats['p99']))}, "
        f"max={format_duration_us(int(stats['max']))}"
    )


def main() -> int:
    """Run all benchmarks."""
    print("=" * 70)
    print("  LATENCY BENCHMARK")
    print("=" * 70)
    print()

    # Warm up
    print("Warming up...")
    benchmark_vwap(100)
    benchmark_evaluation(10)
    asyncio.run(benchmark_aggregation(10))
    print()

    print("Running benchmarks...")
    print()

    print("1. VWAP Walk, 100 levels (10,000 iterations)")
    print(f"   {format_stats(benchmark_vwap(10000))}")
    print()

    print("2. Evaluation, 5 venues x 3 pairs (1,000 iterations)")
    print(f"   {format_stats(benchmark_evaluation(1000))}")
    print()

    print("3. Aggregation Cycle, in-memory venues (500 iterations)")
    print(f"   {format_stats(asyncio.run(benchmark_aggregation(500)))}")
    print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
