"""Market data module: listed-pair catalog and concurrent order-book aggregation."""

from crossarb.market.aggregator import MarketDataAggregator
from crossarb.market.catalog import MarketCatalog, split_pair


__all__ = [
    "MarketCatalog",
    "MarketDataAggregator",
    "split_pair",
]
