"""
Pydantic models for ccxt responses.

ccxt returns loosely typed dicts whose numeric fields may be floats,
strings or None depending on the exchange. These models validate the
parts the monitor relies on and convert them to Decimal and core types.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from crossarb.core.types import OrderBookLevel, RawOrderBook, VenueHealth, WalletStatus
from crossarb.utils.math import to_decimal
from crossarb.utils.time import get_timestamp_ms


def _parse_levels(raw: Any) -> list[tuple[Decimal, Decimal]]:
    """Convert ccxt [price, amount, ...] rows to Decimal pairs, dropping unparseable rows."""
    if raw is None:
        return []
    levels = []
    for row in raw:
        if not isinstance(row, list | tuple) or len(row) < 2:
            continue
        price, size = to_decimal(row[0]), to_decimal(row[1])
        if price is None or size is None:
            continue
        levels.append((price, size))
    return levels


class OrderBookData(BaseModel):
    """Order book from `fetch_order_book`."""

    model_config = ConfigDict(extra="ignore")

    symbol: str | None = None
    bids: list[tuple[Decimal, Decimal]] = Field(default_factory=list)
    asks: list[tuple[Decimal, Decimal]] = Field(default_factory=list)
    timestamp: int | None = None

    @field_validator("bids", "asks", mode="before")
    @classmethod
    def parse_levels(cls, v: Any) -> list[tuple[Decimal, Decimal]]:
        return _parse_levels(v)

    def to_raw(self) -> RawOrderBook:
        """Convert to a sorted core order book."""
        bids = sorted(self.bids, key=lambda level: level[0], reverse=True)
        asks = sorted(self.asks, key=lambda level: level[0])
        return RawOrderBook(
            bids=tuple(OrderBookLevel(price, size) for price, size in bids),
            asks=tuple(OrderBookLevel(price, size) for price, size in asks),
            timestamp_ms=self.timestamp or get_timestamp_ms(),
        )


class NetworkData(BaseModel):
    """One transfer network of a currency."""

    model_config = ConfigDict(extra="ignore")

    network: str | None = None
    active: bool | None = None
    deposit: bool | None = None
    withdraw: bool | None = None
    fee: Decimal | None = None

    @property
    def is_open(self) -> bool:
        """Usable unless the exchange explicitly reports it closed."""
        return self.active is not False and self.deposit is not False and self.withdraw is not False


class CurrencyData(BaseModel):
    """Currency entry from `fetch_currencies`."""

    model_config = ConfigDict(extra="ignore")

    code: str
    active: bool | None = None
    deposit: bool | None = None
    withdraw: bool | None = None
    networks: dict[str, NetworkData] = Field(default_factory=dict)

    @field_validator("networks", mode="before")
    @classmethod
    def parse_networks(cls, v: Any) -> Any:
        return v or {}

    def to_health(self) -> VenueHealth:
        """
        Derive transfer health.

        Both directions closed means disabled. Otherwise an inactive
        currency, a closed direction or every listed network closed means
        maintenance. An open currency without a network breakdown is OK
        with an empty network set, left for the caller to fill in.
        """
        if self.deposit is False and self.withdraw is False:
            return VenueHealth(wallet_status=WalletStatus.DISABLED)
        if self.active is False or self.deposit is False or self.withdraw is False:
            return VenueHealth(wallet_status=WalletStatus.MAINTENANCE)

        networks = frozenset(
            key.upper()
            for key, data in self.networks.items()
            if data.is_open
        )
        if self.networks and not networks:
            return VenueHealth(wallet_status=WalletStatus.MAINTENANCE)
        return VenueHealth(wallet_status=WalletStatus.OK, supported_networks=networks)
