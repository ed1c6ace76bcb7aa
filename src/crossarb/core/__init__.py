"""Core module containing the scan engine, event bus, errors and type definitions."""

from crossarb.core.errors import (
    CrossArbError,
    FailureKind,
    IntentValidationError,
    NoVenuesAvailableError,
    PairNotListedError,
    ScanTimeoutError,
    SnapshotMismatchError,
    TransientVenueError,
    VenueAccessBlockedError,
    VenueAuthError,
    VenueError,
)
from crossarb.core.event_bus import Event, EventBus, EventType
from crossarb.core.types import (
    ExchangeProfile,
    Opportunity,
    OpportunityStatus,
    OrderBookLevel,
    OrderBookSnapshot,
    RecommendationTier,
    SnapshotSet,
    TradeIntent,
    TradeRecord,
    TradeStatus,
    VenueFailure,
    VenueHealth,
    WalletStatus,
)


__all__ = [
    "CrossArbError",
    "Event",
    "EventBus",
    "EventType",
    "ExchangeProfile",
    "FailureKind",
    "IntentValidationError",
    "NoVenuesAvailableError",
    "Opportunity",
    "OpportunityStatus",
    "OrderBookLevel",
    "OrderBookSnapshot",
    "PairNotListedError",
    "RecommendationTier",
    "ScanTimeoutError",
    "SnapshotMismatchError",
    "SnapshotSet",
    "TradeIntent",
    "TradeRecord",
    "TradeStatus",
    "TransientVenueError",
    "VenueAccessBlockedError",
    "VenueAuthError",
    "VenueError",
    "VenueFailure",
    "VenueHealth",
    "WalletStatus",
]
