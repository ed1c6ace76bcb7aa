"""
Exception hierarchy for the arbitrage monitor.

Venue and pair level errors are contained by the aggregator and never
reach callers. Only malformed intents, snapshot mismatches, total venue
loss and scan timeouts propagate out of a scan.
"""

from enum import Enum


class FailureKind(str, Enum):
    """Classification of a venue failure."""

    TRANSIENT = "transient"
    AUTH = "auth"
    ACCESS_BLOCKED = "access_blocked"
    NOT_LISTED = "not_listed"
    DATA_ANOMALY = "data_anomaly"


class CrossArbError(Exception):
    """Base class for all monitor errors."""

    code: str = "crossarb_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# =============================================================================
# Venue Errors
# =============================================================================


class VenueError(CrossArbError):
    """Error raised while talking to a single exchange."""

    code = "venue_error"
    kind: FailureKind = FailureKind.TRANSIENT

    def __init__(
        self,
        exchange: str,
        message: str,
        pair: str | None = None,
        kind: FailureKind | None = None,
    ) -> None:
        super().__init__(message)
        self.exchange = exchange
        self.pair = pair
        if kind is not None:
            self.kind = kind

    def __str__(self) -> str:
        where = f"{self.exchange}:{self.pair}" if self.pair else self.exchange
        return f"[{self.kind.value}] {where}: {self.message}"


class TransientVenueError(VenueError):
    """Timeout, rate limit or temporary outage. Retry next cycle."""

    code = "venue_transient"
    kind = FailureKind.TRANSIENT


class VenueAuthError(VenueError):
    """Invalid or rejected credentials. Needs operator attention."""

    code = "venue_auth"
    kind = FailureKind.AUTH


class VenueAccessBlockedError(VenueError):
    """Geographic or firewall block on the exchange side."""

    code = "venue_access_blocked"
    kind = FailureKind.ACCESS_BLOCKED


class PairNotListedError(VenueError):
    """The exchange does not list the requested pair."""

    code = "pair_not_listed"
    kind = FailureKind.NOT_LISTED


# =============================================================================
# Request Errors
# =============================================================================


class IntentValidationError(CrossArbError, ValueError):
    """Trade intent parameters are out of range."""

    code = "invalid_intent"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class SnapshotMismatchError(CrossArbError):
    """Snapshots from different cycles were mixed for one pair."""

    code = "snapshot_mismatch"

    def __init__(self, pair: str, cycle_ids: set[int]) -> None:
        super().__init__(f"Snapshots for {pair} span cycles {sorted(cycle_ids)}")
        self.pair = pair
        self.cycle_ids = frozenset(cycle_ids)


class NoVenuesAvailableError(CrossArbError):
    """No exchange could be reached during a cycle."""

    code = "no_venues"


class ScanTimeoutError(CrossArbError):
    """A complete scan did not finish within its deadline."""

    code = "scan_timeout"

    def __init__(self, timeout_s: float) -> None:
        super().__init__(f"Scan did not complete within {timeout_s:.1f}s")
        self.timeout_s = timeout_s
