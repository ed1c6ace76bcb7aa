"""
In-memory trade log.

Keeps executed, failed and simulated trades for the dashboard and the
logs endpoint. Records are immutable once written.
"""

import itertools
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal

from crossarb.core.types import Opportunity, TradeRecord, TradeStatus
from crossarb.utils.math import ZERO, format_fixed
from crossarb.utils.time import utc_now


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class DashboardStats:
    """Aggregates shown on the dashboard."""

    total_profit: Decimal
    trades_today: int
    total_trades: int

    def to_dict(self) -> dict[str, object]:
        return {
            "total_profit": format_fixed(self.total_profit, 2),
            "trades_today": self.trades_today,
            "total_trades": self.total_trades,
        }


class InMemoryTradeLog:
    """
    Append-only trade log held in process memory.

    Features:
    - Monotonic record ids
    - Newest-first listing with optional status filter
    - Dashboard aggregates (total profit, trades since UTC midnight)
    """

    def __init__(self, max_records: int = 10_000) -> None:
        """
        Initialize empty log.

        Args:
            max_records: Oldest records are dropped beyond this count.
        """
        self._records: list[TradeRecord] = []
        self._ids = itertools.count(1)
        self._max_records = max_records
        self._lock = threading.Lock()

    def record(
        self,
        pair: str,
        buy_exchange: str,
        sell_exchange: str,
        amount: Decimal,
        buy_price: Decimal,
        sell_price: Decimal,
        profit_quote: Decimal,
        profit_percentage: Decimal,
        status: TradeStatus,
        risk_score: int = 0,
        analysis_summary: str = "",
        executed_at: datetime | None = None,
    ) -> TradeRecord:
        """
        Append a trade.

        Returns:
            Stored TradeRecord with its assigned id.
        """
        with self._lock:
            record = TradeRecord(
                id=next(self._ids),
                pair=pair,
                buy_exchange=buy_exchange,
                sell_exchange=sell_exchange,
                amount=amount,
                buy_price=buy_price,
                sell_price=sell_price,
                profit_quote=profit_quote,
                profit_percentage=profit_percentage,
                status=status,
                risk_score=risk_score,
                analysis_summary=analysis_summary,
                executed_at=executed_at or utc_now(),
            )
            self._records.append(record)
            if len(self._records) > self._max_records:
                del self._records[: len(self._records) - self._max_records]

        logger.info(
            f"Trade #{record.id} {record.status.value}: {pair} "
            f"{buy_exchange}->{sell_exchange} profit={format_fixed(profit_quote, 4)}"
        )
        return record

    def record_opportunity(self, opportunity: Opportunity) -> TradeRecord:
        """Store an opportunity as a simulated trade."""
        summary = (
            f"{opportunity.recommendation_tier.value}: {opportunity.recommendation} "
            f"Network {opportunity.common_network}, fees {format_fixed(opportunity.total_fees_quote, 4)}."
        )
        return self.record(
            pair=opportunity.pair,
            buy_exchange=opportunity.buy_exchange,
            sell_exchange=opportunity.sell_exchange,
            amount=opportunity.trade_amount_quote,
            buy_price=opportunity.buy_vwap,
            sell_price=opportunity.sell_vwap,
            profit_quote=opportunity.expected_profit_quote,
            profit_percentage=opportunity.net_profit_pct,
            status=TradeStatus.SIMULATED,
            risk_score=opportunity.risk_score,
            analysis_summary=summary,
        )

    def list(self, limit: int | None = None, status: TradeStatus | None = None) -> list[TradeRecord]:
        """
        Get records newest first.

        Args:
            limit: Maximum records to return.
            status: Only records with this status.
        """
        with self._lock:
            records = list(reversed(self._records))
        if status is not None:
            records = [r for r in records if r.status == status]
        return records[:limit] if limit is not None else records

    def get(self, record_id: int) -> TradeRecord | None:
        """Look up a record by id."""
        with self._lock:
            for record in self._records:
                if record.id == record_id:
                    return record
        return None

    def dashboard_stats(self, now: datetime | None = None) -> DashboardStats:
        """
        Compute dashboard aggregates.

        Failed trades contribute no profit. "Today" starts at UTC midnight.
        """
        now = now or utc_now()
        midnight = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)

        with self._lock:
            records = list(self._records)

        total_profit = sum(
            (r.profit_quote for r in records if r.status != TradeStatus.FAILED),
            ZERO,
        )
        trades_today = sum(1 for r in records if r.executed_at >= midnight)
        return DashboardStats(
            total_profit=total_profit,
            trades_today=trades_today,
            total_trades=len(records),
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
