"""
Cross-exchange opportunity evaluation.

For every pair, compares each exchange's ask-side VWAP against every other
exchange's bid-side VWAP for the simulated notional, subtracts trading and
transfer costs, and scores what is left. Evaluation is a pure function of
its inputs: the same snapshots, profiles and intent always produce the
same opportunities in the same order.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

from crossarb.config.constants import PREFERRED_NETWORKS
from crossarb.core.errors import SnapshotMismatchError
from crossarb.core.types import (
    ExchangeProfile,
    Opportunity,
    OpportunityStatus,
    OrderBookSnapshot,
    TradeIntent,
)
from crossarb.strategy.fees import FeeModel, ResolvedFees, compute_costs
from crossarb.strategy.risk import RiskScorer
from crossarb.strategy.vwap import estimate_vwap
from crossarb.utils.math import ZERO, is_usable, percent_of


logger = logging.getLogger(__name__)


def select_common_network(
    buy_networks: frozenset[str],
    sell_networks: frozenset[str],
    preferred: Sequence[str] = PREFERRED_NETWORKS,
) -> str | None:
    """
    Pick the transfer network shared by two venues.

    Args:
        buy_networks: Networks the buy venue can withdraw on.
        sell_networks: Networks the sell venue can deposit on.
        preferred: Tie-break order, cheapest first.

    Returns:
        First shared network in preferred order, else the alphabetically
        first shared network, or None if the venues share nothing.

    Example:
        >>> select_common_network(frozenset({"ERC20", "TRC20"}), frozenset({"ERC20", "TRC20"}))
        'TRC20'
    """
    shared = buy_networks & sell_networks
    if not shared:
        return None
    for network in preferred:
        if network in shared:
            return network
    return min(shared)


def sort_by_profit(opportunities: Iterable[Opportunity]) -> list[Opportunity]:
    """Order opportunities by net profit, best first."""
    return sorted(opportunities, key=lambda o: o.net_profit_pct, reverse=True)


class OpportunityEvaluator:
    """
    Turns one cycle of snapshots into scored opportunities.

    Collaborators are injected so fee defaults, risk thresholds and
    network preferences all come from settings.
    """

    __slots__ = ("_fee_model", "_risk_scorer", "_preferred_networks")

    def __init__(
        self,
        fee_model: FeeModel | None = None,
        risk_scorer: RiskScorer | None = None,
        preferred_networks: Sequence[str] = PREFERRED_NETWORKS,
    ) -> None:
        self._fee_model = fee_model or FeeModel()
        self._risk_scorer = risk_scorer or RiskScorer()
        self._preferred_networks = tuple(preferred_networks)

    def evaluate(
        self,
        pairs: Iterable[str],
        snapshots: Mapping[tuple[str, str], OrderBookSnapshot],
        profiles: Mapping[str, ExchangeProfile],
        intent: TradeIntent,
    ) -> list[Opportunity]:
        """
        Evaluate all exchange combinations for the given pairs.

        Args:
            pairs: Pairs to evaluate. Ignored when the intent names a pair.
            snapshots: Snapshots keyed by (exchange, pair), all from one cycle.
            profiles: Fee profiles keyed by exchange. May be incomplete.
            intent: Validated trade parameters.

        Returns:
            Opportunities in discovery order (pairs, then buy and sell
            exchanges, each sorted).

        Raises:
            SnapshotMismatchError: If one pair mixes snapshots of different cycles.
        """
        targets = [intent.pair] if intent.pair else sorted(set(pairs))

        by_pair: dict[str, dict[str, OrderBookSnapshot]] = {pair: {} for pair in targets}
        for (exchange, pair), snapshot in snapshots.items():
            if pair in by_pair:
                by_pair[pair][exchange] = snapshot

        fees_cache: dict[str, ResolvedFees] = {}
        opportunities: list[Opportunity] = []

        for pair in targets:
            books = self._qualifying_books(pair, by_pair[pair])
            if len(books) < 2:
                continue

            for buy_exchange in sorted(books):
                for sell_exchange in sorted(books):
                    if buy_exchange == sell_exchange:
                        continue
                    opportunity = self._evaluate_candidate(
                        books[buy_exchange],
                        books[sell_exchange],
                        self._fees_for(buy_exchange, profiles, fees_cache),
                        self._fees_for(sell_exchange, profiles, fees_cache),
                        intent,
                    )
                    if opportunity is not None:
                        opportunities.append(opportunity)

        return opportunities

    def _qualifying_books(
        self,
        pair: str,
        books: dict[str, OrderBookSnapshot],
    ) -> dict[str, OrderBookSnapshot]:
        cycle_ids = {snapshot.cycle_id for snapshot in books.values()}
        if len(cycle_ids) > 1:
            raise SnapshotMismatchError(pair, cycle_ids)

        qualifying: dict[str, OrderBookSnapshot] = {}
        for exchange, snapshot in books.items():
            if not snapshot.has_liquidity:
                continue
            if snapshot.is_crossed:
                logger.warning(
                    f"{exchange} {pair}: crossed book "
                    f"(bid {snapshot.best_bid} > ask {snapshot.best_ask}), skipping"
                )
                continue
            qualifying[exchange] = snapshot
        return qualifying

    def _fees_for(
        self,
        exchange: str,
        profiles: Mapping[str, ExchangeProfile],
        cache: dict[str, ResolvedFees],
    ) -> ResolvedFees:
        if exchange not in cache:
            cache[exchange] = self._fee_model.resolve(exchange, profiles.get(exchange))
        return cache[exchange]

    def _evaluate_candidate(
        self,
        buy: OrderBookSnapshot,
        sell: OrderBookSnapshot,
        buy_fees: ResolvedFees,
        sell_fees: ResolvedFees,
        intent: TradeIntent,
    ) -> Opportunity | None:
        amount = intent.trade_amount_quote

        buy_vwap = estimate_vwap(buy.asks, amount)
        sell_vwap = estimate_vwap(sell.bids, amount)
        if not is_usable(buy_vwap) or not is_usable(sell_vwap):
            logger.debug(
                f"{buy.pair} {buy.exchange}->{sell.exchange}: "
                f"unusable VWAP (buy={buy_vwap}, sell={sell_vwap})"
            )
            return None

        if sell_vwap <= buy_vwap:
            return None

        wallets_healthy = buy.health.is_healthy and sell.health.is_healthy
        if not wallets_healthy:
            return None

        network = select_common_network(
            buy.health.supported_networks,
            sell.health.supported_networks,
            self._preferred_networks,
        )
        if network is None:
            return None

        # Transfer leaves the buy venue, so its withdrawal fee applies
        total_fees = compute_costs(
            trade_amount_quote=amount,
            buy_taker_fee=buy_fees.taker_fee,
            sell_taker_fee=sell_fees.taker_fee,
            withdrawal_fee_quote=buy_fees.withdrawal_fee_quote,
            buy_vwap=buy_vwap,
            sell_vwap=sell_vwap,
        )
        net_profit = (sell_vwap - buy_vwap) * (amount / buy_vwap) - total_fees
        if net_profit < ZERO:
            return None

        net_profit_pct = percent_of(net_profit, amount)
        book_spread_pct = max(buy.spread_pct, sell.spread_pct)
        assessment = self._risk_scorer.score(
            book_spread_pct=book_spread_pct,
            net_profit_quote=net_profit,
            trade_amount_quote=amount,
            wallets_healthy=wallets_healthy,
        )

        status = (
            OpportunityStatus.AVAILABLE
            if net_profit_pct >= intent.min_profit_percentage
            else OpportunityStatus.ANALYZING
        )

        return Opportunity(
            pair=buy.pair,
            buy_exchange=buy.exchange,
            sell_exchange=sell.exchange,
            buy_vwap=buy_vwap,
            sell_vwap=sell_vwap,
            gross_spread_pct=percent_of(sell_vwap - buy_vwap, buy_vwap),
            fees_pct=percent_of(total_fees, amount),
            net_profit_pct=net_profit_pct,
            expected_profit_quote=net_profit,
            risk_score=assessment.score,
            recommendation_tier=assessment.tier,
            status=status,
            common_network=network,
            trade_amount_quote=amount,
            total_fees_quote=total_fees,
            cycle_id=buy.cycle_id,
            defaults_applied=_defaults_applied(buy_fees, sell_fees),
        )


def _defaults_applied(buy_fees: ResolvedFees, sell_fees: ResolvedFees) -> frozenset[str]:
    applied = set()
    if "taker_fee" in buy_fees.defaults_applied:
        applied.add(f"{buy_fees.exchange}.taker_fee")
    if "withdrawal_fee" in buy_fees.defaults_applied:
        applied.add(f"{buy_fees.exchange}.withdrawal_fee")
    if "taker_fee" in sell_fees.defaults_applied:
        applied.add(f"{sell_fees.exchange}.taker_fee")
    return frozenset(applied)
