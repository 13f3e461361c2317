"""
Item aggregation.

Groups trades by item and builds one ItemAggregate per item: bucketed
history for every catalog range plus summary fields.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .config import EngineConfig
from .data.bucketizer import bucketize
from .data.feeds import Trade
from .metrics import calculate_metrics
from .results import ItemAggregate, Listing

logger = logging.getLogger(__name__)


def group_trades_by_item(trades: Iterable[Trade]) -> Dict[str, List[Trade]]:
    """
    Group trades by item_name, dropping trades without one.

    Keys keep the order in which items first appear.
    """
    groups: Dict[str, List[Trade]] = {}
    for trade in trades:
        if not trade.item_name:
            continue
        groups.setdefault(trade.item_name, []).append(trade)
    return groups


def _chronological_key(trade: Trade):
    # Undated trades sort first so they never count as the most recent
    return (trade.created_at_ms is not None, trade.created_at_ms or 0)


def build_listings(
    ordered: Sequence[Trade],
    limit: int,
    default_currency: str,
    default_seller: str,
) -> List[Listing]:
    """Most recent `limit` trades, newest first."""
    if limit <= 0:
        return []
    return [
        Listing(
            seller=t.seller_name or default_seller,
            currency=t.currency or default_currency,
            price_per_unit=t.price or 0,
            quantity=t.quantity or 0,
        )
        for t in reversed(ordered[-limit:])
    ]


def build_history(
    trades: Sequence[Trade],
    now_ms: int,
    config: EngineConfig,
) -> Dict[str, list]:
    """Bucketize one item's trades over every configured range."""
    return {
        range_id: bucketize(
            trades,
            range_id,
            now_ms=now_ms,
            ranges=config.ranges,
            tz=config.label_timezone,
        )
        for range_id in config.ranges
    }


def aggregate_item(
    name: str,
    trades: Sequence[Trade],
    now_ms: int,
    config: EngineConfig,
) -> ItemAggregate:
    ordered = sorted(trades, key=_chronological_key)
    history = build_history(trades, now_ms, config)
    metrics = calculate_metrics(trades, history.get(config.price_change_range, []))

    return ItemAggregate(
        id=name,
        name=name,
        total_quantity=metrics['total_quantity'],
        min_price=metrics['min_price'],
        currency=ordered[-1].currency or config.default_currency,
        price_change=metrics['price_change'],
        listings=build_listings(
            ordered, config.max_listings, config.default_currency, config.default_seller
        ),
        trade_history=history,
    )


def aggregate(
    trades: Iterable[Union[Trade, Mapping[str, Any]]],
    now_ms: Optional[int] = None,
    config: Optional[EngineConfig] = None,
) -> List[ItemAggregate]:
    """
    Build per-item market summaries.

    Args:
        trades: Trade objects or raw trade mappings. Summary totals cover
            exactly these trades, so partition by currency first.
        now_ms: Current time in epoch ms; the configured clock is read once
            when None and shared by every range of every item
        config: Engine configuration (defaults to EngineConfig())

    Returns:
        One ItemAggregate per distinct item name, in first-appearance order
    """
    config = config or EngineConfig()
    trades = [config.to_trade(t) for t in trades]
    if not trades:
        return []

    now = config.clock() if now_ms is None else now_ms
    groups = group_trades_by_item(trades)
    items = [aggregate_item(name, group, now, config) for name, group in groups.items()]

    logger.debug("Aggregated %d trades into %d items", len(trades), len(items))
    return items
