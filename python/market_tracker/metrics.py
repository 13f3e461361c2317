"""
Per-item summary metrics.
"""

from typing import Sequence

import numpy as np

from .data.feeds import Trade
from .results import BucketPoint


def calculate_price_change(points: Sequence[BucketPoint]) -> float:
    """
    Percent change between the first and last bucket average price.

    Returns 0.0 with fewer than two points or a zero first price. A single
    stale first bucket dominates the figure; that is expected.
    """
    if not points or len(points) < 2:
        return 0.0
    first = points[0].avg_price
    last = points[-1].avg_price
    if not first:
        return 0.0
    return (last - first) / first * 100


def calculate_total_quantity(trades: Sequence[Trade]):
    """Sum of quantity over every trade, invalid prices included"""
    return sum(t.quantity or 0 for t in trades)


def calculate_min_price(trades: Sequence[Trade]):
    """Lowest positive price, or 0 when no trade has one"""
    prices = np.array([t.price for t in trades if t.has_valid_price])
    if prices.size == 0:
        return 0
    return prices.min().item()


def calculate_metrics(trades: Sequence[Trade], history_24h: Sequence[BucketPoint]) -> dict:
    """
    Calculate summary metrics for one item.

    Args:
        trades: All trades of the item
        history_24h: Bucket points of the price-change range

    Returns:
        dict with total_quantity, min_price and price_change
    """
    if not trades:
        return {
            'total_quantity': 0,
            'min_price': 0,
            'price_change': 0.0,
        }

    return {
        'total_quantity': calculate_total_quantity(trades),
        'min_price': calculate_min_price(trades),
        'price_change': calculate_price_change(history_24h),
    }
