"""
Demo trade generation.

Produces a plausible week of trades for offline display when the real data
source is empty or unreachable.
"""

from typing import List, Optional

import numpy as np
import pandas as pd

from ..data.bucketizer import current_time_ms
from ..data.feeds import Trade
from ..ranges import HOUR_MS

DEMO_ITEMS = ['Demo Item 1', 'Demo Item 2', 'Demo Item 3', 'Demo Item 4', 'Demo Item 5']
DEMO_CURRENCIES = ['Adena', 'MasterCoin']
DEMO_LOOKBACK_HOURS = 168  # 7 days


def generate_demo_trades(
    num_trades: int = 150,
    now_ms: Optional[int] = None,
    seed: Optional[int] = None,
) -> List[Trade]:
    """
    Generate random trades spread over the last 7 days.

    Args:
        num_trades: Number of trades to generate
        now_ms: Reference time in epoch ms (defaults to the current time)
        seed: Random seed for reproducible output

    Returns:
        List of Trade objects in chronological order

    Example:
        >>> trades = generate_demo_trades(10, now_ms=1_700_000_000_000, seed=42)
        >>> len(trades)
        10
    """
    if num_trades < 0:
        raise ValueError(f"num_trades must be non-negative, got {num_trades}")

    now = current_time_ms() if now_ms is None else now_ms
    rng = np.random.default_rng(seed)

    hours_ago = rng.uniform(0, DEMO_LOOKBACK_HOURS, num_trades)
    timestamps = (now - hours_ago * HOUR_MS).astype(np.int64)
    items = rng.integers(0, len(DEMO_ITEMS), num_trades)
    currencies = rng.integers(0, len(DEMO_CURRENCIES), num_trades)
    prices = rng.integers(50, 550, num_trades)
    qtys = rng.integers(1, 11, num_trades)
    sellers = rng.integers(0, 100, num_trades)

    trades = [
        Trade(
            item_name=DEMO_ITEMS[items[i]],
            price=int(prices[i]),
            quantity=int(qtys[i]),
            currency=DEMO_CURRENCIES[currencies[i]],
            seller_name=f"DemoSeller{sellers[i]}",
            created_at_ms=int(timestamps[i]),
        )
        for i in range(num_trades)
    ]
    trades.sort(key=lambda t: t.created_at_ms)
    return trades


def demo_trades_frame(trades: List[Trade]) -> pd.DataFrame:
    """Trades as a DataFrame with ISO-8601 created_at, ready for export"""
    return pd.DataFrame([
        {
            'item_name': t.item_name,
            'price': t.price,
            'quantity': t.quantity,
            'currency': t.currency,
            'seller_name': t.seller_name,
            'created_at': pd.Timestamp(t.created_at_ms, unit='ms', tz='UTC').isoformat(),
        }
        for t in trades
    ], columns=['item_name', 'price', 'quantity', 'currency', 'seller_name', 'created_at'])
