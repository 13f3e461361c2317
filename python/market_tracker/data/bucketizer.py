"""
Trade bucketing.

Splits the most recent window of a range into fixed-width time buckets and
accumulates price/volume statistics per bucket.
"""

import logging
import math
import time
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Mapping, Optional, Union

import pandas as pd

from ..ranges import TimeRange, get_range
from ..results import BucketPoint
from .feeds import Trade, as_trade

logger = logging.getLogger(__name__)

DEFAULT_LABEL_TZ = 'UTC'

# ru-RU convention: '05.03' for dates, '14:30' for times
DATE_LABEL_FORMAT = '%d.%m'
TIME_LABEL_FORMAT = '%H:%M'


def current_time_ms() -> int:
    return int(time.time() * 1000)


def round2(value: float) -> float:
    # Half-up on the exact binary value, so 10.125 becomes 10.13
    return float(Decimal(float(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def format_label(start_ms: int, time_range: TimeRange, tz: str = DEFAULT_LABEL_TZ) -> str:
    """Label a bucket by date for long ranges, by time-of-day otherwise."""
    fmt = DATE_LABEL_FORMAT if time_range.uses_date_labels else TIME_LABEL_FORMAT
    return pd.Timestamp(start_ms, unit='ms', tz=tz).strftime(fmt)


@dataclass
class _Bucket:
    start_ms: int
    sum_price_qty: float = 0.0
    sum_qty: float = 0.0
    min_price: float = math.inf
    max_price: float = -math.inf
    volume: Union[int, float] = 0

    def add(self, price: float, qty: Union[int, float]) -> None:
        self.sum_price_qty += price * qty
        self.sum_qty += qty
        self.volume += qty
        if price < self.min_price:
            self.min_price = price
        if price > self.max_price:
            self.max_price = price

    def to_point(self, time_range: TimeRange, tz: str) -> BucketPoint:
        avg = self.sum_price_qty / self.sum_qty if self.sum_qty else 0.0
        return BucketPoint(
            time=format_label(self.start_ms, time_range, tz),
            avg_price=round2(avg),
            min_price=round2(self.min_price),
            max_price=round2(self.max_price),
            volume=self.volume,
            start_ms=self.start_ms,
        )


def bucketize(
    trades: Iterable[Union[Trade, Mapping]],
    range_id: str,
    now_ms: Optional[int] = None,
    ranges: Optional[Mapping[str, TimeRange]] = None,
    tz: str = DEFAULT_LABEL_TZ,
) -> List[BucketPoint]:
    """
    Bucket trades over the most recent window of a range.

    Algorithm:
        1. start = now - duration, bucket_count = ceil(duration / bucket)
        2. Skip trades outside [start, now] or with a non-positive price or
           quantity
        3. idx = (ts - start) // bucket; accumulate when 0 <= idx < bucket_count
        4. Drop empty buckets and emit one BucketPoint per survivor

    Args:
        trades: Trade objects or raw trade mappings
        range_id: Catalog key, e.g. '24h'
        now_ms: Current time in epoch ms (read from the clock when None)
        ranges: Range catalog override
        tz: Timezone used for bucket labels

    Returns:
        Points in chronological order. Empty buckets produce no point, so the
        result is neither fixed-length nor evenly spaced. Unknown range_id
        returns an empty list.

    Example:
        >>> now = 1_700_000_000_000
        >>> trades = [
        ...     Trade('Sword', 10, 2, created_at_ms=now - 60_000),
        ...     Trade('Sword', 20, 1, created_at_ms=now - 120_000),
        ... ]
        >>> [(p.avg_price, p.min_price, p.max_price, p.volume)
        ...  for p in bucketize(trades, '1h', now_ms=now)]
        [(13.33, 10.0, 20.0, 3)]
    """
    time_range = get_range(range_id, ranges)
    if time_range is None:
        return []

    now = current_time_ms() if now_ms is None else now_ms
    start_time = now - time_range.duration_ms
    bucket_ms = time_range.bucket_ms
    bucket_count = time_range.bucket_count

    buckets = [_Bucket(start_ms=start_time + i * bucket_ms) for i in range(bucket_count)]

    for raw in trades:
        trade = as_trade(raw)
        ts = trade.created_at_ms
        if ts is None or ts < start_time or ts > now:
            continue
        if not trade.has_valid_price or not trade.has_valid_quantity:
            continue

        idx = (ts - start_time) // bucket_ms
        if idx < 0 or idx >= bucket_count:
            continue

        buckets[idx].add(trade.price, trade.quantity)

    points = [b.to_point(time_range, tz) for b in buckets if b.sum_qty > 0]
    logger.debug("Range %s: %d of %d buckets filled", range_id, len(points), bucket_count)
    return points
