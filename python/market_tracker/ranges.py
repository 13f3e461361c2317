"""
Range catalog.

Maps a range identifier ("1h", "7d", ...) to its lookback duration and
bucket width. Short ranges get fine buckets, long ranges coarse ones.
"""

import math
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

# Ranges at least this long label their buckets by date instead of time-of-day
DATE_LABEL_THRESHOLD_MS = 7 * DAY_MS


@dataclass(frozen=True)
class TimeRange:
    """
    A named lookback window.

    Attributes:
        range_id: Catalog key (e.g. '24h')
        duration_ms: Total lookback in milliseconds
        bucket_ms: Width of one bucket in milliseconds
        label: Short display label
    """
    range_id: str
    duration_ms: int
    bucket_ms: int
    label: str = ''

    @property
    def bucket_count(self) -> int:
        return math.ceil(self.duration_ms / self.bucket_ms)

    @property
    def uses_date_labels(self) -> bool:
        return self.duration_ms >= DATE_LABEL_THRESHOLD_MS


DEFAULT_RANGES: Dict[str, TimeRange] = {
    r.range_id: r for r in (
        TimeRange('1h', 1 * HOUR_MS, 15 * MINUTE_MS, '1ч'),
        TimeRange('2h', 2 * HOUR_MS, 15 * MINUTE_MS, '2ч'),
        TimeRange('3h', 3 * HOUR_MS, 30 * MINUTE_MS, '3ч'),
        TimeRange('6h', 6 * HOUR_MS, 30 * MINUTE_MS, '6ч'),
        TimeRange('12h', 12 * HOUR_MS, 1 * HOUR_MS, '12ч'),
        TimeRange('24h', 24 * HOUR_MS, 1 * HOUR_MS, '24ч'),
        TimeRange('3d', 3 * DAY_MS, 6 * HOUR_MS, '3д'),
        TimeRange('7d', 7 * DAY_MS, 24 * HOUR_MS, '7д'),
        TimeRange('14d', 14 * DAY_MS, 24 * HOUR_MS, '14д'),
        TimeRange('30d', 30 * DAY_MS, 24 * HOUR_MS, '30д'),
    )
}


def get_range(
    range_id: str,
    ranges: Optional[Mapping[str, TimeRange]] = None,
) -> Optional[TimeRange]:
    """Look up a range, returning None for unknown identifiers."""
    catalog = DEFAULT_RANGES if ranges is None else ranges
    return catalog.get(range_id)
