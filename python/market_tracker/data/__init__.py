"""
Data loading and bucketing module.

Provides trade feeds and the time-bucketing used by the aggregator.
"""

from .feeds import BaseFeed, Trade, parse_timestamp_ms
from .trades import RecordsFeed, TradeFileFeed
from .bucketizer import bucketize

__all__ = [
    "BaseFeed",
    "Trade",
    "parse_timestamp_ms",
    "RecordsFeed",
    "TradeFileFeed",
    "bucketize",
]
