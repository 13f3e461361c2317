"""
market-tracker: trade aggregation engine for in-game markets

Architecture:
- ranges / currency - static catalogs (range widths, currency synonyms)
- data/ - trade ingestion and time bucketing
- aggregator - per-item summaries across every range
- engine - configuration-bound entry point used by the presentation layer
"""

__version__ = "0.1.0"

from .aggregator import aggregate
from .config import ConfigurationError, EngineConfig, load_config
from .currency import (
    Currency,
    CurrencySelection,
    currency_label,
    filter_by_currency,
    normalize_currency,
    partition,
)
from .data.bucketizer import bucketize
from .data.feeds import Trade
from .engine import Engine
from .ranges import DEFAULT_RANGES, TimeRange, get_range
from .results import BucketPoint, ItemAggregate, Listing, MarketReport

__all__ = [
    "aggregate",
    "bucketize",
    "Engine",
    "EngineConfig",
    "ConfigurationError",
    "load_config",
    "Currency",
    "CurrencySelection",
    "currency_label",
    "filter_by_currency",
    "normalize_currency",
    "partition",
    "Trade",
    "TimeRange",
    "DEFAULT_RANGES",
    "get_range",
    "BucketPoint",
    "ItemAggregate",
    "Listing",
    "MarketReport",
]
