"""Engine wrapper - binds the aggregation functions to one configuration"""
import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .aggregator import aggregate
from .config import EngineConfig
from .currency import CurrencySelection, partition
from .data.bucketizer import bucketize
from .data.feeds import Trade
from .results import BucketPoint, ItemAggregate, MarketReport

logger = logging.getLogger(__name__)

TradeLike = Union[Trade, Mapping[str, Any]]


class Engine:
    """
    Aggregation engine.

    Holds only configuration; every call is a pure function of its inputs,
    so one instance can serve concurrent callers.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def now(self, now_ms: Optional[int] = None) -> int:
        return self.config.clock() if now_ms is None else now_ms

    def bucketize(
        self,
        trades: Iterable[TradeLike],
        range_id: str,
        now_ms: Optional[int] = None,
    ) -> List[BucketPoint]:
        """Bucket points of one range"""
        return bucketize(
            trades,
            range_id,
            now_ms=self.now(now_ms),
            ranges=self.config.ranges,
            tz=self.config.label_timezone,
        )

    def aggregate(
        self,
        trades: Iterable[TradeLike],
        now_ms: Optional[int] = None,
    ) -> List[ItemAggregate]:
        """Per-item summaries"""
        return aggregate(trades, now_ms=now_ms, config=self.config)

    def partition(
        self,
        trades: Iterable[TradeLike],
        selection: CurrencySelection,
    ) -> Tuple[List[Trade], CurrencySelection]:
        """Filter trades to the selected currency, auto-selecting once"""
        coerced = [self.config.to_trade(t) for t in trades]
        return partition(coerced, selection, self.config.currencies)

    def build_report(
        self,
        trades: Sequence[TradeLike],
        selection: Optional[CurrencySelection] = None,
        using_demo_data: bool = False,
        now_ms: Optional[int] = None,
    ) -> Tuple[MarketReport, CurrencySelection]:
        """
        Partition by currency, then aggregate.

        Args:
            trades: Full trade set of the current data load
            selection: Selection state carried over from the previous call
            using_demo_data: Whether the trades are generated demo data
            now_ms: Current time in epoch ms

        Returns:
            (report, new selection state)
        """
        selection = selection or CurrencySelection()
        now = self.now(now_ms)

        filtered, selection = self.partition(trades, selection)
        items = self.aggregate(filtered, now_ms=now)

        report = MarketReport(
            items=items,
            currency=selection.selected,
            currency_label=self.config.currencies.label(
                selection.selected, self.config.default_currency
            ),
            generated_at_ms=now,
            using_demo_data=using_demo_data,
        )
        logger.info(
            "Report for %s: %d items from %d of %d trades",
            report.currency, len(items), len(filtered), len(trades),
        )
        return report, selection
