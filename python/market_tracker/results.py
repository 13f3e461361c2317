"""Aggregation result containers"""
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Union
import json
import pandas as pd

Number = Union[int, float]


@dataclass(frozen=True)
class BucketPoint:
    """One non-empty time bucket of a range"""
    time: str  # Display label, 'HH:MM' or 'dd.mm'
    avg_price: float
    min_price: float
    max_price: float
    volume: Number
    start_ms: int = 0


@dataclass(frozen=True)
class Listing:
    """A recent sale, as shown in the listings table"""
    seller: str
    currency: str
    price_per_unit: Number
    quantity: Number


@dataclass(frozen=True)
class ItemAggregate:
    """Market summary of one item within a currency"""
    id: str
    name: str
    total_quantity: Number
    min_price: Number
    currency: str
    price_change: float  # Percent, signed
    listings: List[Listing] = field(default_factory=list)
    trade_history: Dict[str, List[BucketPoint]] = field(default_factory=dict)

    def history(self, range_id: str) -> List[BucketPoint]:
        return self.trade_history.get(range_id, [])

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MarketReport:
    """Container for one aggregation pass over a trade set"""
    items: List[ItemAggregate]
    currency: str
    currency_label: str
    generated_at_ms: int
    using_demo_data: bool = False

    def search(self, term: str) -> List[ItemAggregate]:
        """Items whose name contains `term`, case-insensitive"""
        needle = (term or '').lower()
        return [item for item in self.items if needle in item.name.lower()]

    def get(self, name: str):
        for item in self.items:
            if item.name == name:
                return item
        return None

    def to_dict(self) -> dict:
        return {
            'currency': self.currency,
            'currency_label': self.currency_label,
            'generated_at_ms': self.generated_at_ms,
            'using_demo_data': self.using_demo_data,
            'items': [item.to_dict() for item in self.items],
        }

    def to_json(self, path: str):
        """Export the full report to JSON"""
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    def to_frame(self) -> pd.DataFrame:
        """One row per (item, range, bucket point)"""
        columns = [
            'item', 'range', 'time', 'start_ms',
            'avg_price', 'min_price', 'max_price', 'volume',
        ]
        rows = [
            {
                'item': item.name,
                'range': range_id,
                'time': p.time,
                'start_ms': p.start_ms,
                'avg_price': p.avg_price,
                'min_price': p.min_price,
                'max_price': p.max_price,
                'volume': p.volume,
            }
            for item in self.items
            for range_id, points in item.trade_history.items()
            for p in points
        ]
        return pd.DataFrame(rows, columns=columns)

    def to_csv(self, path: str):
        """Export bucket history to CSV"""
        self.to_frame().to_csv(path, index=False)

    def summary(self) -> str:
        """Get text summary"""
        lines = [
            f"Market Report ({self.currency_label}):",
            "-" * 40,
            f"Items: {len(self.items)}",
        ]
        if self.using_demo_data:
            lines.append("Source: demo data")
        for item in sorted(self.items, key=lambda i: i.name):
            lines.append(
                f"{item.name}: min {item.min_price} {self.currency_label}, "
                f"qty {item.total_quantity}, change {item.price_change:+.2f}%"
            )
        return "\n".join(lines)
