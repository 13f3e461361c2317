"""
Trade feed implementations.

Reads trade rows from files or from in-memory records as returned by a
remote table store.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Union

import pandas as pd

from ..currency import DEFAULT_CURRENCY_LABEL
from .feeds import DEFAULT_SELLER, BaseFeed, Trade

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['item_name', 'price', 'quantity', 'created_at']
OPTIONAL_COLUMNS = ['currency', 'seller_name']


def _ordered(trades: Iterable[Trade]) -> list:
    # Undated rows go first, matching an ascending created_at query
    return sorted(trades, key=lambda t: (t.created_at_ms is not None, t.created_at_ms or 0))


class RecordsFeed(BaseFeed):
    """
    Data feed over already-fetched rows.

    Each record is a mapping with the Trade keys (item_name, price,
    quantity, currency, seller_name, created_at).
    """

    def __init__(
        self,
        records: Iterable[Mapping[str, Any]],
        default_currency: str = DEFAULT_CURRENCY_LABEL,
        default_seller: str = DEFAULT_SELLER,
    ):
        self.records = list(records)
        self.default_currency = default_currency
        self.default_seller = default_seller

    def iter_trades(self) -> Iterator[Trade]:
        trades = [
            Trade.from_record(r, self.default_currency, self.default_seller)
            for r in self.records
        ]
        yield from _ordered(trades)


class TradeFileFeed(BaseFeed):
    """
    Data feed for trade exports.

    Supported formats (by suffix):
        - .csv: header row with the column names below
        - .json: array of records
        - .parquet: columnar export

    Expected columns:
        - item_name: Item sold
        - price: Price per unit
        - quantity: Units sold
        - created_at: ISO-8601 timestamp or epoch milliseconds
        - currency, seller_name: optional, defaulted when absent
    """

    def __init__(
        self,
        path: Union[str, Path],
        default_currency: str = DEFAULT_CURRENCY_LABEL,
        default_seller: str = DEFAULT_SELLER,
    ):
        """
        Initialize TradeFileFeed.

        Args:
            path: Path to the export file
            default_currency: Currency for rows without one
            default_seller: Seller name for rows without one
        """
        self.path = Path(path)
        self.default_currency = default_currency
        self.default_seller = default_seller

        if not self.path.exists():
            raise FileNotFoundError(f"Trade file not found: {self.path}")

    def _read_frame(self) -> pd.DataFrame:
        suffix = self.path.suffix.lower()
        if suffix == '.csv':
            return pd.read_csv(self.path)
        if suffix == '.json':
            return pd.read_json(self.path, orient='records', dtype=False, convert_dates=False)
        if suffix == '.parquet':
            return pd.read_parquet(self.path, engine='pyarrow')
        raise ValueError(f"Unsupported trade file format: {suffix!r}")

    def iter_trades(self) -> Iterator[Trade]:
        """
        Parse the file and yield Trade objects.

        Yields:
            Trade objects in chronological order
        """
        df = self._read_frame()

        missing_cols = set(REQUIRED_COLUMNS) - set(df.columns)
        if missing_cols:
            raise ValueError(
                f"Missing required columns: {sorted(missing_cols)}. "
                f"Found columns: {list(df.columns)}"
            )

        for col in OPTIONAL_COLUMNS:
            if col not in df.columns:
                df[col] = None

        records = df[REQUIRED_COLUMNS + OPTIONAL_COLUMNS].to_dict(orient='records')
        trades = [
            Trade.from_record(r, self.default_currency, self.default_seller)
            for r in records
        ]

        undated = sum(1 for t in trades if t.created_at_ms is None)
        if undated:
            logger.warning("%s: %d rows without a parseable created_at", self.path, undated)

        yield from _ordered(trades)
