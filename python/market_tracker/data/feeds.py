"""
Base data feed abstractions.

Every trade entering the engine passes through Trade.from_record, which is
the single place where missing sellers and currencies get their defaults.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

from ..currency import DEFAULT_CURRENCY_LABEL

DEFAULT_SELLER = 'Unknown'


def _is_missing(value: Any) -> bool:
    return value is None or (pd.api.types.is_scalar(value) and pd.isna(value))


def _to_number(value: Any) -> Optional[Union[int, float]]:
    """Coerce a raw field to int/float, or None when it is not numeric."""
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, np.integer)):
        return int(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return int(number) if number.is_integer() else number


def parse_timestamp_ms(value: Any) -> Optional[int]:
    """
    Convert a timestamp to UTC epoch milliseconds.

    Accepts ISO-8601 strings (naive strings are read as UTC), datetime and
    pandas Timestamp objects, and integers already in epoch milliseconds.

    Returns:
        Epoch milliseconds, or None when the value cannot be parsed
    """
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError):
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is None:
        ts = ts.tz_localize('UTC')
    return int(ts.value // 1_000_000)


@dataclass(frozen=True)
class Trade:
    """
    A single completed sale.

    Attributes:
        item_name: Item sold; trades without one are never aggregated
        price: Price per unit
        quantity: Units sold
        currency: Free-text currency label as recorded by the source
        seller_name: Seller display name
        created_at_ms: Sale time in UTC epoch milliseconds
    """
    item_name: Optional[str]
    price: Optional[Union[int, float]]
    quantity: Optional[Union[int, float]]
    currency: str = DEFAULT_CURRENCY_LABEL
    seller_name: str = DEFAULT_SELLER
    created_at_ms: Optional[int] = None

    @property
    def has_valid_price(self) -> bool:
        return self.price is not None and self.price > 0

    @property
    def has_valid_quantity(self) -> bool:
        return self.quantity is not None and self.quantity > 0

    @property
    def created_at(self) -> Optional[datetime]:
        if self.created_at_ms is None:
            return None
        return pd.Timestamp(self.created_at_ms, unit='ms', tz='UTC').to_pydatetime()

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        default_currency: str = DEFAULT_CURRENCY_LABEL,
        default_seller: str = DEFAULT_SELLER,
    ) -> 'Trade':
        """
        Build a Trade from a raw row.

        Expected keys: item_name, price, quantity, currency, seller_name,
        created_at. Missing or empty currency and seller fall back to the
        given defaults; missing numbers become None.
        """
        item_name = record.get('item_name')
        currency = record.get('currency')
        seller = record.get('seller_name')

        return cls(
            item_name=None if _is_missing(item_name) else str(item_name),
            price=_to_number(record.get('price')),
            quantity=_to_number(record.get('quantity')),
            currency=default_currency if _is_missing(currency) or not str(currency) else str(currency),
            seller_name=default_seller if _is_missing(seller) or not str(seller) else str(seller),
            created_at_ms=parse_timestamp_ms(record.get('created_at')),
        )


def as_trade(
    value: Union[Trade, Mapping[str, Any]],
    default_currency: str = DEFAULT_CURRENCY_LABEL,
    default_seller: str = DEFAULT_SELLER,
) -> Trade:
    """Pass Trade objects through and build one from any other mapping."""
    if isinstance(value, Trade):
        return value
    if isinstance(value, Mapping):
        return Trade.from_record(value, default_currency, default_seller)
    raise TypeError(f"Expected Trade or mapping, got {type(value)}")


class BaseFeed(ABC):
    """
    Abstract base class for trade sources.

    Feeds turn whatever the upstream store returns into Trade objects.
    """

    @abstractmethod
    def iter_trades(self) -> Iterator[Trade]:
        """
        Yield trades in chronological order.

        Returns:
            Iterator of Trade objects
        """
        pass

    def load(self) -> List[Trade]:
        """
        Load all trades into a list.

        Returns:
            List of Trade objects
        """
        return list(self.iter_trades())
