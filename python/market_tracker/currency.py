"""
Currency normalization and partitioning.

Free-text currency labels are folded into a closed set of canonical
identifiers through an explicit synonym table. Labels outside the table
pass through trimmed and lower-cased and act as their own currency.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Tuple

if TYPE_CHECKING:
    from .data.feeds import Trade

logger = logging.getLogger(__name__)


class Currency(str, Enum):
    """Canonical currency identifiers."""
    ADENA = 'adena'
    MASTERCOIN = 'mastercoin'


DEFAULT_CURRENCY = Currency.ADENA.value
DEFAULT_CURRENCY_LABEL = 'Adena'


class CurrencyTableError(ValueError):
    """Raised when a synonym table is inconsistent."""
    pass


def _fold(value: Optional[str]) -> str:
    return (value or '').strip().lower()


@dataclass(frozen=True)
class CurrencyTable:
    """
    Synonym table for currency labels.

    Attributes:
        synonyms: folded synonym -> canonical identifier
        labels: canonical identifier -> display label
    """
    synonyms: Mapping[str, str] = field(default_factory=dict)
    labels: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """
        Check that every synonym is already folded and points at a
        canonical identifier that has a label.

        Raises:
            CurrencyTableError: On the first inconsistency found
        """
        for synonym, canonical in self.synonyms.items():
            if synonym != _fold(synonym):
                raise CurrencyTableError(
                    f"Synonym {synonym!r} must be trimmed and lower-case"
                )
            if canonical not in self.labels:
                raise CurrencyTableError(
                    f"Synonym {synonym!r} maps to unknown currency {canonical!r}"
                )
        for canonical in self.labels:
            if canonical != _fold(canonical):
                raise CurrencyTableError(
                    f"Currency identifier {canonical!r} must be trimmed and lower-case"
                )

    def normalize(self, raw: Optional[str]) -> str:
        folded = _fold(raw)
        return self.synonyms.get(folded, folded)

    def label(self, canonical: str, default: str = DEFAULT_CURRENCY_LABEL) -> str:
        return self.labels.get(canonical, default)

    @classmethod
    def from_groups(
        cls,
        groups: Mapping[str, Tuple[str, Iterable[str]]],
    ) -> 'CurrencyTable':
        """
        Build a table from canonical -> (label, synonyms).

        The canonical identifier is always a synonym of itself. A synonym
        claimed by two currencies raises CurrencyTableError.
        """
        synonyms: Dict[str, str] = {}
        labels: Dict[str, str] = {}
        for canonical, (label, names) in groups.items():
            labels[canonical] = label
            for name in (canonical, *names):
                folded = _fold(name)
                owner = synonyms.get(folded)
                if owner is not None and owner != canonical:
                    raise CurrencyTableError(
                        f"Synonym {folded!r} claimed by both {owner!r} and {canonical!r}"
                    )
                synonyms[folded] = canonical
        return cls(synonyms=synonyms, labels=labels)


DEFAULT_CURRENCIES = CurrencyTable.from_groups({
    Currency.ADENA.value: ('Adena', ['adena', 'адена']),
    Currency.MASTERCOIN.value: ('MasterCoin', ['mastercoin', 'master coin', 'master_coin']),
})


def normalize_currency(raw: Optional[str], table: Optional[CurrencyTable] = None) -> str:
    """
    Canonicalize a free-text currency label.

    Examples:
        >>> normalize_currency(' MasterCoin ')
        'mastercoin'
        >>> normalize_currency('master_coin')
        'mastercoin'
        >>> normalize_currency(' Gold ')
        'gold'
    """
    return (table or DEFAULT_CURRENCIES).normalize(raw)


def currency_label(canonical: str, table: Optional[CurrencyTable] = None) -> str:
    """Display label for a canonical identifier, 'Adena' when unknown."""
    return (table or DEFAULT_CURRENCIES).label(canonical)


def _coerce(trades: Iterable[Any]) -> List['Trade']:
    # data.feeds imports this module, so the import is deferred
    from .data.feeds import as_trade
    return [as_trade(t) for t in trades]


def filter_by_currency(
    trades: Iterable[Any],
    currency: str,
    table: Optional[CurrencyTable] = None,
) -> List['Trade']:
    """Keep trades whose normalized currency equals `currency`."""
    table = table or DEFAULT_CURRENCIES
    return [
        t for t in _coerce(trades)
        if table.normalize(t.currency or DEFAULT_CURRENCY) == currency
    ]


@dataclass(frozen=True)
class CurrencySelection:
    """
    Currently selected currency plus the one-shot auto-selection flag.

    Once auto_selected is set, partition() never changes the selection on
    its own again; call reset() to re-arm it for a fresh data load.
    """
    selected: str = DEFAULT_CURRENCY
    auto_selected: bool = False

    def select(self, currency: str) -> 'CurrencySelection':
        return replace(self, selected=currency)

    def reset(self) -> 'CurrencySelection':
        return replace(self, auto_selected=False)


def auto_select(
    trades: Iterable[Any],
    selection: CurrencySelection,
    table: Optional[CurrencyTable] = None,
) -> CurrencySelection:
    """
    Run the one-shot auto-selection step.

    When the selected currency has no trades, switch to the normalized
    currency of the first trade. An empty trade set leaves the flag unset
    so the next non-empty load still gets its chance.
    """
    trades = _coerce(trades)
    if not trades or selection.auto_selected:
        return selection

    table = table or DEFAULT_CURRENCIES
    selected = selection.selected
    has_selected = any(
        table.normalize(t.currency or DEFAULT_CURRENCY) == selected for t in trades
    )
    if not has_selected:
        first = table.normalize(trades[0].currency or DEFAULT_CURRENCY) or DEFAULT_CURRENCY
        if first != selected:
            logger.info("No trades in %r, auto-selecting %r", selected, first)
            selected = first

    return CurrencySelection(selected=selected, auto_selected=True)


def partition(
    trades: Iterable[Any],
    selection: CurrencySelection,
    table: Optional[CurrencyTable] = None,
) -> Tuple[List['Trade'], CurrencySelection]:
    """
    Filter trades down to one currency.

    Args:
        trades: Full (unfiltered) trade set, as Trade objects or raw mappings
        selection: Selection state from the previous call
        table: Synonym table (defaults to DEFAULT_CURRENCIES)

    Returns:
        (filtered trades, new selection state)
    """
    trades = _coerce(trades)
    new_selection = auto_select(trades, selection, table)
    filtered = filter_by_currency(trades, new_selection.selected, table)
    logger.debug(
        "Partitioned %d trades -> %d in %r", len(trades), len(filtered), new_selection.selected
    )
    return filtered, new_selection
