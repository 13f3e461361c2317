"""
Engine configuration.

EngineConfig carries everything the aggregation engine treats as data: the
range catalog, the currency synonym table, ingestion defaults and report
options. load_config() builds one from YAML and validates it up front so
the engine never meets a half-valid table.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Union

import pandas as pd
import yaml

from .currency import (
    DEFAULT_CURRENCIES,
    DEFAULT_CURRENCY_LABEL,
    CurrencyTable,
    CurrencyTableError,
)
from .data.bucketizer import DEFAULT_LABEL_TZ, current_time_ms
from .data.feeds import DEFAULT_SELLER, Trade, as_trade
from .ranges import DEFAULT_RANGES, TimeRange

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r'^\s*(\d+)\s*(ms|s|m|h|d)\s*$')
_UNIT_MS = {
    'ms': 1,
    's': 1000,
    'm': 60 * 1000,
    'h': 60 * 60 * 1000,
    'd': 24 * 60 * 60 * 1000,
}

_SECTIONS = {'ranges', 'currencies', 'defaults', 'report'}


class ConfigurationError(ValueError):
    """Raised when a configuration file is invalid."""
    pass


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for the aggregation engine"""
    ranges: Mapping[str, TimeRange] = field(default_factory=lambda: dict(DEFAULT_RANGES))
    currencies: CurrencyTable = DEFAULT_CURRENCIES
    default_currency: str = DEFAULT_CURRENCY_LABEL
    default_seller: str = DEFAULT_SELLER
    max_listings: int = 5
    price_change_range: str = '24h'
    label_timezone: str = DEFAULT_LABEL_TZ
    clock: Callable[[], int] = current_time_ms  # Epoch ms; swap for a fixed value in tests

    def to_trade(self, value: Union[Trade, Mapping[str, Any]]) -> Trade:
        return as_trade(value, self.default_currency, self.default_seller)

    def with_clock(self, now_ms: int) -> 'EngineConfig':
        return replace(self, clock=lambda: now_ms)


def parse_duration_ms(value: Any) -> int:
    """
    Parse a duration such as '15m', '6h', '30d' or a plain millisecond count.

    Raises:
        ConfigurationError: If the value is not a positive duration
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid duration: {value!r}")
    if isinstance(value, int):
        ms = value
    else:
        match = _DURATION_RE.match(str(value))
        if not match:
            raise ConfigurationError(f"Invalid duration: {value!r}")
        ms = int(match.group(1)) * _UNIT_MS[match.group(2)]
    if ms <= 0:
        raise ConfigurationError(f"Duration must be positive: {value!r}")
    return ms


def _parse_ranges(section: Any) -> Dict[str, TimeRange]:
    if not isinstance(section, Mapping) or not section:
        raise ConfigurationError("'ranges' must be a non-empty mapping")

    ranges = {}
    for key, spec in section.items():
        range_id = str(key)
        if not isinstance(spec, Mapping):
            raise ConfigurationError(f"Range {range_id!r} must be a mapping")
        missing = {'duration', 'bucket'} - set(spec)
        if missing:
            raise ConfigurationError(f"Range {range_id!r} missing keys: {sorted(missing)}")
        ranges[range_id] = TimeRange(
            range_id=range_id,
            duration_ms=parse_duration_ms(spec['duration']),
            bucket_ms=parse_duration_ms(spec['bucket']),
            label=str(spec.get('label', range_id)),
        )
    return ranges


def _parse_currencies(section: Any) -> CurrencyTable:
    if not isinstance(section, Mapping) or not section:
        raise ConfigurationError("'currencies' must be a non-empty mapping")

    groups = {}
    for key, spec in section.items():
        canonical = str(key).strip().lower()
        spec = spec or {}
        if not isinstance(spec, Mapping):
            raise ConfigurationError(f"Currency {key!r} must be a mapping")
        synonyms = spec.get('synonyms', [])
        if not isinstance(synonyms, list):
            raise ConfigurationError(f"Currency {key!r}: 'synonyms' must be a list")
        groups[canonical] = (str(spec.get('label', key)), [str(s) for s in synonyms])

    try:
        return CurrencyTable.from_groups(groups)
    except CurrencyTableError as e:
        raise ConfigurationError(str(e)) from e


def _check_timezone(name: str) -> str:
    try:
        pd.Timestamp(0, unit='ms', tz=name)
    except (KeyError, ValueError, TypeError) as e:
        raise ConfigurationError(f"Unknown timezone: {name!r}") from e
    return name


def config_from_dict(data: Mapping[str, Any]) -> EngineConfig:
    """
    Build an EngineConfig from a parsed configuration mapping.

    Sections that are absent keep their built-in defaults.
    """
    if not isinstance(data, Mapping):
        raise ConfigurationError("Configuration root must be a mapping")

    unknown = set(data) - _SECTIONS
    if unknown:
        raise ConfigurationError(f"Unknown configuration sections: {sorted(unknown)}")

    kwargs: Dict[str, Any] = {}

    if 'ranges' in data:
        kwargs['ranges'] = _parse_ranges(data['ranges'])
    if 'currencies' in data:
        kwargs['currencies'] = _parse_currencies(data['currencies'])

    defaults = data.get('defaults') or {}
    if not isinstance(defaults, Mapping):
        raise ConfigurationError("'defaults' must be a mapping")
    if 'currency' in defaults:
        kwargs['default_currency'] = str(defaults['currency'])
    if 'seller' in defaults:
        kwargs['default_seller'] = str(defaults['seller'])

    report = data.get('report') or {}
    if not isinstance(report, Mapping):
        raise ConfigurationError("'report' must be a mapping")
    if 'max_listings' in report:
        max_listings = report['max_listings']
        if isinstance(max_listings, bool) or not isinstance(max_listings, int) or max_listings < 0:
            raise ConfigurationError(f"max_listings must be a non-negative integer: {max_listings!r}")
        kwargs['max_listings'] = max_listings
    if 'price_change_range' in report:
        kwargs['price_change_range'] = str(report['price_change_range'])
    if 'label_timezone' in report:
        kwargs['label_timezone'] = _check_timezone(str(report['label_timezone']))

    config = EngineConfig(**kwargs)
    if config.price_change_range not in config.ranges:
        raise ConfigurationError(
            f"price_change_range {config.price_change_range!r} is not a configured range"
        )
    return config


def load_config(path: Union[str, Path]) -> EngineConfig:
    """
    Load and validate a YAML configuration file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigurationError: If the content is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    config = config_from_dict(data)
    logger.info(
        "Loaded config from %s: %d ranges, %d currencies",
        path, len(config.ranges), len(config.currencies.labels),
    )
    return config
