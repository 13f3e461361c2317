#!/usr/bin/env python3
"""
Example report runner

Usage:
    python examples/run_report.py --input trades.csv --currency adena --range 24h
    python examples/run_report.py --demo --output outputs/
"""
import argparse
import logging
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from market_tracker import CurrencySelection, Engine, EngineConfig, load_config, normalize_currency
from market_tracker.data.trades import TradeFileFeed
from market_tracker.userland.demo_data import generate_demo_trades


def load_trades(args, config):
    """Load trades from the input file, falling back to demo data"""
    if args.demo or not args.input:
        print("Using demo data")
        return generate_demo_trades(args.demo_trades, seed=args.seed), True

    try:
        feed = TradeFileFeed(
            args.input,
            default_currency=config.default_currency,
            default_seller=config.default_seller,
        )
        trades = feed.load()
    except (OSError, ValueError) as e:
        print(f"Failed to load {args.input}: {e}")
        print("Falling back to demo data")
        return generate_demo_trades(args.demo_trades, seed=args.seed), True

    if not trades:
        print(f"{args.input} is empty, using demo data")
        return generate_demo_trades(args.demo_trades, seed=args.seed), True

    print(f"Loaded {len(trades)} trades from {args.input}")
    return trades, False


def main():
    parser = argparse.ArgumentParser(description='Aggregate trades into a market report')
    parser.add_argument('--input', help='Trade file (.csv, .json or .parquet)')
    parser.add_argument('--config', help='YAML config file')
    parser.add_argument('--demo', action='store_true', help='Use generated demo data')
    parser.add_argument('--demo-trades', type=int, default=150, help='Number of demo trades')
    parser.add_argument('--seed', type=int, help='Seed for demo data')
    parser.add_argument('--currency', default='adena', help='Currency to report on')
    parser.add_argument('--range', default='24h', help='Range shown in the console table')
    parser.add_argument('--search', default='', help='Only show items whose name contains this')
    parser.add_argument('--output', help='Output directory for report.json and history.csv')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(asctime)s %(name)s %(levelname)s %(message)s')

    config = load_config(args.config) if args.config else EngineConfig()
    engine = Engine(config)

    trades, using_demo = load_trades(args, config)

    selection = CurrencySelection(selected=normalize_currency(args.currency, config.currencies))
    report, selection = engine.build_report(trades, selection, using_demo_data=using_demo)

    print(report.summary())

    items = report.search(args.search)
    print(f"\n{args.range} history ({len(items)} items):")
    for item in items:
        print(f"\n  {item.name}")
        for point in item.history(args.range):
            print(
                f"    {point.time}  avg {point.avg_price:>10.2f}  "
                f"min {point.min_price:>10.2f}  max {point.max_price:>10.2f}  vol {point.volume}"
            )
        for listing in item.listings:
            print(f"    /target {listing.seller}  {listing.price_per_unit} x{listing.quantity}")

    if args.output:
        output_dir = Path(args.output)
        output_dir.mkdir(exist_ok=True, parents=True)
        report.to_json(str(output_dir / 'report.json'))
        report.to_csv(str(output_dir / 'history.csv'))
        print(f"\nResults saved to {output_dir}/")
        print(f"  - report.json")
        print(f"  - history.csv")


if __name__ == '__main__':
    main()
