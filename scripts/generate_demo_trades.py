#!/usr/bin/env python3
"""
Generate a demo trade export.

Writes a CSV in the trade-file layout so the report runner can be tried
without a live data source.
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from market_tracker.userland.demo_data import demo_trades_frame, generate_demo_trades


def generate_demo_csv(output_path: Path, num_trades: int = 150, seed: int = 42):
    """
    Generate demo trades and write them as CSV.

    Args:
        output_path: Path to output CSV file
        num_trades: Number of trades to generate
        seed: Random seed for reproducibility
    """
    print(f"Generating {num_trades:,} demo trades...")

    trades = generate_demo_trades(num_trades, seed=seed)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    demo_trades_frame(trades).to_csv(output_path, index=False)

    file_size_kb = output_path.stat().st_size / 1024
    print(f"Complete! File size: {file_size_kb:.1f} KB")


def main():
    """Generate demo trade file."""
    parser = argparse.ArgumentParser(description='Generate demo trades CSV')
    parser.add_argument('--trades', type=int, default=150, help='Number of trades')
    parser.add_argument('--seed', type=int, default=42, help='Random seed')
    parser.add_argument('--output', help='Output CSV path')
    args = parser.parse_args()

    project_root = Path(__file__).parent.parent
    output_path = Path(args.output) if args.output else project_root / "examples" / "data" / "demo_trades.csv"

    generate_demo_csv(output_path, num_trades=args.trades, seed=args.seed)
    print(f"Output file: {output_path}")


if __name__ == "__main__":
    main()
