"""End-to-end tests for the report pipeline.

Covers the full flow: raw records -> feed -> currency partition ->
aggregation -> export.
"""

import pytest
import sys
import os
import json
import pandas as pd
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'python'))

from market_tracker import CurrencySelection, Engine, EngineConfig, load_config
from market_tracker.data.trades import RecordsFeed, TradeFileFeed
from market_tracker.ranges import DEFAULT_RANGES
from market_tracker.userland.demo_data import demo_trades_frame, generate_demo_trades

NOW = 1_704_110_400_000  # 2024-01-01T12:00:00Z
REPO_CONFIG = Path(__file__).parent.parent.parent / 'config' / 'market_tracker.yaml'

RECORDS = [
    {'item_name': 'Sword', 'price': 100, 'quantity': 2, 'currency': 'Adena',
     'seller_name': 'Bob', 'created_at': '2024-01-01T08:10:00Z'},
    {'item_name': 'Sword', 'price': 120, 'quantity': 1, 'currency': 'adena',
     'seller_name': 'Eve', 'created_at': '2024-01-01T11:40:00Z'},
    {'item_name': 'Shield', 'price': 3, 'quantity': 5, 'currency': 'Master Coin',
     'seller_name': 'Ann', 'created_at': '2024-01-01T11:50:00Z'},
    {'item_name': 'Shield', 'price': 50, 'quantity': 1, 'currency': None,
     'seller_name': None, 'created_at': '2024-01-01T09:00:00Z'},
    {'item_name': None, 'price': 1, 'quantity': 1, 'currency': 'Adena',
     'seller_name': 'Ghost', 'created_at': '2024-01-01T11:00:00Z'},
]


class TestReportPipeline:
    """Engine.build_report over realistic inputs."""

    def test_adena_report(self):
        trades = RecordsFeed(RECORDS).load()
        engine = Engine()

        report, selection = engine.build_report(trades, CurrencySelection('adena'), now_ms=NOW)

        assert selection == CurrencySelection('adena', auto_selected=True)
        assert report.currency_label == 'Adena'
        assert [i.name for i in report.items] == ['Sword', 'Shield']

        sword = report.get('Sword')
        assert sword.total_quantity == 3
        assert sword.min_price == 100
        assert sword.currency == 'adena'
        assert sword.price_change == pytest.approx(20.0)
        assert [l.seller for l in sword.listings] == ['Eve', 'Bob']

        # The untagged Shield trade defaults to Adena
        shield = report.get('Shield')
        assert shield.total_quantity == 1
        assert shield.listings[0].seller == 'Unknown'

    def test_auto_selects_available_currency(self):
        trades = RecordsFeed([r for r in RECORDS if r['currency'] == 'Master Coin']).load()

        report, selection = Engine().build_report(trades, CurrencySelection('adena'), now_ms=NOW)

        assert selection.selected == 'mastercoin'
        assert report.currency_label == 'MasterCoin'
        assert [i.name for i in report.items] == ['Shield']

    def test_empty_load(self):
        report, selection = Engine().build_report([], now_ms=NOW)

        assert report.items == []
        assert selection.auto_selected is False
        assert 'Items: 0' in report.summary()

    def test_engine_clock_from_config(self):
        trades = RecordsFeed(RECORDS).load()
        engine = Engine(EngineConfig().with_clock(NOW))

        report, _ = engine.build_report(trades)

        assert report.generated_at_ms == NOW
        assert engine.bucketize(trades, '1h') == engine.bucketize(trades, '1h', now_ms=NOW)

    def test_search(self):
        report, _ = Engine().build_report(RecordsFeed(RECORDS).load(), now_ms=NOW)

        assert [i.name for i in report.search('SWO')] == ['Sword']
        assert len(report.search('')) == 2
        assert report.search('axe') == []


class TestDemoDataFlow:
    """Demo data through file export, reload and aggregation."""

    def test_demo_csv_round_trip(self, tmp_path):
        trades = generate_demo_trades(150, now_ms=NOW, seed=11)
        path = tmp_path / 'demo.csv'
        demo_trades_frame(trades).to_csv(path, index=False)

        loaded = TradeFileFeed(path).load()
        engine = Engine(load_config(REPO_CONFIG))
        report, selection = engine.build_report(loaded, using_demo_data=True, now_ms=NOW)

        assert len(loaded) == 150
        assert report.using_demo_data
        assert 'Source: demo data' in report.summary()
        assert selection.selected == 'adena'

        adena_qty = sum(t.quantity for t in trades if t.currency == 'Adena')
        assert sum(i.total_quantity for i in report.items) == adena_qty

        for item in report.items:
            assert set(item.trade_history) == set(DEFAULT_RANGES)
            assert len(item.listings) <= 5
            week_volume = sum(p.volume for p in item.history('7d'))
            assert week_volume <= item.total_quantity

    def test_exports(self, tmp_path):
        trades = generate_demo_trades(60, now_ms=NOW, seed=5)
        report, _ = Engine().build_report(trades, now_ms=NOW)

        json_path = tmp_path / 'report.json'
        csv_path = tmp_path / 'history.csv'
        report.to_json(str(json_path))
        report.to_csv(str(csv_path))

        data = json.loads(json_path.read_text(encoding='utf-8'))
        assert data['currency'] == report.currency
        assert len(data['items']) == len(report.items)
        assert set(data['items'][0]['trade_history']) == set(DEFAULT_RANGES)

        df = pd.read_csv(csv_path)
        expected_rows = sum(
            len(points) for item in report.items for points in item.trade_history.values()
        )
        assert len(df) == expected_rows
        assert set(df['range']) <= set(DEFAULT_RANGES)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
