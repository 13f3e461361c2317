"""
User-facing utilities and helpers.

This module contains convenience functions for running the tracker
without a live data source.
"""

from .demo_data import generate_demo_trades

__all__ = ["generate_demo_trades"]
