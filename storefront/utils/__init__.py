"""Utilities package"""

from .helpers import format_currency, round_money, round_rupee

__all__ = [
    "format_currency",
    "round_money",
    "round_rupee",
]
