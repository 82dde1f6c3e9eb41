"""Validation engine for portfolio weights and slots.

Pure, total functions: each returns a bool and never raises or touches
storage. The lifecycle manager turns a False into the matching error.
"""

import numbers
from typing import Sequence

from portfolio_ledger.portfolio.base import (
    BASIS_POINTS_TOTAL,
    MAX_TOKENS_PER_PORTFOLIO,
    MIN_TOKENS_PER_PORTFOLIO,
    Portfolio,
)


def _is_int(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def validate_percentage(percentage: int) -> bool:
    """Check a single target percentage is within [0, 10000] basis points.

    Args:
        percentage: Target weight in basis points

    Returns:
        True if the value is an integer in range

    Example:
        >>> validate_percentage(6000)
        True
        >>> validate_percentage(10001)
        False
    """
    return _is_int(percentage) and 0 <= int(percentage) <= BASIS_POINTS_TOTAL


def validate_percentage_set(percentages: Sequence[int], expected_len: int) -> bool:
    """Check a full weight set: length, per-element bounds, and exact total.

    Args:
        percentages: Target weights in basis points, one per asset
        expected_len: Number of assets the set must cover

    Returns:
        True if there are expected_len valid weights summing to exactly 10000

    Example:
        >>> validate_percentage_set([6000, 4000], 2)
        True
        >>> validate_percentage_set([6000, 3000], 2)
        False
    """
    if len(percentages) != expected_len:
        return False
    if not all(validate_percentage(p) for p in percentages):
        return False
    return sum(int(p) for p in percentages) == BASIS_POINTS_TOTAL


def validate_token_count(token_count: int) -> bool:
    """Check a portfolio holds between 2 and 10 assets inclusive."""
    return MIN_TOKENS_PER_PORTFOLIO <= token_count <= MAX_TOKENS_PER_PORTFOLIO


def validate_token_id(portfolio: Portfolio, slot: int) -> bool:
    """Check an asset slot exists within a portfolio.

    Args:
        portfolio: Stored portfolio record
        slot: Zero-based asset slot

    Returns:
        True if 0 <= slot < min(10, portfolio.token_count)
    """
    if not _is_int(slot) or slot < 0:
        return False
    slot = int(slot)
    return slot < MAX_TOKENS_PER_PORTFOLIO and slot < portfolio.token_count
