"""
Profitability Projector.

Pure functions turning a recipe's cost per yield unit and an optional sale
price into profit figures, and classifying margins for the report.
"""

from decimal import Decimal
from typing import Optional

from src.models.enums import MarginBand
from src.services.costing.types import Profitability
from src.utils.constants import (
    FOOD_COST_BUCKETS,
    HUNDRED,
    MARGIN_GOOD_THRESHOLD,
    MARGIN_HIGH_THRESHOLD,
    MARGIN_LOW_THRESHOLD,
    ZERO,
)


def project(cost_per_yield_unit: Decimal, sale_price: Optional[Decimal]) -> Profitability:
    """
    Project profit, margin and food cost percentage for one portion.

    Args:
        cost_per_yield_unit: Cost of one yield unit
        sale_price: Sale price of one yield unit, or None if unpriced

    Returns:
        Profitability. All fields are None without a sale price; margin_pct
        and food_cost_pct are None when the sale price is zero (margin
        undefined).
    """
    if sale_price is None:
        return Profitability(profit=None, margin_pct=None, food_cost_pct=None)

    profit = sale_price - cost_per_yield_unit
    if sale_price > ZERO:
        margin_pct = profit / sale_price * HUNDRED
        food_cost_pct = cost_per_yield_unit / sale_price * HUNDRED
    else:
        margin_pct = None
        food_cost_pct = None

    return Profitability(profit=profit, margin_pct=margin_pct, food_cost_pct=food_cost_pct)


def classify_margin(margin_pct: Optional[Decimal]) -> Optional[MarginBand]:
    """
    Classify a margin percentage into a report band.

    Returns:
        MarginBand, or None if the margin is undefined
    """
    if margin_pct is None:
        return None
    if margin_pct >= MARGIN_HIGH_THRESHOLD:
        return MarginBand.HIGH
    if margin_pct >= MARGIN_GOOD_THRESHOLD:
        return MarginBand.GOOD
    if margin_pct >= MARGIN_LOW_THRESHOLD:
        return MarginBand.LOW
    return MarginBand.CRITICAL


def classify_food_cost(food_cost_pct: Optional[Decimal]) -> Optional[str]:
    """Return the food cost bucket key for a percentage, or None if undefined."""
    if food_cost_pct is None:
        return None
    for key, low, high in FOOD_COST_BUCKETS:
        if (low is None or food_cost_pct >= low) and (high is None or food_cost_pct < high):
            return key
    return None
