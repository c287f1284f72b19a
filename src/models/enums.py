"""
Enumerations for inventory and costing.

This module contains enums used across inventory and costing code:
- MovementType: Kind of stock movement recorded against an item
- CostSource: Where a resolved unit cost came from
- MarginBand: Menu-engineering classification of a recipe's margin
"""

from enum import Enum


class MovementType(str, Enum):
    """
    Stock movement classification.

    Only PURCHASE movements are receipts; they are the movements whose
    recorded cost is used for recipe costing.

    Values:
        PURCHASE: Goods received (invoice confirmation or manual receipt)
        ADJUSTMENT: Manual correction after a stock count
        WASTE: Goods written off
        TRANSFER_IN: Goods received from another store
        TRANSFER_OUT: Goods sent to another store
        SALE: Goods consumed by POS sales
    """

    PURCHASE = "purchase"
    ADJUSTMENT = "adjustment"
    WASTE = "waste"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    SALE = "sale"


class CostSource(str, Enum):
    """
    Origin of an item's resolved unit cost.

    Values:
        MOVEMENT: Cost recorded on the latest purchase movement
        STATIC_COST: The item's static reference cost
        MISSING: No cost data at all; unit cost is reported as zero
    """

    MOVEMENT = "movement"
    STATIC_COST = "staticCost"
    MISSING = "missing"


class MarginBand(str, Enum):
    """
    Margin classification used by the profitability report.

    Values:
        HIGH: margin >= 70%
        GOOD: 50% <= margin < 70%
        LOW: 30% <= margin < 50%
        CRITICAL: margin < 30%
    """

    HIGH = "high"
    GOOD = "good"
    LOW = "low"
    CRITICAL = "critical"
