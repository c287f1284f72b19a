"""
Cost Source Resolver.

Determines the unit cost of one inventory item "as of now" using the
cost-sourcing policy:

1. Cost on the latest purchase movement (ties: most recently created)
2. The item's static reference cost
3. Zero, flagged as missing

The cached last_purchase_cost on Item is never consulted; live movement
data is the source of truth.
"""

import logging
from decimal import Decimal

from src.models.enums import CostSource
from src.services.costing.data_source import CostingDataSource
from src.services.costing.types import UnitCost
from src.services.logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)


def resolve_unit_cost(item_id: int, data_source: CostingDataSource) -> UnitCost:
    """
    Resolve the unit cost of an item.

    Pure read; never raises for missing data.

    Args:
        item_id: Item ID
        data_source: Read-only data provider

    Returns:
        UnitCost with the cost and its source
    """
    movement = data_source.get_latest_receipt(item_id)
    if movement is not None:
        unit_cost = Decimal(str(movement.cost_price))
        log_operation(
            logger,
            operation="resolve_unit_cost",
            outcome=CostSource.MOVEMENT.value,
            level=logging.DEBUG,
            item_id=item_id,
            movement_id=movement.id,
            unit_cost=str(unit_cost),
        )
        return UnitCost(unit_cost=unit_cost, source=CostSource.MOVEMENT)

    static_cost = data_source.get_static_cost(item_id)
    if static_cost is not None:
        log_operation(
            logger,
            operation="resolve_unit_cost",
            outcome=CostSource.STATIC_COST.value,
            level=logging.DEBUG,
            item_id=item_id,
            unit_cost=str(static_cost),
        )
        return UnitCost(unit_cost=static_cost, source=CostSource.STATIC_COST)

    log_operation(
        logger,
        operation="resolve_unit_cost",
        outcome=CostSource.MISSING.value,
        level=logging.WARNING,
        item_id=item_id,
    )
    return UnitCost(unit_cost=Decimal("0"), source=CostSource.MISSING)
