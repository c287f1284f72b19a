"""
Ingredient Cost Calculator.

Computes one ingredient line's contribution to its recipe's batch cost:

    effective_quantity = quantity * (1 + waste_factor)
    item line:       cost = effective_quantity * item unit cost
    sub-recipe line: cost = effective_quantity * sub-recipe cost per yield unit

No unit conversion is attempted. A sub-recipe line whose unit differs from
the sub-recipe's yield unit is costed as entered and reported as a warning.
"""

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from src.services.costing import cost_source
from src.services.costing.traversal import VisitPath
from src.services.costing.types import (
    IngredientLine,
    ItemRef,
    LineCost,
    RecipeData,
    SubRecipeRef,
)
from src.services.logging_utils import get_service_logger, log_operation

if TYPE_CHECKING:
    from src.services.costing.aggregator import CostingRequest

logger = get_service_logger(__name__)


def _units_match(line_unit: Optional[str], yield_unit: Optional[str]) -> bool:
    return (line_unit or "").strip().lower() == (yield_unit or "").strip().lower()


def resolve_line_cost(
    line: IngredientLine, visiting: VisitPath, request: "CostingRequest"
) -> LineCost:
    """
    Resolve the cost of one ingredient line.

    Args:
        line: Ingredient line
        visiting: Path of recipes being resolved, ending with line's parent
        request: Request scope (data source, memo, traversal guard)

    Returns:
        LineCost for the line

    Raises:
        InvalidIngredientReference: If the line fails validation
        TraversalLimitExceeded: If a sub-recipe walk exceeds a ceiling
    """
    reference = line.reference()
    effective_quantity = line.effective_quantity

    if isinstance(reference, ItemRef):
        resolved = cost_source.resolve_unit_cost(reference.item_id, request.data_source)
        warnings = ()
        if resolved.missing:
            warnings = (f"Item {reference.item_id} has no cost data (line {line.line_id})",)
        return LineCost(
            line_id=line.line_id,
            reference=reference,
            effective_quantity=effective_quantity,
            unit_cost=resolved.unit_cost,
            cost=effective_quantity * resolved.unit_cost,
            missing_cost_count=1 if resolved.missing else 0,
            source=resolved.source,
            warnings=warnings,
        )

    return _resolve_sub_recipe_line(line, reference, effective_quantity, visiting, request)


def _resolve_sub_recipe_line(
    line: IngredientLine,
    reference: SubRecipeRef,
    effective_quantity: Decimal,
    visiting: VisitPath,
    request: "CostingRequest",
) -> LineCost:
    """Cost a line that uses another recipe as its ingredient."""
    sub_recipe: Optional[RecipeData] = request.get_recipe(reference.recipe_id)
    if sub_recipe is None:
        log_operation(
            logger,
            operation="resolve_line_cost",
            outcome="sub_recipe_not_found",
            level=logging.WARNING,
            line_id=line.line_id,
            sub_recipe_id=reference.recipe_id,
        )
        return LineCost(
            line_id=line.line_id,
            reference=reference,
            effective_quantity=effective_quantity,
            unit_cost=Decimal("0"),
            cost=Decimal("0"),
            missing_cost_count=1,
            warnings=(
                f"Sub-recipe {reference.recipe_id} not found (line {line.line_id})",
            ),
        )

    warnings = []
    if not _units_match(line.unit, sub_recipe.yield_unit):
        log_operation(
            logger,
            operation="resolve_line_cost",
            outcome="unit_mismatch",
            level=logging.WARNING,
            line_id=line.line_id,
            line_unit=line.unit,
            sub_recipe_id=sub_recipe.recipe_id,
            yield_unit=sub_recipe.yield_unit,
        )
        warnings.append(
            f"Line {line.line_id} uses '{line.unit}' but sub-recipe "
            f"'{sub_recipe.name}' yields '{sub_recipe.yield_unit}'; no conversion applied"
        )

    sub_result = request.resolve_sub_recipe(sub_recipe.recipe_id, visiting)
    warnings.extend(sub_result.warnings)

    if sub_result.cyclic:
        return LineCost(
            line_id=line.line_id,
            reference=reference,
            effective_quantity=effective_quantity,
            unit_cost=sub_result.cost_per_yield_unit,
            cost=Decimal("0"),
            missing_cost_count=sub_result.missing_cost_count,
            cyclic=True,
            warnings=tuple(warnings),
            invalid_line_ids=sub_result.invalid_line_ids,
        )

    return LineCost(
        line_id=line.line_id,
        reference=reference,
        effective_quantity=effective_quantity,
        unit_cost=sub_result.cost_per_yield_unit,
        cost=effective_quantity * sub_result.cost_per_yield_unit,
        missing_cost_count=sub_result.missing_cost_count,
        warnings=tuple(warnings),
        invalid_line_ids=sub_result.invalid_line_ids,
    )
