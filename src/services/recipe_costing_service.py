"""
Recipe Costing Service - Handler-facing costing reads.

This module provides the reads request handlers use to attach cost figures
to recipes:
- Recipe detail: cost breakdown plus profitability
- Recipe list: one batched costing request over many recipes
- Profitability report for menu engineering
- Sale price and "used in" lookups

Session Management Pattern:
- All public functions accept session=None parameter
- If session provided, use it directly
- If session is None, create a new session via session_scope()

Every public call creates its own CostingRequest, so memoized sub-recipe
costs never outlive the read that computed them.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.models import Recipe, RecipeIngredient
from src.models.enums import MarginBand
from src.services.costing import (
    CostingDataSource,
    CostingRequest,
    ItemRef,
    LineCost,
    RecipeCostResult,
    RecipeData,
    classify_food_cost,
    classify_margin,
    project,
)
from src.services.database import session_scope
from src.services.exceptions import DatabaseError, RecipeNotFound, ServiceError
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.constants import (
    FOOD_COST_BUCKETS,
    MONEY_PRECISION,
    PERCENT_PRECISION,
    PERFORMER_COUNT,
    UNIT_COST_PRECISION,
    ZERO,
)

logger = get_service_logger(__name__)


# ============================================================================
# Serialization helpers
# ============================================================================


_UNIT_COST_FIELDS = ("effective_quantity", "unit_cost", "cost_per_yield_unit")
_MONEY_FIELDS = ("cost", "total_cost", "sale_price", "profit", "avg_profit")
_PERCENT_FIELDS = ("margin_pct", "food_cost_pct", "avg_margin", "avg_food_cost")


def _quantize(value: Optional[Decimal], precision: Decimal) -> Optional[Decimal]:
    if value is None:
        return None
    return value.quantize(precision, rounding=ROUND_HALF_UP)


def _round_figures(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Round a serialized row's figures in place for display.

    Unit costs keep 4 places, money and percentages 2. Classification and
    averaging are done on the unrounded values before this is applied.
    """
    for fields, precision in (
        (_UNIT_COST_FIELDS, UNIT_COST_PRECISION),
        (_MONEY_FIELDS, MONEY_PRECISION),
        (_PERCENT_FIELDS, PERCENT_PRECISION),
    ):
        for field in fields:
            if field in data:
                data[field] = _quantize(data[field], precision)
    for line in data.get("lines", ()):
        _round_figures(line)
    return data


def _line_to_dict(line: LineCost) -> Dict[str, Any]:
    if isinstance(line.reference, ItemRef):
        kind = "item"
        target_id = line.reference.item_id
    else:
        kind = "sub_recipe"
        target_id = line.reference.recipe_id

    return {
        "line_id": line.line_id,
        "kind": kind,
        "item_id": target_id if kind == "item" else None,
        "sub_recipe_id": target_id if kind == "sub_recipe" else None,
        "effective_quantity": line.effective_quantity,
        "unit_cost": line.unit_cost,
        "cost": line.cost,
        "source": line.source.value if line.source else None,
        "missing_cost": line.missing_cost,
        "cyclic": line.cyclic,
    }


def _cost_to_dict(
    recipe: RecipeData,
    result: RecipeCostResult,
    sale_price: Optional[Decimal],
) -> Dict[str, Any]:
    """Combine a cost result with its profitability projection."""
    profitability = project(result.cost_per_yield_unit, sale_price)
    return {
        "recipe_id": recipe.recipe_id,
        "name": recipe.name,
        "yield_quantity": recipe.yield_quantity,
        "yield_unit": recipe.yield_unit,
        "is_sub_recipe": recipe.is_sub_recipe,
        "total_cost": result.total_cost,
        "cost_per_yield_unit": result.cost_per_yield_unit,
        "missing_cost_count": result.missing_cost_count,
        "cyclic": result.cyclic,
        "is_exact": result.is_exact,
        "warnings": list(result.warnings),
        "invalid_line_ids": list(result.invalid_line_ids),
        "lines": [_line_to_dict(line) for line in result.lines],
        "sale_price": sale_price,
        "profit": profitability.profit,
        "margin_pct": profitability.margin_pct,
        "food_cost_pct": profitability.food_cost_pct,
        "cost_error": None,
    }


def _failure_to_dict(recipe: Optional[RecipeData], recipe_id: int, error: ServiceError):
    """Row for a recipe whose costing was aborted."""
    return {
        "recipe_id": recipe_id,
        "name": recipe.name if recipe else None,
        "yield_quantity": recipe.yield_quantity if recipe else None,
        "yield_unit": recipe.yield_unit if recipe else None,
        "is_sub_recipe": recipe.is_sub_recipe if recipe else None,
        "total_cost": None,
        "cost_per_yield_unit": None,
        "missing_cost_count": None,
        "cyclic": None,
        "is_exact": False,
        "warnings": [],
        "invalid_line_ids": [],
        "lines": [],
        "sale_price": None,
        "profit": None,
        "margin_pct": None,
        "food_cost_pct": None,
        "cost_error": str(error),
    }


# ============================================================================
# Recipe detail
# ============================================================================


def get_recipe_cost(recipe_id: int, session: Optional[Session] = None) -> Dict[str, Any]:
    """
    Cost one recipe for its detail view.

    Args:
        recipe_id: Recipe ID
        session: Optional session for transaction sharing

    Returns:
        Dictionary with the cost breakdown, warning flags and, where the
        recipe has a POS price, profit / margin_pct / food_cost_pct

    Raises:
        RecipeNotFound: If recipe doesn't exist
        TraversalLimitExceeded: If the sub-recipe graph is too deep or wide
        DatabaseError: If database operation fails
    """
    try:
        if session is not None:
            return _get_recipe_cost_impl(recipe_id, session)
        with session_scope() as session:
            return _get_recipe_cost_impl(recipe_id, session)

    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to cost recipe {recipe_id}", e)


def _get_recipe_cost_impl(recipe_id: int, session: Session) -> Dict[str, Any]:
    """Internal implementation of get_recipe_cost."""
    data_source = CostingDataSource(session)
    request = CostingRequest(data_source)

    result = request.cost_recipe(recipe_id)
    recipe = request.get_recipe(recipe_id)

    log_operation(
        logger,
        operation="get_recipe_cost",
        outcome="success" if result.is_exact else "inexact",
        level=logging.DEBUG,
        recipe_id=recipe_id,
        missing_cost_count=result.missing_cost_count,
        cyclic=result.cyclic,
    )
    return _round_figures(_cost_to_dict(recipe, result, data_source.get_sale_price(recipe_id)))


# ============================================================================
# Recipe list
# ============================================================================


def get_recipes_with_costs(
    recipe_ids: Optional[List[int]] = None,
    include_sub_recipes: bool = True,
    active_only: bool = False,
    session: Optional[Session] = None,
) -> List[Dict[str, Any]]:
    """
    Cost many recipes in one batched request.

    Shared sub-recipes are costed once for the whole list. A recipe whose
    traversal ceiling is hit is returned with cost_error set and null
    figures; the other recipes are unaffected.

    Args:
        recipe_ids: Recipes to cost (default: all recipes matching filters)
        include_sub_recipes: If False, only sellable menu recipes
        active_only: If True, skip inactive recipes
        session: Optional session for transaction sharing

    Returns:
        List of cost dictionaries in recipe_ids order (by name by default)

    Raises:
        DatabaseError: If database operation fails
    """
    try:
        if session is not None:
            return _get_recipes_with_costs_impl(
                recipe_ids, include_sub_recipes, active_only, session
            )
        with session_scope() as session:
            return _get_recipes_with_costs_impl(
                recipe_ids, include_sub_recipes, active_only, session
            )

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to cost recipes", e)


def _get_recipes_with_costs_impl(
    recipe_ids: Optional[List[int]],
    include_sub_recipes: bool,
    active_only: bool,
    session: Session,
) -> List[Dict[str, Any]]:
    """Internal implementation of get_recipes_with_costs."""
    return [
        _round_figures(row)
        for row in _cost_rows(recipe_ids, include_sub_recipes, active_only, session)
    ]


def _cost_rows(
    recipe_ids: Optional[List[int]],
    include_sub_recipes: bool,
    active_only: bool,
    session: Session,
) -> List[Dict[str, Any]]:
    """Unrounded cost rows for a batch of recipes."""
    data_source = CostingDataSource(session)
    if recipe_ids is None:
        recipe_ids = data_source.list_recipe_ids(
            include_sub_recipes=include_sub_recipes, active_only=active_only
        )

    request = CostingRequest(data_source)
    batch = request.cost_many(recipe_ids)

    rows = []
    for recipe_id in recipe_ids:
        recipe = request.get_recipe(recipe_id)
        if recipe_id in batch.failures:
            rows.append(_failure_to_dict(recipe, recipe_id, batch.failures[recipe_id]))
            continue
        rows.append(
            _cost_to_dict(
                recipe, batch.results[recipe_id], data_source.get_sale_price(recipe_id)
            )
        )
    return rows


# ============================================================================
# Profitability report
# ============================================================================


def _average(values: List[Optional[Decimal]]) -> Decimal:
    """Average with undefined values counted as zero (0 for an empty list)."""
    if not values:
        return ZERO
    return sum((v if v is not None else ZERO for v in values), ZERO) / len(values)


def get_profitability_report(session: Optional[Session] = None) -> Dict[str, Any]:
    """
    Build the menu-engineering profitability report.

    Covers every menu (non-sub-recipe) recipe. Averages, the food cost
    distribution and the performer lists only consider recipes linked to a
    POS item.

    Args:
        session: Optional session for transaction sharing

    Returns:
        Dictionary with keys summary, margin_distribution,
        food_cost_distribution, top_performers, bottom_performers, recipes
        and failures

    Raises:
        DatabaseError: If database operation fails
    """
    try:
        if session is not None:
            return _get_profitability_report_impl(session)
        with session_scope() as session:
            return _get_profitability_report_impl(session)

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to build profitability report", e)


def _get_profitability_report_impl(session: Session) -> Dict[str, Any]:
    """Internal implementation of get_profitability_report."""
    data_source = CostingDataSource(session)
    rows = _cost_rows(None, False, False, session)

    recipes = []
    failures = []
    for row in rows:
        if row["cost_error"] is not None:
            failures.append(
                {"recipe_id": row["recipe_id"], "name": row["name"], "error": row["cost_error"]}
            )
            continue
        row["has_pos_mapping"] = data_source.has_pos_mapping(row["recipe_id"])
        band = classify_margin(row["margin_pct"])
        row["margin_band"] = band.value if band else None
        recipes.append(row)

    linked = [row for row in recipes if row["has_pos_mapping"]]

    margin_distribution = {band.value: 0 for band in MarginBand}
    for row in recipes:
        if row["margin_band"] is not None:
            margin_distribution[row["margin_band"]] += 1

    food_cost_distribution = {key: 0 for key, _, _ in FOOD_COST_BUCKETS}
    for row in linked:
        bucket = classify_food_cost(row["food_cost_pct"])
        if bucket is not None:
            food_cost_distribution[bucket] += 1

    by_margin = sorted(
        linked,
        key=lambda row: row["margin_pct"] if row["margin_pct"] is not None else ZERO,
        reverse=True,
    )

    report = {
        "summary": {
            "total_recipes": len(recipes),
            "linked_to_pos": len(linked),
            "avg_margin": _average([row["margin_pct"] for row in linked]),
            "avg_food_cost": _average([row["food_cost_pct"] for row in linked]),
            "avg_profit": _average([row["profit"] for row in linked]),
        },
        "margin_distribution": margin_distribution,
        "food_cost_distribution": food_cost_distribution,
        "top_performers": by_margin[:PERFORMER_COUNT],
        "bottom_performers": list(reversed(by_margin[-PERFORMER_COUNT:])),
        "recipes": recipes,
        "failures": failures,
    }
    _round_figures(report["summary"])
    for row in recipes:
        _round_figures(row)

    log_operation(
        logger,
        operation="get_profitability_report",
        outcome="success",
        total_recipes=len(recipes),
        linked_to_pos=len(linked),
        failure_count=len(failures),
    )
    return report


# ============================================================================
# Lookups
# ============================================================================


def get_sale_price(recipe_id: int, session: Optional[Session] = None) -> Optional[Decimal]:
    """
    Get a recipe's sale price from its POS mapping.

    Args:
        recipe_id: Recipe ID
        session: Optional session for transaction sharing

    Returns:
        Sale price, or None if the recipe has no priced POS mapping

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        if session is not None:
            return _get_sale_price_impl(recipe_id, session)
        with session_scope() as session:
            return _get_sale_price_impl(recipe_id, session)

    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve sale price for recipe {recipe_id}", e)


def _get_sale_price_impl(recipe_id: int, session: Session) -> Optional[Decimal]:
    data_source = CostingDataSource(session)
    if data_source.get_recipe(recipe_id) is None:
        raise RecipeNotFound(recipe_id)
    return data_source.get_sale_price(recipe_id)


def get_recipes_using_sub_recipe(
    recipe_id: int, session: Optional[Session] = None
) -> List[Recipe]:
    """
    Get recipes that use a recipe as a sub-recipe ingredient.

    Args:
        recipe_id: Sub-recipe ID
        session: Optional session for transaction sharing

    Returns:
        Parent recipes ordered by name (each listed once)

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        if session is not None:
            return _get_recipes_using_sub_recipe_impl(recipe_id, session)
        with session_scope() as session:
            return _get_recipes_using_sub_recipe_impl(recipe_id, session)

    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve recipes using recipe {recipe_id}", e)


def _get_recipes_using_sub_recipe_impl(recipe_id: int, session: Session) -> List[Recipe]:
    if session.get(Recipe, recipe_id) is None:
        raise RecipeNotFound(recipe_id)

    return (
        session.query(Recipe)
        .join(RecipeIngredient, RecipeIngredient.recipe_id == Recipe.id)
        .filter(RecipeIngredient.sub_recipe_id == recipe_id)
        .distinct()
        .order_by(Recipe.name, Recipe.id)
        .all()
    )
