"""
Recipe cost resolution engine.

Resolves recipe costs over the sub-recipe graph from live stock movement
data:

- cost_source: unit cost of one item (movement, static cost, or missing)
- line_cost: cost of one ingredient line
- aggregator: recursive recipe cost with cycle detection and memoization
- profitability: profit, margin and food cost projections
"""

from src.services.costing.aggregator import CostingRequest, resolve_recipe_cost
from src.services.costing.cost_source import resolve_unit_cost
from src.services.costing.data_source import CostingDataSource
from src.services.costing.line_cost import resolve_line_cost
from src.services.costing.profitability import classify_food_cost, classify_margin, project
from src.services.costing.traversal import EMPTY_PATH, TraversalGuard, VisitPath
from src.services.costing.types import (
    BatchCostResult,
    IngredientLine,
    IngredientReference,
    ItemRef,
    LineCost,
    Profitability,
    RecipeCostResult,
    RecipeData,
    SubRecipeRef,
    UnitCost,
)

__all__ = [
    "BatchCostResult",
    "CostingDataSource",
    "CostingRequest",
    "EMPTY_PATH",
    "IngredientLine",
    "IngredientReference",
    "ItemRef",
    "LineCost",
    "Profitability",
    "RecipeCostResult",
    "RecipeData",
    "SubRecipeRef",
    "TraversalGuard",
    "UnitCost",
    "VisitPath",
    "classify_food_cost",
    "classify_margin",
    "project",
    "resolve_line_cost",
    "resolve_recipe_cost",
    "resolve_unit_cost",
]
