"""
Recipe Cost Aggregator.

Recursively resolves a recipe's batch cost, cost per yield unit, missing
cost count and cycle flag over the sub-recipe graph.

Request scope:
- A CostingRequest owns the memo of completed results, a cache of recipe
  headers, and the traversal guard of the top-level recipe being resolved.
  It lives for one read (a recipe detail view or one menu-wide pass) and is
  then discarded, so stock movements recorded between reads are always
  picked up. Nothing here is process-wide.
- The visiting path is passed by value down each call chain; see
  traversal.VisitPath.

Memo policy:
- Only results with cyclic=False are memoized. A subtree that never met a
  recipe already on the path costs the same from any path. A cyclic result
  depends on the path it was reached from and is recomputed.
- Each entry keeps its subtree height and distinct recipe IDs. A memo hit
  is charged against both ceilings, so a recipe fails in a batch exactly
  when it would fail on its own.
"""

import logging
from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, List, Optional

from src.services.costing import line_cost
from src.services.costing.data_source import CostingDataSource
from src.services.costing.traversal import EMPTY_PATH, TraversalGuard, VisitPath
from src.services.costing.types import (
    BatchCostResult,
    RecipeCostResult,
    RecipeData,
    SubRecipeRef,
)
from src.services.exceptions import (
    InvalidIngredientReference,
    RecipeNotFound,
    TraversalLimitExceeded,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.config import get_config
from src.utils.validators import validate_yield_quantity

logger = get_service_logger(__name__)

_NOT_LOADED = object()


class CostingRequest:
    """
    Scope of one costing read.

    Args:
        data_source: Read-only data provider
        max_depth: Depth ceiling (default from config)
        max_expansions: Expansions per top-level recipe (default from config)
    """

    def __init__(
        self,
        data_source: CostingDataSource,
        max_depth: Optional[int] = None,
        max_expansions: Optional[int] = None,
    ):
        config = get_config()
        self.data_source = data_source
        self.max_depth = max_depth if max_depth is not None else config.max_recipe_depth
        self.max_expansions = (
            max_expansions if max_expansions is not None else config.max_recipe_expansions
        )
        self._memo: Dict[int, RecipeCostResult] = {}
        self._heights: Dict[int, int] = {}
        self._subtrees: Dict[int, FrozenSet[int]] = {}
        self._recipes: Dict[int, object] = {}
        self.guard = TraversalGuard(self.max_depth, self.max_expansions)

    # ------------------------------------------------------------------
    # Request-scoped caches
    # ------------------------------------------------------------------

    def get_recipe(self, recipe_id: int) -> Optional[RecipeData]:
        """Recipe header, loaded at most once per request."""
        cached = self._recipes.get(recipe_id, _NOT_LOADED)
        if cached is _NOT_LOADED:
            cached = self.data_source.get_recipe(recipe_id)
            self._recipes[recipe_id] = cached
        return cached

    def memo_get(self, recipe_id: int, visiting: VisitPath) -> Optional[RecipeCostResult]:
        """
        Look up a completed result.

        The stored subtree height is checked against the depth ceiling and
        its recipes are charged to the expansion ceiling, so a memo hit fails
        the same way a fresh walk from this path would.

        Raises:
            TraversalLimitExceeded: If the memoized subtree is too deep to
                hang below visiting, or brings in too many recipes
        """
        result = self._memo.get(recipe_id)
        if result is None:
            return None
        height = self._heights.get(recipe_id, 1)
        if visiting.depth + height > self.max_depth:
            raise TraversalLimitExceeded(
                recipe_id, visiting.ids + (recipe_id,), "depth", self.max_depth
            )
        self.guard.charge_memoized(visiting.extend(recipe_id), self.subtree_of(recipe_id))
        return result

    def memo_put(
        self, result: RecipeCostResult, height: int, subtree: FrozenSet[int]
    ) -> None:
        """Store a completed, non-cyclic result."""
        self._memo[result.recipe_id] = result
        self._heights[result.recipe_id] = height
        self._subtrees[result.recipe_id] = subtree
        self.guard.settle(result.recipe_id)

    def height_of(self, recipe_id: int) -> int:
        """Height of a memoized subtree (0 if unknown)."""
        return self._heights.get(recipe_id, 0)

    def subtree_of(self, recipe_id: int) -> FrozenSet[int]:
        """Distinct recipe IDs of a memoized subtree (empty if unknown)."""
        return self._subtrees.get(recipe_id, frozenset())

    @property
    def memo_size(self) -> int:
        """Number of memoized results."""
        return len(self._memo)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def resolve_sub_recipe(self, recipe_id: int, visiting: VisitPath) -> RecipeCostResult:
        """Recurse into a sub-recipe from an ingredient line."""
        return resolve_recipe_cost(recipe_id, self, visiting)

    def cost_recipe(self, recipe_id: int) -> RecipeCostResult:
        """
        Resolve one top-level recipe.

        Raises:
            RecipeNotFound: If the recipe doesn't exist
            TraversalLimitExceeded: If a traversal ceiling is hit
        """
        if self.get_recipe(recipe_id) is None:
            raise RecipeNotFound(recipe_id)
        return resolve_recipe_cost(recipe_id, self)

    def cost_many(self, recipe_ids: Iterable[int]) -> BatchCostResult:
        """
        Resolve several top-level recipes sharing this request's memo.

        A recipe whose computation aborts is recorded in failures; the
        remaining recipes are still costed.
        """
        batch = BatchCostResult()
        recipe_ids = list(recipe_ids)

        for recipe_id in recipe_ids:
            try:
                batch.results[recipe_id] = self.cost_recipe(recipe_id)
            except (RecipeNotFound, TraversalLimitExceeded) as e:
                log_operation(
                    logger,
                    operation="cost_many",
                    outcome="recipe_failed",
                    level=logging.WARNING,
                    recipe_id=recipe_id,
                    error=str(e),
                )
                batch.failures[recipe_id] = e

        log_operation(
            logger,
            operation="cost_many",
            outcome="success" if not batch.failures else "partial",
            recipe_count=len(recipe_ids),
            failure_count=len(batch.failures),
            memoized=self.memo_size,
        )
        return batch


def _dedupe(messages: List[str]) -> tuple:
    seen = set()
    result = []
    for message in messages:
        if message not in seen:
            seen.add(message)
            result.append(message)
    return tuple(result)


def resolve_recipe_cost(
    recipe_id: int,
    request: CostingRequest,
    visiting: VisitPath = EMPTY_PATH,
) -> RecipeCostResult:
    """
    Resolve the cost of a recipe, walking into its sub-recipes.

    Calling with an empty visiting path starts a new top-level recipe and
    resets the traversal guard.

    Args:
        recipe_id: Recipe to cost
        request: Request scope
        visiting: Recipes already on the current call chain

    Returns:
        RecipeCostResult (cyclic=True with zero cost if recipe_id is
        already on the path)

    Raises:
        RecipeNotFound: If the recipe doesn't exist
        TraversalLimitExceeded: If a traversal ceiling is hit
    """
    if recipe_id in visiting:
        log_operation(
            logger,
            operation="resolve_recipe_cost",
            outcome="cyclic_reference",
            level=logging.WARNING,
            recipe_id=recipe_id,
            recipe_path=list(visiting.ids) + [recipe_id],
        )
        return RecipeCostResult.cyclic_stub(recipe_id)

    if visiting.depth == 0:
        request.guard = TraversalGuard(request.max_depth, request.max_expansions)

    cached = request.memo_get(recipe_id, visiting)
    if cached is not None:
        log_operation(
            logger,
            operation="resolve_recipe_cost",
            outcome="memo_hit",
            level=logging.DEBUG,
            recipe_id=recipe_id,
        )
        return cached

    path = visiting.extend(recipe_id)
    request.guard.enter(path)

    recipe = request.get_recipe(recipe_id)
    if recipe is None:
        raise RecipeNotFound(recipe_id)

    total_cost = Decimal("0")
    missing_cost_count = 0
    cyclic = False
    line_costs = []
    invalid_line_ids = []
    warnings: List[str] = []
    height = 1
    subtree = {recipe_id}

    for line in request.data_source.get_ingredient_lines(recipe_id):
        try:
            line_result = line_cost.resolve_line_cost(line, path, request)
        except InvalidIngredientReference as e:
            log_operation(
                logger,
                operation="resolve_recipe_cost",
                outcome="invalid_line_skipped",
                level=logging.WARNING,
                recipe_id=recipe_id,
                line_id=line.line_id,
                errors=e.errors,
            )
            invalid_line_ids.append(line.line_id)
            warnings.append(str(e))
            continue

        line_costs.append(line_result)
        missing_cost_count += line_result.missing_cost_count
        invalid_line_ids.extend(line_result.invalid_line_ids)
        warnings.extend(line_result.warnings)

        if line_result.cyclic:
            cyclic = True
            continue

        total_cost += line_result.cost
        if isinstance(line_result.reference, SubRecipeRef):
            height = max(height, 1 + request.height_of(line_result.reference.recipe_id))
            subtree |= request.subtree_of(line_result.reference.recipe_id)

    is_valid, error = validate_yield_quantity(recipe.yield_quantity)
    if is_valid:
        cost_per_yield_unit = total_cost / recipe.yield_quantity
    else:
        missing_cost_count += 1
        cost_per_yield_unit = Decimal("0")
        warnings.append(f"Recipe '{recipe.name}' has no usable yield ({error})")
        log_operation(
            logger,
            operation="resolve_recipe_cost",
            outcome="missing_yield",
            level=logging.WARNING,
            recipe_id=recipe_id,
            yield_quantity=str(recipe.yield_quantity),
        )

    result = RecipeCostResult(
        recipe_id=recipe_id,
        total_cost=total_cost,
        cost_per_yield_unit=cost_per_yield_unit,
        missing_cost_count=missing_cost_count,
        cyclic=cyclic,
        lines=tuple(line_costs),
        invalid_line_ids=tuple(invalid_line_ids),
        warnings=_dedupe(warnings),
    )

    if not cyclic:
        request.memo_put(result, height, frozenset(subtree))

    log_operation(
        logger,
        operation="resolve_recipe_cost",
        outcome="cyclic" if cyclic else "success",
        level=logging.DEBUG,
        recipe_id=recipe_id,
        total_cost=str(total_cost),
        missing_cost_count=missing_cost_count,
    )
    return result
