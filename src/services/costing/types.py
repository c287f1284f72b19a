"""
Value types for recipe cost resolution.

Everything here is an immutable dataclass so results can be compared for
equality, shared through the per-request memo, and handed to other threads
without copying.

The ingredient reference is a tagged union: an IngredientLine resolves to
exactly one of ItemRef or SubRecipeRef, or raises InvalidIngredientReference.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional, Tuple, Union

from src.models.enums import CostSource
from src.services.exceptions import InvalidIngredientReference, ServiceError
from src.utils.validators import validate_ingredient_line


@dataclass(frozen=True)
class ItemRef:
    """Reference from an ingredient line to an inventory item."""

    item_id: int


@dataclass(frozen=True)
class SubRecipeRef:
    """Reference from an ingredient line to another recipe."""

    recipe_id: int


IngredientReference = Union[ItemRef, SubRecipeRef]


@dataclass(frozen=True)
class RecipeData:
    """Recipe header as the costing engine needs it."""

    recipe_id: int
    name: str
    yield_quantity: Optional[Decimal]
    yield_unit: str
    is_sub_recipe: bool = False
    is_active: bool = True


@dataclass(frozen=True)
class IngredientLine:
    """
    One ingredient line as read from storage.

    item_id and sub_recipe_id are kept raw so bad rows can still be loaded
    and reported; use reference() to get the tagged union.
    """

    line_id: Optional[int]
    recipe_id: int
    quantity: Decimal
    unit: str
    waste_factor: Optional[Decimal] = None
    item_id: Optional[int] = None
    sub_recipe_id: Optional[int] = None
    notes: Optional[str] = None

    def reference(self) -> IngredientReference:
        """
        Validate the line and return what it points at.

        Returns:
            ItemRef or SubRecipeRef

        Raises:
            InvalidIngredientReference: If both or neither reference is set,
                or the quantity or waste factor is negative
        """
        is_valid, errors = validate_ingredient_line(
            self.item_id, self.sub_recipe_id, self.quantity, self.waste_factor
        )
        if not is_valid:
            raise InvalidIngredientReference(self.line_id, errors)
        if self.item_id is not None:
            return ItemRef(self.item_id)
        return SubRecipeRef(self.sub_recipe_id)

    @property
    def effective_quantity(self) -> Decimal:
        """Quantity including waste: quantity * (1 + waste_factor)."""
        waste = self.waste_factor if self.waste_factor is not None else Decimal("0")
        return Decimal(self.quantity) * (Decimal("1") + Decimal(waste))


@dataclass(frozen=True)
class UnitCost:
    """Resolved unit cost of an item and where it came from."""

    unit_cost: Decimal
    source: CostSource

    @property
    def missing(self) -> bool:
        """True when no cost data exists for the item."""
        return self.source == CostSource.MISSING


@dataclass(frozen=True)
class LineCost:
    """
    Cost contribution of one ingredient line.

    Attributes:
        line_id: RecipeIngredient ID
        reference: What the line points at
        effective_quantity: Quantity including waste
        unit_cost: Item unit cost, or sub-recipe cost per yield unit
        cost: effective_quantity * unit_cost (zero for cyclic lines)
        missing_cost_count: Missing-cost lines under this line (recursive)
        cyclic: True if resolving this line ran into a cycle
        source: Cost source for item lines; None for sub-recipe lines
        warnings: Data-quality messages raised while resolving the line
        invalid_line_ids: Skipped lines inside the sub-recipe (recursive)
    """

    line_id: Optional[int]
    reference: IngredientReference
    effective_quantity: Decimal
    unit_cost: Decimal
    cost: Decimal
    missing_cost_count: int = 0
    cyclic: bool = False
    source: Optional[CostSource] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)
    invalid_line_ids: Tuple[Optional[int], ...] = field(default_factory=tuple)

    @property
    def missing_cost(self) -> bool:
        """True when this line (or anything under it) lacked cost data."""
        return self.missing_cost_count > 0


@dataclass(frozen=True)
class RecipeCostResult:
    """
    Cost breakdown of one recipe.

    Attributes:
        recipe_id: Recipe ID
        total_cost: Batch cost, summed over lines that did not hit a cycle
        cost_per_yield_unit: total_cost / yield_quantity (zero when the
            yield is missing or zero)
        missing_cost_count: Missing-cost lines, summed through sub-recipes
        cyclic: True if any branch of this recipe loops back on itself
        lines: Per-line breakdown, in recipe order
        invalid_line_ids: Lines skipped because they failed validation,
            including those inside sub-recipes
        warnings: Data-quality messages, including those of sub-recipes
    """

    recipe_id: int
    total_cost: Decimal
    cost_per_yield_unit: Decimal
    missing_cost_count: int = 0
    cyclic: bool = False
    lines: Tuple[LineCost, ...] = field(default_factory=tuple)
    invalid_line_ids: Tuple[Optional[int], ...] = field(default_factory=tuple)
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def missing_cost(self) -> bool:
        """True when at least one line lacked cost data."""
        return self.missing_cost_count > 0

    @property
    def is_exact(self) -> bool:
        """True when the figures can be shown without a warning badge."""
        return not (self.missing_cost or self.cyclic or self.invalid_line_ids)

    @classmethod
    def cyclic_stub(cls, recipe_id: int) -> "RecipeCostResult":
        """Result returned when recipe_id is already on the visiting path."""
        return cls(
            recipe_id=recipe_id,
            total_cost=Decimal("0"),
            cost_per_yield_unit=Decimal("0"),
            cyclic=True,
        )


@dataclass(frozen=True)
class Profitability:
    """
    Profit figures for one recipe portion.

    All fields are None when no sale price is known; margin_pct and
    food_cost_pct are None when the sale price is zero.
    """

    profit: Optional[Decimal]
    margin_pct: Optional[Decimal]
    food_cost_pct: Optional[Decimal] = None


@dataclass
class BatchCostResult:
    """
    Outcome of costing several recipes in one request.

    Attributes:
        results: Cost results by recipe ID
        failures: Errors by recipe ID for recipes whose computation was
            aborted (traversal ceiling hit, recipe not found)
    """

    results: Dict[int, RecipeCostResult] = field(default_factory=dict)
    failures: Dict[int, ServiceError] = field(default_factory=dict)
