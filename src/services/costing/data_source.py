"""
Read-only data provider for the costing engine.

CostingDataSource wraps a SQLAlchemy session and exposes exactly the reads
the engine needs. It never adds, flushes or deletes anything, so it can run
against a read-only replica or projection of the back-office database.
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from src.models import Item, MovementType, PosItemMapping, Recipe, RecipeIngredient, StockMovement
from src.services.costing.types import IngredientLine, RecipeData


def _to_decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class CostingDataSource:
    """Item, stock movement, recipe and POS price reads over one session."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Stock / Item data
    # ------------------------------------------------------------------

    def get_item(self, item_id: int) -> Optional[Item]:
        """Get item by ID, or None."""
        return self.session.get(Item, item_id)

    def get_static_cost(self, item_id: int) -> Optional[Decimal]:
        """Get the item's static reference cost, or None if unset."""
        item = self.get_item(item_id)
        if item is None:
            return None
        return _to_decimal(item.cost_price)

    def get_latest_receipt(self, item_id: int) -> Optional[StockMovement]:
        """
        Get the most recent purchase movement that recorded a cost.

        Ties on created_at go to the highest ID (the most recently inserted
        row).

        Args:
            item_id: Item ID

        Returns:
            StockMovement, or None if the item was never received with a cost
        """
        return (
            self.session.query(StockMovement)
            .filter(
                StockMovement.item_id == item_id,
                StockMovement.movement_type == MovementType.PURCHASE,
                StockMovement.cost_price.isnot(None),
            )
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .first()
        )

    # ------------------------------------------------------------------
    # Recipe / Ingredient data
    # ------------------------------------------------------------------

    def get_recipe(self, recipe_id: int) -> Optional[RecipeData]:
        """Get recipe header by ID, or None."""
        recipe = self.session.get(Recipe, recipe_id)
        if recipe is None:
            return None
        return RecipeData(
            recipe_id=recipe.id,
            name=recipe.name,
            yield_quantity=_to_decimal(recipe.yield_quantity),
            yield_unit=recipe.yield_unit,
            is_sub_recipe=bool(recipe.is_sub_recipe),
            is_active=bool(recipe.is_active),
        )

    def get_ingredient_lines(self, recipe_id: int) -> List[IngredientLine]:
        """Get a recipe's ingredient lines in display order."""
        rows = (
            self.session.query(RecipeIngredient)
            .filter(RecipeIngredient.recipe_id == recipe_id)
            .order_by(RecipeIngredient.sort_order, RecipeIngredient.id)
            .all()
        )
        return [
            IngredientLine(
                line_id=row.id,
                recipe_id=row.recipe_id,
                quantity=_to_decimal(row.quantity),
                unit=row.unit,
                waste_factor=_to_decimal(row.waste_factor),
                item_id=row.item_id,
                sub_recipe_id=row.sub_recipe_id,
                notes=row.notes,
            )
            for row in rows
        ]

    def list_recipe_ids(
        self, include_sub_recipes: bool = True, active_only: bool = False
    ) -> List[int]:
        """
        List recipe IDs ordered by name.

        Args:
            include_sub_recipes: If False, only sellable menu recipes
            active_only: If True, skip inactive recipes

        Returns:
            Recipe IDs
        """
        query = self.session.query(Recipe.id)
        if not include_sub_recipes:
            query = query.filter(Recipe.is_sub_recipe.is_(False))
        if active_only:
            query = query.filter(Recipe.is_active.is_(True))
        return [row.id for row in query.order_by(Recipe.name, Recipe.id).all()]

    # ------------------------------------------------------------------
    # POS pricing
    # ------------------------------------------------------------------

    def get_sale_price(self, recipe_id: int) -> Optional[Decimal]:
        """
        Get the recipe's sale price from its first POS mapping.

        Returns:
            Sale price, or None if the recipe is unmapped or unpriced
        """
        mapping = (
            self.session.query(PosItemMapping)
            .filter(PosItemMapping.recipe_id == recipe_id)
            .order_by(PosItemMapping.id)
            .first()
        )
        if mapping is None:
            return None
        return mapping.sale_price

    def has_pos_mapping(self, recipe_id: int) -> bool:
        """True if the recipe is linked to any POS catalog item."""
        return (
            self.session.query(PosItemMapping.id)
            .filter(PosItemMapping.recipe_id == recipe_id)
            .first()
            is not None
        )
