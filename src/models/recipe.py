"""
Recipe models for menu items and sub-recipes.

This module contains:
- Recipe: A costed production unit (sellable menu item or sub-recipe)
- RecipeIngredient: One ingredient line of a recipe, referencing either an
  inventory Item or another Recipe (the sub-recipe edge)
"""

from sqlalchemy import (
    Column,
    String,
    Integer,
    Text,
    Numeric,
    ForeignKey,
    Index,
    Boolean,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class Recipe(BaseModel):
    """
    Recipe model representing menu items and sub-recipes.

    Attributes:
        name: Recipe name (required)
        description: Optional description
        yield_quantity: Quantity one batch produces. Nullable at the schema
            level; the costing engine treats a missing or zero yield as a
            missing-cost condition.
        yield_unit: Unit of yield (e.g., "portion", "pieces", "l")
        is_sub_recipe: True if the recipe is used as an ingredient elsewhere
        is_active: Whether the recipe is on the active menu
    """

    __tablename__ = "recipes"

    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Yield information
    yield_quantity = Column(Numeric(10, 4), nullable=True)
    yield_unit = Column(String(50), nullable=False, default="portion")

    is_sub_recipe = Column(Boolean, nullable=False, default=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Relationships
    recipe_ingredients = relationship(
        "RecipeIngredient",
        foreign_keys="RecipeIngredient.recipe_id",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.sort_order",
        lazy="select",
    )
    used_in = relationship(
        "RecipeIngredient",
        foreign_keys="RecipeIngredient.sub_recipe_id",
        back_populates="sub_recipe",
        lazy="select",  # Only load when accessed
    )
    pos_mappings = relationship(
        "PosItemMapping",
        back_populates="recipe",
        order_by="PosItemMapping.id",
        lazy="select",
    )

    def __repr__(self) -> str:
        """String representation of recipe."""
        return f"Recipe(id={self.id}, name='{self.name}', is_sub_recipe={self.is_sub_recipe})"


class RecipeIngredient(BaseModel):
    """
    One ingredient line of a recipe.

    Storage keeps the reference as two nullable foreign keys (item_id and
    sub_recipe_id) because that is how the recipe editor writes it. Exactly
    one of them should be set; the costing engine converts each row into an
    ItemRef or SubRecipeRef and reports rows that break the rule instead of
    trusting them.

    Attributes:
        recipe_id: Foreign key to the parent Recipe
        item_id: Foreign key to Item (direct ingredient)
        sub_recipe_id: Foreign key to Recipe (sub-recipe ingredient)
        quantity: Amount used per batch of the parent recipe
        unit: Unit of the quantity
        waste_factor: Fractional loss (0.05 = 5% trim/spoilage)
        notes: Optional notes (e.g., "diced", "toasted")
        sort_order: Display order within the parent recipe
    """

    __tablename__ = "recipe_ingredients"

    # Foreign keys
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=True)
    sub_recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="RESTRICT"), nullable=True
    )

    # Quantity information
    quantity = Column(Numeric(12, 4), nullable=False)
    unit = Column(String(50), nullable=False)
    waste_factor = Column(Numeric(6, 4), nullable=False, default=0)

    notes = Column(String(500), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    # Relationships
    recipe = relationship(
        "Recipe",
        foreign_keys=[recipe_id],
        back_populates="recipe_ingredients",
    )
    item = relationship("Item", back_populates="recipe_ingredients")
    sub_recipe = relationship(
        "Recipe",
        foreign_keys=[sub_recipe_id],
        back_populates="used_in",
    )

    # Indexes
    __table_args__ = (
        Index("idx_recipe_ingredient_recipe", "recipe_id", "sort_order"),
        Index("idx_recipe_ingredient_item", "item_id"),
        Index("idx_recipe_ingredient_sub_recipe", "sub_recipe_id"),
    )

    def __repr__(self) -> str:
        """String representation of recipe ingredient."""
        return (
            f"RecipeIngredient(recipe_id={self.recipe_id}, "
            f"item_id={self.item_id}, sub_recipe_id={self.sub_recipe_id}, "
            f"quantity={self.quantity}, unit='{self.unit}')"
        )
