"""
Database models package.

This package contains the SQLAlchemy ORM models the costing engine reads.
"""

from .base import Base, BaseModel
from .enums import MovementType, CostSource, MarginBand
from .item import Item
from .stock_movement import StockMovement
from .recipe import Recipe, RecipeIngredient
from .pos_mapping import PosItemMapping

__all__ = [
    "Base",
    "BaseModel",
    # Enums
    "MovementType",
    "CostSource",
    "MarginBand",
    # Inventory
    "Item",
    "StockMovement",
    # Recipes
    "Recipe",
    "RecipeIngredient",
    # POS
    "PosItemMapping",
]
