"""
Item model for inventory goods.

Items are created and edited by the inventory CRUD layer. The costing
engine only reads them.
"""

from sqlalchemy import Column, String, Text, Numeric, Boolean, Index
from sqlalchemy.orm import relationship

from .base import BaseModel


class Item(BaseModel):
    """
    Inventory good that can be bought, counted, and used in recipes.

    Attributes:
        name: Item name (required)
        description: Optional free text
        unit: Unit of measure stock is kept in (e.g., "kg", "pieces")
        cost_price: Static reference cost per unit, used when the item has
            no purchase movement yet
        last_purchase_cost: Display cache of the latest purchase cost,
            maintained by the invoice layer. Never used for costing.
        is_active: Soft-delete flag
    """

    __tablename__ = "items"

    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    unit = Column(String(50), nullable=False)

    cost_price = Column(Numeric(10, 4), nullable=True)
    last_purchase_cost = Column(Numeric(10, 4), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    stock_movements = relationship(
        "StockMovement",
        back_populates="item",
        lazy="select",
        order_by="StockMovement.id",
    )
    recipe_ingredients = relationship(
        "RecipeIngredient",
        back_populates="item",
        lazy="select",
    )

    __table_args__ = (Index("idx_item_name_unit", "name", "unit"),)

    def __repr__(self) -> str:
        """String representation of item."""
        return f"Item(id={self.id}, name='{self.name}', unit='{self.unit}')"
