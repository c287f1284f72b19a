"""
PosItemMapping model: read projection of POS catalog prices.

Mappings are created by the POS synchronization layer when a catalog item
(and optionally one of its variations) is linked to a recipe. The costing
service only reads the prices to obtain a recipe's sale price.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship

from src.utils.constants import CENTS_PER_UNIT

from .base import BaseModel


class PosItemMapping(BaseModel):
    """
    Link between a POS catalog item and a recipe.

    Prices are stored in minor currency units (cents), as the POS reports
    them.

    Attributes:
        recipe_id: Foreign key to Recipe
        catalog_item_id: POS catalog item identifier
        catalog_item_name: POS catalog item name (display only)
        variation_price_cents: Price of the mapped variation, if any
        catalog_price_cents: Price of the catalog item's first variation
    """

    __tablename__ = "pos_item_mappings"

    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    catalog_item_id = Column(String(100), nullable=False)
    catalog_item_name = Column(String(200), nullable=True)

    variation_price_cents = Column(Integer, nullable=True)
    catalog_price_cents = Column(Integer, nullable=True)

    recipe = relationship("Recipe", back_populates="pos_mappings")

    __table_args__ = (Index("idx_pos_mapping_catalog_item", "catalog_item_id"),)

    @property
    def sale_price(self) -> Optional[Decimal]:
        """
        Sale price in major currency units.

        The mapped variation's price wins; otherwise the catalog item's
        first variation price is used. A zero price counts as no price.

        Returns:
            Decimal price, or None if the POS reported no price
        """
        cents = self.variation_price_cents or self.catalog_price_cents
        if not cents:
            return None
        return Decimal(cents) / CENTS_PER_UNIT

    def __repr__(self) -> str:
        """String representation of POS mapping."""
        return (
            f"PosItemMapping(id={self.id}, recipe_id={self.recipe_id}, "
            f"catalog_item_id='{self.catalog_item_id}')"
        )
