"""
StockMovement model for inventory movements.

Each record is one movement of stock for one item: a receipt from a
supplier, a waste write-off, a transfer, and so on. Purchase movements
carry the cost paid at that time and drive recipe costing.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    Enum,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from .enums import MovementType
from src.utils.datetime_utils import utc_now


class StockMovement(BaseModel):
    """
    Stock movement for a single item.

    This model is IMMUTABLE after creation - no updated_at field. Movements
    are inserted atomically by the invoice and stock-count layers and are
    never edited or deleted by the costing engine.

    Attributes:
        item_id: Foreign key to Item (RESTRICT delete)
        movement_type: Kind of movement (see MovementType)
        quantity: Quantity moved, in the item's unit
        cost_price: Unit cost recorded on the movement (purchases only)
        reference_type: Source document type (e.g., "invoice")
        reference_id: Source document identifier
        notes: Optional notes
        created_at: When the movement was recorded (ordering key)
    """

    __tablename__ = "stock_movements"

    # Override BaseModel's updated_at - movements are immutable
    updated_at = None

    item_id = Column(
        Integer,
        ForeignKey("items.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    movement_type = Column(Enum(MovementType), nullable=False, default=MovementType.PURCHASE)
    quantity = Column(Numeric(12, 4), nullable=False)
    cost_price = Column(Numeric(10, 4), nullable=True)

    reference_type = Column(String(50), nullable=True)
    reference_id = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utc_now)

    # Relationships
    item = relationship("Item", back_populates="stock_movements")

    __table_args__ = (
        Index("idx_stock_movement_item_type_created", "item_id", "movement_type", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation of stock movement."""
        return (
            f"StockMovement(id={self.id}, item_id={self.item_id}, "
            f"type={self.movement_type}, cost_price={self.cost_price})"
        )
