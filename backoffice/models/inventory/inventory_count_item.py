from sqlalchemy import Column, Integer, Text, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel

class InventoryCountItem(BaseModel):
    __tablename__ = 'inventory_count_items'

    inventory_count_id = Column(Integer, ForeignKey('inventory_counts.id', ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False)
    system_quantity = Column(Numeric(14, 3), nullable=False, default=0)
    actual_quantity = Column(Numeric(14, 3))
    price = Column(Numeric(14, 4), nullable=False, default=0)
    notes = Column(Text)

    # Relationships
    inventory_count = relationship("InventoryCount", back_populates="items")
    product = relationship("Product")
