from sqlalchemy import Column, Integer, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel

class WarehouseMenu(BaseModel):
    """A menu served at a warehouse (kitchen or bar)"""
    __tablename__ = 'warehouse_menus'

    warehouse_id = Column(Integer, ForeignKey('warehouses.id', ondelete="CASCADE"), nullable=False, index=True)
    menu_id = Column(Integer, ForeignKey('menus.id', ondelete="CASCADE"), nullable=False, index=True)
    is_active = Column(Boolean, default=True)

    __table_args__ = (
        UniqueConstraint('warehouse_id', 'menu_id', name='uq_warehouse_menu_warehouse_menu'),
    )

    # Relationships
    warehouse = relationship("Warehouse")
    menu = relationship("Menu", back_populates="warehouse_links")
