from sqlalchemy import Column, Integer, DateTime, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel

class StockBalance(BaseModel):
    __tablename__ = 'stock_balances'

    warehouse_id = Column(Integer, ForeignKey('warehouses.id'), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False, index=True)
    quantity = Column(Numeric(14, 3), nullable=False, default=0)
    avg_price = Column(Numeric(14, 4), nullable=False, default=0)
    total_value = Column(Numeric(16, 2), nullable=False, default=0)
    last_movement_date = Column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint('warehouse_id', 'product_id', name='uq_stock_balance_warehouse_product'),
    )

    # Relationships
    warehouse = relationship("Warehouse", back_populates="stock_balances")
    product = relationship("Product", back_populates="stock_balances")
