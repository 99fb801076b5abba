from sqlalchemy import Column, Integer, String, Boolean, Text, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel

class Product(BaseModel):
    __tablename__ = 'products'

    name = Column(String(200), nullable=False, index=True)
    article = Column(String(50), unique=True, nullable=True, index=True)
    barcode = Column(String(100))
    description = Column(Text)
    category_id = Column(Integer, ForeignKey('categories.id'), nullable=True)
    unit_id = Column(Integer, ForeignKey('units.id'), nullable=False)
    shelf_life_days = Column(Integer)
    storage_conditions = Column(String(255))
    min_stock = Column(Numeric(14, 3), default=0)
    is_active = Column(Boolean, default=True)

    # Relationships
    category = relationship("Category", back_populates="products")
    unit = relationship("Unit", back_populates="products")
    stock_balances = relationship("StockBalance", back_populates="product")
    stock_movements = relationship("StockMovement", back_populates="product")
