from sqlalchemy import Column, Integer, String, Boolean, Text
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel

class MenuCategory(BaseModel):
    __tablename__ = 'menu_categories'

    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text)
    sort_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)

    # Relationships
    items = relationship("MenuItem", back_populates="category")
