from sqlalchemy import Column, Integer, String, Boolean, Text, Date
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel

class Menu(BaseModel):
    __tablename__ = 'menus'

    name = Column(String(200), nullable=False, unique=True)
    description = Column(Text)
    start_date = Column(Date)
    end_date = Column(Date)
    is_active = Column(Boolean, default=True)
    created_by = Column(Integer)  # User ID

    # Relationships
    items = relationship(
        "MenuItem",
        back_populates="menu",
        cascade="all, delete-orphan",
        order_by="MenuItem.sort_order"
    )
    warehouse_links = relationship("WarehouseMenu", back_populates="menu", cascade="all, delete-orphan")
