from sqlalchemy import Column, Integer, String, Boolean, Text, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel

class MenuItem(BaseModel):
    __tablename__ = 'menu_items'

    menu_id = Column(Integer, ForeignKey('menus.id', ondelete="CASCADE"), index=True)
    category_id = Column(Integer, ForeignKey('menu_categories.id'), nullable=False, index=True)
    recipe_id = Column(Integer, ForeignKey('recipes.id'), index=True)  # None for items sold without cooking
    name = Column(String(200), nullable=False)
    description = Column(Text)
    price = Column(Numeric(14, 2), nullable=False)
    cost_price = Column(Numeric(14, 2))
    image_url = Column(String(500))
    is_available = Column(Boolean, default=True)
    is_active = Column(Boolean, default=True)
    sort_order = Column(Integer, default=0)

    __table_args__ = (
        UniqueConstraint('menu_id', 'name', name='uq_menu_item_menu_name'),
    )

    # Relationships
    menu = relationship("Menu", back_populates="items")
    category = relationship("MenuCategory", back_populates="items")
    recipe = relationship("Recipe")
