from sqlalchemy import Column, Integer, String, Boolean, Text, Numeric
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel

class Recipe(BaseModel):
    __tablename__ = 'recipes'

    name = Column(String(200), nullable=False, unique=True)
    description = Column(Text)
    portion_size = Column(Numeric(14, 3), nullable=False, default=1)
    cooking_time = Column(Integer)  # minutes
    difficulty_level = Column(Integer)
    instructions = Column(Text)
    cost_price = Column(Numeric(14, 2), nullable=False, default=0)  # per portion
    margin_percent = Column(Numeric(7, 2), nullable=False, default=0)
    selling_price = Column(Numeric(14, 2))
    is_active = Column(Boolean, default=True)
    created_by = Column(Integer)  # User ID

    # Relationships
    ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.sort_order"
    )
