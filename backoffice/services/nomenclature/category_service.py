from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from backoffice.models.nomenclature.category import Category
from backoffice.models.nomenclature.product import Product
from backoffice.schemas.nomenclature.category import CategoryCreate, CategoryUpdate
from backoffice.core.exceptions import ConflictError, NotFoundError, ValidationError

class CategoryService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_category(self, category_data: CategoryCreate) -> Category:
        # Check if parent exists if provided
        if category_data.parent_id:
            await self.get_category(category_data.parent_id)

        await self._ensure_unique_name(category_data.name)

        category = Category(**category_data.model_dump())
        self.db.add(category)
        await self.db.commit()
        return await self.get_category(category.id)

    async def get_category(self, category_id: int) -> Category:
        result = await self.db.execute(
            select(Category)
            .options(selectinload(Category.parent), selectinload(Category.children))
            .where(Category.id == category_id)
            .execution_options(populate_existing=True)
        )
        category = result.scalar_one_or_none()
        if not category:
            raise NotFoundError("Category not found")
        return category

    async def get_categories(self, include_inactive: bool = False) -> List[Category]:
        query = select(Category)
        if not include_inactive:
            query = query.where(Category.is_active == True)
        result = await self.db.execute(query.order_by(Category.sort_order, Category.name))
        return result.scalars().all()

    async def get_category_tree(self, include_inactive: bool = False) -> List[Dict[str, Any]]:
        """Nested category forest built from a single flat query"""
        categories = await self.get_categories(include_inactive)
        nodes = {
            c.id: {"id": c.id, "name": c.name, "parent_id": c.parent_id, "sort_order": c.sort_order, "children": []}
            for c in categories
        }
        roots = []
        for category in categories:
            node = nodes[category.id]
            parent = nodes.get(category.parent_id)
            if parent is not None:
                parent["children"].append(node)
            else:
                roots.append(node)
        return roots

    async def update_category(self, category_id: int, category_data: CategoryUpdate) -> Category:
        category = await self.get_category(category_id)
        update_data = category_data.model_dump(exclude_unset=True)

        if update_data.get("parent_id") is not None:
            await self._check_parent(category_id, update_data["parent_id"])

        if "name" in update_data and update_data["name"] != category.name:
            await self._ensure_unique_name(update_data["name"], exclude_id=category_id)

        for field, value in update_data.items():
            setattr(category, field, value)

        await self.db.commit()
        return await self.get_category(category_id)

    async def move_category(self, category_id: int, new_parent_id: Optional[int]) -> Category:
        category = await self.get_category(category_id)
        if new_parent_id is not None:
            await self._check_parent(category_id, new_parent_id)
        category.parent_id = new_parent_id
        await self.db.commit()
        return await self.get_category(category_id)

    async def delete_category(self, category_id: int) -> None:
        category = await self.get_category(category_id)

        if category.children:
            raise ConflictError("Cannot delete a category that has subcategories")

        products_count = await self.db.scalar(
            select(func.count(Product.id)).where(Product.category_id == category_id)
        )
        if products_count:
            raise ConflictError("Cannot delete a category that contains products")

        await self.db.delete(category)
        await self.db.commit()

    async def get_category_path(self, category_id: int) -> List[Category]:
        """Categories from the root down to ``category_id``"""
        path = []
        current_id = category_id
        while current_id is not None:
            category = await self.db.get(Category, current_id)
            if not category:
                if not path:
                    raise NotFoundError("Category not found")
                break
            path.insert(0, category)
            current_id = category.parent_id
        return path

    async def _check_parent(self, category_id: int, parent_id: int) -> None:
        await self.get_category(parent_id)
        # Walk up from the new parent; reaching the category itself means a cycle
        current_id = parent_id
        while current_id is not None:
            if current_id == category_id:
                raise ValidationError("A category cannot be its own ancestor")
            parent = await self.db.get(Category, current_id)
            current_id = parent.parent_id if parent else None

    async def _ensure_unique_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        query = select(Category).where(Category.name == name)
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)
        existing = await self.db.execute(query)
        if existing.scalar_one_or_none():
            raise ConflictError("Category name already exists")
