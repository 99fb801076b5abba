import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload

from backoffice.models.menu.menu import Menu
from backoffice.models.menu.menu_category import MenuCategory
from backoffice.models.menu.menu_item import MenuItem
from backoffice.models.menu.warehouse_menu import WarehouseMenu
from backoffice.models.recipe.recipe import Recipe
from backoffice.models.warehouse.warehouse import Warehouse
from backoffice.schemas.menu.menu import (
    MenuCategoryCreate, MenuCategoryUpdate, MenuCreate, MenuItemCreate, MenuItemUpdate,
    MenuUpdate, WarehouseMenuCreate, WarehouseMenuUpdate
)
from backoffice.services.recipe.recipe_service import RecipeService
from backoffice.core.exceptions import ConflictError, NotFoundError, ValidationError
from backoffice.utils.decimals import money

logger = logging.getLogger(__name__)

def _page(page_index: int, page_size: int, total: int, rows) -> Dict[str, Any]:
    return {
        "page_index": page_index,
        "page_size": page_size,
        "count": total,
        "data": rows
    }

class MenuService:
    """Menus, their categories and items, and the warehouses that serve them"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # Categories

    async def create_category(self, category_data: MenuCategoryCreate) -> MenuCategory:
        await self._ensure_unique_category_name(category_data.name)

        category = MenuCategory(**category_data.model_dump())
        self.db.add(category)
        await self.db.commit()

        logger.info(f"Menu category created: {category.name} ({category.id})")
        return await self.get_category(category.id)

    async def get_category(self, category_id: int) -> MenuCategory:
        result = await self.db.execute(
            select(MenuCategory)
            .where(MenuCategory.id == category_id)
            .execution_options(populate_existing=True)
        )
        category = result.scalar_one_or_none()
        if not category:
            raise NotFoundError("Menu category not found")
        return category

    async def get_categories(
        self,
        page_index: int = 1,
        page_size: int = 100,
        search: Optional[str] = None,
        is_active: Optional[bool] = None
    ) -> Dict[str, Any]:
        query = select(MenuCategory)
        if search:
            query = query.where(MenuCategory.name.ilike(f"%{search}%"))
        if is_active is not None:
            query = query.where(MenuCategory.is_active == is_active)

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))

        skip = (page_index - 1) * page_size
        result = await self.db.execute(
            query.order_by(MenuCategory.sort_order, MenuCategory.name).offset(skip).limit(page_size)
        )
        return _page(page_index, page_size, total, result.scalars().all())

    async def update_category(self, category_id: int, category_data: MenuCategoryUpdate) -> MenuCategory:
        category = await self.get_category(category_id)
        update_data = category_data.model_dump(exclude_unset=True)

        if "name" in update_data and update_data["name"] != category.name:
            await self._ensure_unique_category_name(update_data["name"], exclude_id=category_id)
        for field, value in update_data.items():
            setattr(category, field, value)

        await self.db.commit()
        return await self.get_category(category_id)

    async def delete_category(self, category_id: int) -> None:
        category = await self.get_category(category_id)
        used = await self.db.scalar(select(func.count(MenuItem.id)).where(MenuItem.category_id == category_id))
        if used:
            raise ConflictError("Cannot delete a menu category that holds menu items")

        await self.db.delete(category)
        await self.db.commit()
        logger.info(f"Menu category deleted: {category_id}")

    # Menus

    async def create_menu(self, menu_data: MenuCreate, current_user_id: Optional[int] = None) -> Menu:
        await self._ensure_unique_menu_name(menu_data.name)

        menu = Menu(**menu_data.model_dump(), created_by=current_user_id)
        self.db.add(menu)
        await self.db.commit()

        logger.info(f"Menu created: {menu.name} ({menu.id})")
        return await self.get_menu(menu.id)

    async def get_menu(self, menu_id: int) -> Menu:
        result = await self.db.execute(
            select(Menu)
            .options(
                selectinload(Menu.items).selectinload(MenuItem.category),
                selectinload(Menu.items).selectinload(MenuItem.recipe)
            )
            .where(Menu.id == menu_id)
            .execution_options(populate_existing=True)
        )
        menu = result.scalar_one_or_none()
        if not menu:
            raise NotFoundError("Menu not found")
        return menu

    async def get_menus(
        self,
        page_index: int = 1,
        page_size: int = 100,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None
    ) -> Dict[str, Any]:
        """Menus whose validity period overlaps [date_from, date_to]; open ends always overlap"""
        query = select(Menu)
        if search:
            query = query.where(or_(
                Menu.name.ilike(f"%{search}%"),
                Menu.description.ilike(f"%{search}%")
            ))
        if is_active is not None:
            query = query.where(Menu.is_active == is_active)
        if date_from:
            query = query.where(or_(Menu.end_date.is_(None), Menu.end_date >= date_from))
        if date_to:
            query = query.where(or_(Menu.start_date.is_(None), Menu.start_date <= date_to))

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))

        skip = (page_index - 1) * page_size
        result = await self.db.execute(query.order_by(Menu.name).offset(skip).limit(page_size))
        return _page(page_index, page_size, total, result.scalars().all())

    async def update_menu(self, menu_id: int, menu_data: MenuUpdate) -> Menu:
        menu = await self.get_menu(menu_id)
        update_data = menu_data.model_dump(exclude_unset=True)

        if "name" in update_data and update_data["name"] != menu.name:
            await self._ensure_unique_menu_name(update_data["name"], exclude_id=menu_id)

        start_date = update_data.get("start_date", menu.start_date)
        end_date = update_data.get("end_date", menu.end_date)
        if start_date and end_date and end_date < start_date:
            raise ValidationError("End date cannot be before start date")

        for field, value in update_data.items():
            setattr(menu, field, value)

        await self.db.commit()
        return await self.get_menu(menu_id)

    async def delete_menu(self, menu_id: int) -> None:
        """Delete a menu together with its items and warehouse links"""
        menu = await self.get_menu(menu_id)
        await self.db.delete(menu)
        await self.db.commit()
        logger.info(f"Menu deleted: {menu_id}")

    # Items

    async def create_item(self, item_data: MenuItemCreate) -> MenuItem:
        recipe = await self._validate_item_references(item_data.menu_id, item_data.category_id, item_data.recipe_id)
        await self._ensure_unique_item_name(item_data.menu_id, item_data.name)

        item = MenuItem(**item_data.model_dump())
        item.price = money(item.price)
        if item.cost_price is not None:
            item.cost_price = money(item.cost_price)
        elif recipe is not None:
            item.cost_price = money(recipe.cost_price)
        self.db.add(item)
        await self.db.commit()

        logger.info(f"Menu item created: {item.name} ({item.id})")
        return await self.get_item(item.id)

    async def get_item(self, item_id: int) -> MenuItem:
        result = await self.db.execute(
            select(MenuItem)
            .options(selectinload(MenuItem.category), selectinload(MenuItem.recipe))
            .where(MenuItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        item = result.scalar_one_or_none()
        if not item:
            raise NotFoundError("Menu item not found")
        return item

    async def get_items(
        self,
        page_index: int = 1,
        page_size: int = 100,
        search: Optional[str] = None,
        menu_id: Optional[int] = None,
        category_id: Optional[int] = None,
        recipe_id: Optional[int] = None,
        is_available: Optional[bool] = None,
        is_active: Optional[bool] = None,
        price_min: Optional[Decimal] = None,
        price_max: Optional[Decimal] = None
    ) -> Dict[str, Any]:
        query = select(MenuItem)
        if search:
            query = query.where(or_(
                MenuItem.name.ilike(f"%{search}%"),
                MenuItem.description.ilike(f"%{search}%")
            ))
        if menu_id:
            query = query.where(MenuItem.menu_id == menu_id)
        if category_id:
            query = query.where(MenuItem.category_id == category_id)
        if recipe_id:
            query = query.where(MenuItem.recipe_id == recipe_id)
        if is_available is not None:
            query = query.where(MenuItem.is_available == is_available)
        if is_active is not None:
            query = query.where(MenuItem.is_active == is_active)
        if price_min is not None:
            query = query.where(MenuItem.price >= price_min)
        if price_max is not None:
            query = query.where(MenuItem.price <= price_max)

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))

        skip = (page_index - 1) * page_size
        result = await self.db.execute(
            query.options(selectinload(MenuItem.category), selectinload(MenuItem.recipe))
            .order_by(MenuItem.sort_order, MenuItem.name)
            .offset(skip).limit(page_size)
        )
        return _page(page_index, page_size, total, result.scalars().all())

    async def update_item(self, item_id: int, item_data: MenuItemUpdate) -> MenuItem:
        item = await self.get_item(item_id)
        update_data = item_data.model_dump(exclude_unset=True)

        menu_id = update_data.get("menu_id", item.menu_id)
        recipe = await self._validate_item_references(
            menu_id,
            update_data.get("category_id", item.category_id),
            update_data.get("recipe_id", item.recipe_id)
        )
        name = update_data.get("name", item.name)
        if (name, menu_id) != (item.name, item.menu_id):
            await self._ensure_unique_item_name(menu_id, name, exclude_id=item_id)

        # A new recipe brings its own cost unless one is given
        recipe_changed = "recipe_id" in update_data and update_data["recipe_id"] != item.recipe_id
        if recipe_changed and recipe is not None and "cost_price" not in update_data:
            update_data["cost_price"] = money(recipe.cost_price)
        for field in ("price", "cost_price"):
            if update_data.get(field) is not None:
                update_data[field] = money(update_data[field])

        for field, value in update_data.items():
            setattr(item, field, value)

        await self.db.commit()
        return await self.get_item(item_id)

    async def delete_item(self, item_id: int) -> None:
        item = await self.get_item(item_id)
        await self.db.delete(item)
        await self.db.commit()
        logger.info(f"Menu item deleted: {item_id}")

    async def check_item_availability(
        self,
        item_id: int,
        warehouse_id: int,
        quantity: Decimal = Decimal("1")
    ) -> Dict[str, Any]:
        """Whether a warehouse can serve ``quantity`` portions of a menu item.

        An item without a recipe is sold as is and needs no ingredients. Otherwise
        the recipe's ingredient stock decides, and the short ingredients are listed.
        """
        if quantity <= 0:
            raise ValidationError("Quantity must be positive")
        item = await self.get_item(item_id)
        if not await self.db.get(Warehouse, warehouse_id):
            raise NotFoundError("Warehouse not found")

        missing: List[Dict[str, Any]] = []
        can_produce = True
        if item.recipe_id is not None:
            availability = await RecipeService(self.db).check_availability(item.recipe_id, warehouse_id, quantity)
            can_produce = availability["can_produce"]
            missing = [line for line in availability["ingredients"] if not line["is_available"]]

        return {
            "menu_item_id": item.id,
            "menu_item_name": item.name,
            "warehouse_id": warehouse_id,
            "quantity": quantity,
            "is_available": bool(item.is_active and item.is_available and can_produce),
            "missing_ingredients": missing,
        }

    # Warehouse menus

    async def get_warehouse_menus(self, warehouse_id: int) -> List[WarehouseMenu]:
        await self._get_warehouse(warehouse_id)
        result = await self.db.execute(
            select(WarehouseMenu)
            .join(Menu, Menu.id == WarehouseMenu.menu_id)
            .options(selectinload(WarehouseMenu.warehouse), selectinload(WarehouseMenu.menu))
            .where(WarehouseMenu.warehouse_id == warehouse_id)
            .order_by(Menu.name)
        )
        return result.scalars().all()

    async def add_warehouse_menu(self, warehouse_id: int, link_data: WarehouseMenuCreate) -> WarehouseMenu:
        await self._get_warehouse(warehouse_id)
        if not await self.db.get(Menu, link_data.menu_id):
            raise ValidationError("Menu not found")

        existing = await self.db.scalar(
            select(WarehouseMenu.id).where(
                WarehouseMenu.warehouse_id == warehouse_id,
                WarehouseMenu.menu_id == link_data.menu_id
            )
        )
        if existing:
            raise ConflictError("The menu is already linked to this warehouse")

        link = WarehouseMenu(warehouse_id=warehouse_id, menu_id=link_data.menu_id, is_active=link_data.is_active)
        self.db.add(link)
        await self.db.commit()

        logger.info(f"Menu {link_data.menu_id} linked to warehouse {warehouse_id}")
        return await self._get_warehouse_menu(warehouse_id, link_data.menu_id)

    async def update_warehouse_menu(
        self,
        warehouse_id: int,
        menu_id: int,
        link_data: WarehouseMenuUpdate
    ) -> WarehouseMenu:
        link = await self._get_warehouse_menu(warehouse_id, menu_id)
        link.is_active = link_data.is_active
        await self.db.commit()
        return await self._get_warehouse_menu(warehouse_id, menu_id)

    async def remove_warehouse_menu(self, warehouse_id: int, menu_id: int) -> None:
        link = await self._get_warehouse_menu(warehouse_id, menu_id)
        await self.db.delete(link)
        await self.db.commit()
        logger.info(f"Menu {menu_id} unlinked from warehouse {warehouse_id}")

    async def get_available_menu(self, warehouse_id: int, on_date: Optional[date] = None) -> List[Dict[str, Any]]:
        """Active categories with the items a warehouse serves on ``on_date``.

        Only items that are active and available count, and only from menus that are
        active, in their validity period and actively linked to the warehouse.
        """
        await self._get_warehouse(warehouse_id)
        on_date = on_date or date.today()

        served_menus = (
            select(WarehouseMenu.menu_id)
            .join(Menu, Menu.id == WarehouseMenu.menu_id)
            .where(
                WarehouseMenu.warehouse_id == warehouse_id,
                WarehouseMenu.is_active == True,
                Menu.is_active == True,
                or_(Menu.start_date.is_(None), Menu.start_date <= on_date),
                or_(Menu.end_date.is_(None), Menu.end_date >= on_date)
            )
        )
        result = await self.db.execute(
            select(MenuItem)
            .join(MenuCategory, MenuCategory.id == MenuItem.category_id)
            .options(selectinload(MenuItem.category), selectinload(MenuItem.recipe))
            .where(
                MenuItem.menu_id.in_(served_menus),
                MenuItem.is_active == True,
                MenuItem.is_available == True,
                MenuCategory.is_active == True
            )
            .order_by(MenuCategory.sort_order, MenuCategory.name, MenuItem.sort_order, MenuItem.name)
        )

        categories: Dict[int, Dict[str, Any]] = {}
        for item in result.scalars().all():
            entry = categories.setdefault(item.category_id, {
                "id": item.category.id,
                "name": item.category.name,
                "sort_order": item.category.sort_order,
                "items": [],
            })
            entry["items"].append(item)
        return list(categories.values())

    async def _get_warehouse(self, warehouse_id: int) -> Warehouse:
        warehouse = await self.db.get(Warehouse, warehouse_id)
        if not warehouse:
            raise NotFoundError("Warehouse not found")
        return warehouse

    async def _get_warehouse_menu(self, warehouse_id: int, menu_id: int) -> WarehouseMenu:
        result = await self.db.execute(
            select(WarehouseMenu)
            .options(selectinload(WarehouseMenu.warehouse), selectinload(WarehouseMenu.menu))
            .where(WarehouseMenu.warehouse_id == warehouse_id, WarehouseMenu.menu_id == menu_id)
            .execution_options(populate_existing=True)
        )
        link = result.scalar_one_or_none()
        if not link:
            raise NotFoundError("The menu is not linked to this warehouse")
        return link

    async def _validate_item_references(
        self,
        menu_id: Optional[int],
        category_id: int,
        recipe_id: Optional[int]
    ) -> Optional[Recipe]:
        if menu_id is not None and not await self.db.get(Menu, menu_id):
            raise ValidationError("Menu not found")
        if not await self.db.get(MenuCategory, category_id):
            raise ValidationError("Menu category not found")
        if recipe_id is None:
            return None
        recipe = await self.db.get(Recipe, recipe_id)
        if not recipe:
            raise ValidationError("Recipe not found")
        return recipe

    async def _ensure_unique_category_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        query = select(MenuCategory.id).where(MenuCategory.name == name)
        if exclude_id:
            query = query.where(MenuCategory.id != exclude_id)
        if await self.db.scalar(query):
            raise ConflictError("Menu category name already exists")

    async def _ensure_unique_menu_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        query = select(Menu.id).where(Menu.name == name)
        if exclude_id:
            query = query.where(Menu.id != exclude_id)
        if await self.db.scalar(query):
            raise ConflictError("Menu name already exists")

    async def _ensure_unique_item_name(self, menu_id: Optional[int], name: str, exclude_id: Optional[int] = None) -> None:
        query = select(MenuItem.id).where(MenuItem.name == name)
        if menu_id is None:
            query = query.where(MenuItem.menu_id.is_(None))
        else:
            query = query.where(MenuItem.menu_id == menu_id)
        if exclude_id:
            query = query.where(MenuItem.id != exclude_id)
        if await self.db.scalar(query):
            raise ConflictError("A menu item with this name already exists in the menu")
