import logging
from collections import OrderedDict
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload

from backoffice.models.recipe.recipe import Recipe
from backoffice.models.recipe.recipe_ingredient import RecipeIngredient
from backoffice.models.menu.menu_item import MenuItem
from backoffice.models.nomenclature.product import Product
from backoffice.models.nomenclature.unit import Unit
from backoffice.models.warehouse.stock_balance import StockBalance
from backoffice.models.warehouse.stock_movement import StockMovement
from backoffice.models.warehouse.warehouse import Warehouse
from backoffice.models.shared.enums import MovementType
from backoffice.schemas.recipe.recipe import RecipeCreate, RecipeIngredientCreate, RecipeUpdate
from backoffice.schemas.warehouse.stock_movement import MovementCreate
from backoffice.services.nomenclature.unit_service import convert_quantity
from backoffice.services.warehouse.stock_movement_service import StockMovementService
from backoffice.services.system.system_setting_service import DEFAULT_MARGIN_KEY, SystemSettingService
from backoffice.core.exceptions import (
    ConflictError, NotFoundError, UnitNotFoundError, ValidationError
)
from backoffice.utils.decimals import ZERO, cost, money, quantity as round_quantity, to_decimal

logger = logging.getLogger(__name__)


def selling_price_for(cost_price: Decimal, margin_percent: Optional[Decimal]) -> Optional[Decimal]:
    if not margin_percent:
        return None
    return money(to_decimal(cost_price) * (1 + to_decimal(margin_percent) / 100))


class RecipeService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def calculate_cost(
        self,
        ingredients: Sequence[RecipeIngredientCreate],
        portion_size: Decimal = Decimal("1"),
        margin_percent: Optional[Decimal] = None
    ) -> Dict[str, Any]:
        """Cost roll-up of a list of ingredients.

        Each ingredient is costed in its product's own unit. Without an explicit
        ``cost_per_unit`` the product's average price across the warehouses that
        hold it is used.
        """
        if portion_size <= 0:
            raise ValidationError("Portion size must be positive")

        units_by_id = await self._load_units()
        lines = []
        total_cost = ZERO
        for ingredient in ingredients:
            product = await self.db.get(Product, ingredient.product_id)
            if not product:
                raise ValidationError(f"Product {ingredient.product_id} not found")
            unit = units_by_id.get(ingredient.unit_id)
            if unit is None:
                raise UnitNotFoundError(f"Unit {ingredient.unit_id} not found")

            costing_quantity = round_quantity(
                convert_quantity(ingredient.quantity, unit, units_by_id[product.unit_id], units_by_id)
            )
            if ingredient.cost_per_unit is not None:
                cost_per_unit = cost(ingredient.cost_per_unit)
            else:
                cost_per_unit = await self._average_price(product.id)

            line_cost = money(costing_quantity * cost_per_unit)
            total_cost += line_cost
            lines.append({
                "product_id": product.id,
                "product_name": product.name,
                "quantity": ingredient.quantity,
                "unit_name": unit.name,
                "costing_quantity": costing_quantity,
                "cost_per_unit": cost_per_unit,
                "total_cost": line_cost,
            })

        cost_per_portion = money(total_cost / to_decimal(portion_size))
        selling_price = selling_price_for(cost_per_portion, margin_percent)
        return {
            "total_cost": money(total_cost),
            "cost_per_portion": cost_per_portion,
            "selling_price": selling_price,
            "profit": money(selling_price - cost_per_portion) if selling_price is not None else None,
            "ingredients": lines,
        }

    async def calculate_cost_with_default_margin(
        self,
        ingredients: Sequence[RecipeIngredientCreate],
        portion_size: Decimal = Decimal("1"),
        margin_percent: Optional[Decimal] = None
    ) -> Dict[str, Any]:
        if margin_percent is None:
            margin_percent = to_decimal(await SystemSettingService(self.db).get_value(DEFAULT_MARGIN_KEY, ZERO))
        return await self.calculate_cost(ingredients, portion_size, margin_percent)

    async def create_recipe(self, recipe_data: RecipeCreate, current_user_id: Optional[int] = None) -> Recipe:
        await self._ensure_unique_name(recipe_data.name)
        calculation = await self.calculate_cost(
            recipe_data.ingredients, recipe_data.portion_size, recipe_data.margin_percent
        )

        recipe = Recipe(
            **recipe_data.model_dump(exclude={"ingredients"}),
            cost_price=calculation["cost_per_portion"],
            selling_price=calculation["selling_price"],
            created_by=current_user_id
        )
        recipe.ingredients = self._build_ingredients(recipe_data.ingredients)
        self.db.add(recipe)
        await self.db.commit()

        logger.info(f"Recipe created: {recipe.name} ({recipe.id}), cost per portion {recipe.cost_price}")
        return await self.get_recipe(recipe.id)

    async def get_recipe(self, recipe_id: int) -> Recipe:
        result = await self.db.execute(
            select(Recipe)
            .options(
                selectinload(Recipe.ingredients).selectinload(RecipeIngredient.product),
                selectinload(Recipe.ingredients).selectinload(RecipeIngredient.unit)
            )
            .where(Recipe.id == recipe_id)
            .execution_options(populate_existing=True)
        )
        recipe = result.scalar_one_or_none()
        if not recipe:
            raise NotFoundError("Recipe not found")
        return recipe

    async def get_recipes(
        self,
        page_index: int = 1,
        page_size: int = 100,
        search: Optional[str] = None,
        is_active: Optional[bool] = None
    ) -> Dict[str, Any]:
        query = select(Recipe)
        if search:
            query = query.where(or_(
                Recipe.name.ilike(f"%{search}%"),
                Recipe.description.ilike(f"%{search}%")
            ))
        if is_active is not None:
            query = query.where(Recipe.is_active == is_active)

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))

        skip = (page_index - 1) * page_size
        result = await self.db.execute(
            query.options(
                selectinload(Recipe.ingredients).selectinload(RecipeIngredient.product),
                selectinload(Recipe.ingredients).selectinload(RecipeIngredient.unit)
            )
            .order_by(Recipe.name).offset(skip).limit(page_size)
        )
        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all()
        }

    async def update_recipe(self, recipe_id: int, recipe_data: RecipeUpdate) -> Recipe:
        recipe = await self.get_recipe(recipe_id)
        update_data = recipe_data.model_dump(exclude_unset=True, exclude={"ingredients"})

        if "name" in update_data and update_data["name"] != recipe.name:
            await self._ensure_unique_name(update_data["name"], exclude_id=recipe_id)
        for field, value in update_data.items():
            setattr(recipe, field, value)

        if recipe_data.ingredients is not None:
            if not recipe_data.ingredients:
                raise ValidationError("At least one ingredient is required")
            recipe.ingredients = self._build_ingredients(recipe_data.ingredients)
            ingredients = recipe_data.ingredients
        else:
            ingredients = [
                RecipeIngredientCreate(
                    product_id=i.product_id,
                    quantity=i.quantity,
                    unit_id=i.unit_id,
                    cost_per_unit=i.cost_per_unit
                )
                for i in recipe.ingredients
            ]

        calculation = await self.calculate_cost(ingredients, recipe.portion_size, recipe.margin_percent)
        recipe.cost_price = calculation["cost_per_portion"]
        recipe.selling_price = calculation["selling_price"]

        await self.db.commit()
        return await self.get_recipe(recipe_id)

    async def delete_recipe(self, recipe_id: int) -> None:
        recipe = await self.get_recipe(recipe_id)
        on_menu = await self.db.scalar(select(func.count(MenuItem.id)).where(MenuItem.recipe_id == recipe_id))
        if on_menu:
            raise ConflictError("Cannot delete a recipe that is served by menu items")
        await self.db.delete(recipe)
        await self.db.commit()
        logger.info(f"Recipe deleted: {recipe_id}")

    async def scale_recipe(self, recipe_id: int, scale_factor: Decimal) -> Dict[str, Any]:
        if scale_factor <= 0:
            raise ValidationError("Scale factor must be positive")

        recipe = await self.get_recipe(recipe_id)
        scaled = [
            RecipeIngredientCreate(
                product_id=i.product_id,
                quantity=round_quantity(to_decimal(i.quantity) * scale_factor),
                unit_id=i.unit_id,
                cost_per_unit=i.cost_per_unit
            )
            for i in recipe.ingredients
        ]
        return await self.calculate_cost(
            scaled, to_decimal(recipe.portion_size) * scale_factor, recipe.margin_percent
        )

    async def check_availability(self, recipe_id: int, warehouse_id: int, portions: Decimal = Decimal("1")) -> Dict[str, Any]:
        if portions <= 0:
            raise ValidationError("Portions must be positive")
        recipe = await self.get_recipe(recipe_id)
        if not await self.db.get(Warehouse, warehouse_id):
            raise NotFoundError("Warehouse not found")

        lines = []
        for product, required in (await self._requirements(recipe, portions)).values():
            available = await self._available(warehouse_id, product.id)
            lines.append({
                "product_id": product.id,
                "product_name": product.name,
                "required_quantity": required,
                "available_quantity": available,
                "is_available": available >= required,
                "shortage": max(ZERO, required - available),
            })

        return {
            "recipe_id": recipe.id,
            "warehouse_id": warehouse_id,
            "portions": portions,
            "can_produce": all(line["is_available"] for line in lines),
            "ingredients": lines,
        }

    async def produce(
        self,
        recipe_id: int,
        warehouse_id: int,
        portions: Decimal,
        current_user_id: Optional[int] = None
    ) -> Dict[str, Any]:
        """Consume the ingredients of ``portions`` portions from a warehouse in one transaction"""
        if portions <= 0:
            raise ValidationError("Portions must be positive")
        recipe = await self.get_recipe(recipe_id)
        if not await self.db.get(Warehouse, warehouse_id):
            raise NotFoundError("Warehouse not found")

        requirements = await self._requirements(recipe, portions)
        recorder = StockMovementService(self.db)
        movement_ids = []
        total_cost = ZERO
        try:
            locked = await recorder.lock_balances((warehouse_id, product_id) for product_id in requirements)
            for product_id, (product, required) in requirements.items():
                movement = await recorder.record(
                    MovementCreate(
                        warehouse_id=warehouse_id,
                        product_id=product_id,
                        type=MovementType.PRODUCTION_USE,
                        quantity=-required,
                        notes=f"Production of {portions} x {recipe.name}"
                    ),
                    locked[(warehouse_id, product_id)]
                )
                movement_ids.append(movement.id)
                total_cost += required * to_decimal(movement.price)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.warning(f"Production of recipe {recipe_id} failed: {e}")
            raise

        logger.info(
            f"Produced {portions} x {recipe.name} in warehouse {warehouse_id} by user {current_user_id}"
        )
        result = await self.db.execute(
            select(StockMovement)
            .options(
                selectinload(StockMovement.warehouse),
                selectinload(StockMovement.product),
                selectinload(StockMovement.document)
            )
            .where(StockMovement.id.in_(movement_ids))
            .order_by(StockMovement.id)
        )
        return {
            "recipe_id": recipe.id,
            "warehouse_id": warehouse_id,
            "portions": portions,
            "total_cost": money(total_cost),
            "movements": result.scalars().all(),
        }

    async def get_profitability(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(Recipe)
            .where(Recipe.is_active == True, Recipe.selling_price.is_not(None))
            .order_by(Recipe.name)
        )
        report = []
        for recipe in result.scalars().all():
            selling_price = to_decimal(recipe.selling_price)
            profit = money(selling_price - to_decimal(recipe.cost_price))
            report.append({
                "recipe_id": recipe.id,
                "recipe_name": recipe.name,
                "cost_price": money(recipe.cost_price),
                "selling_price": money(selling_price),
                "profit": profit,
                "profit_margin": money(profit / selling_price * 100) if selling_price else ZERO,
            })
        return report

    async def _requirements(self, recipe: Recipe, portions: Decimal) -> Dict[int, tuple]:
        """Quantity of each product, in the product's own unit, needed for ``portions``"""
        units_by_id = await self._load_units()
        ratio = to_decimal(portions) / to_decimal(recipe.portion_size)
        requirements = OrderedDict()
        for ingredient in recipe.ingredients:
            product = ingredient.product
            needed = convert_quantity(
                ingredient.quantity, units_by_id[ingredient.unit_id], units_by_id[product.unit_id], units_by_id
            ) * ratio
            _, already = requirements.get(product.id, (product, ZERO))
            requirements[product.id] = (product, round_quantity(already + needed))
        return requirements

    async def _available(self, warehouse_id: int, product_id: int) -> Decimal:
        result = await self.db.execute(
            select(StockBalance.quantity).where(
                StockBalance.warehouse_id == warehouse_id,
                StockBalance.product_id == product_id
            )
        )
        available = result.scalar_one_or_none()
        return round_quantity(available) if available is not None else ZERO

    async def _average_price(self, product_id: int) -> Decimal:
        """Average price over the warehouses currently holding the product"""
        result = await self.db.execute(
            select(func.sum(StockBalance.total_value), func.sum(StockBalance.quantity))
            .where(StockBalance.product_id == product_id, StockBalance.quantity > 0)
        )
        total_value, total_quantity = result.one()
        if not total_quantity:
            return ZERO
        return cost(to_decimal(total_value) / to_decimal(total_quantity))

    async def _load_units(self) -> Dict[int, Unit]:
        result = await self.db.execute(select(Unit))
        return {unit.id: unit for unit in result.scalars().all()}

    async def _ensure_unique_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        query = select(Recipe).where(Recipe.name == name)
        if exclude_id is not None:
            query = query.where(Recipe.id != exclude_id)
        existing = await self.db.execute(query)
        if existing.scalar_one_or_none():
            raise ConflictError("Recipe with this name already exists")

    @staticmethod
    def _build_ingredients(ingredients: Sequence[RecipeIngredientCreate]) -> List[RecipeIngredient]:
        return [
            RecipeIngredient(
                product_id=i.product_id,
                quantity=round_quantity(i.quantity),
                unit_id=i.unit_id,
                cost_per_unit=cost(i.cost_per_unit) if i.cost_per_unit is not None else None,
                is_main=i.is_main,
                sort_order=i.sort_order if i.sort_order is not None else index
            )
            for index, i in enumerate(ingredients)
        ]
