import logging
from decimal import Decimal
from typing import Dict, List, Mapping, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from backoffice.models.nomenclature.unit import Unit
from backoffice.models.nomenclature.product import Product
from backoffice.models.recipe.recipe_ingredient import RecipeIngredient
from backoffice.models.shared.enums import UnitType
from backoffice.schemas.nomenclature.unit import UnitCreate, UnitUpdate
from backoffice.core.exceptions import (
    ConflictError, IncompatibleUnitsError, NotFoundError, UnitNotFoundError, ValidationError
)
from backoffice.utils.decimals import to_decimal

logger = logging.getLogger(__name__)

DEFAULT_UNITS = [
    # (name, short_name, type, base short_name, conversion_factor)
    ("Kilogram", "kg", UnitType.WEIGHT, None, Decimal("1")),
    ("Gram", "g", UnitType.WEIGHT, "kg", Decimal("0.001")),
    ("Liter", "l", UnitType.VOLUME, None, Decimal("1")),
    ("Milliliter", "ml", UnitType.VOLUME, "l", Decimal("0.001")),
    ("Piece", "pc", UnitType.PIECE, None, Decimal("1")),
    ("Pack", "pack", UnitType.PIECE, None, Decimal("1")),
    ("Meter", "m", UnitType.LENGTH, None, Decimal("1")),
    ("Centimeter", "cm", UnitType.LENGTH, "m", Decimal("0.01")),
]


def resolve_factor(unit, units_by_id: Mapping[int, object]) -> Decimal:
    """Factor of ``unit`` relative to the root of its base-unit chain"""
    result = to_decimal(unit.conversion_factor)
    seen = {unit.id}
    current = unit
    while current.base_unit_id is not None:
        if current.base_unit_id in seen:
            raise ValidationError("Circular base unit reference detected")
        seen.add(current.base_unit_id)
        current = units_by_id.get(current.base_unit_id)
        if current is None:
            raise UnitNotFoundError("Base unit not found")
        result *= to_decimal(current.conversion_factor)
    return result


def convert_quantity(quantity, from_unit, to_unit, units_by_id: Mapping[int, object]) -> Decimal:
    """Convert between two loaded units: quantity * f_from / f_to"""
    quantity = to_decimal(quantity)
    if from_unit.id == to_unit.id:
        return quantity
    if from_unit.type != to_unit.type:
        raise IncompatibleUnitsError(
            f"Cannot convert {from_unit.short_name} ({from_unit.type.value}) "
            f"to {to_unit.short_name} ({to_unit.type.value})"
        )
    return quantity * resolve_factor(from_unit, units_by_id) / resolve_factor(to_unit, units_by_id)


class UnitService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_unit(self, unit_data: UnitCreate) -> Unit:
        await self._ensure_unique(unit_data.name, unit_data.short_name)

        if unit_data.base_unit_id is not None:
            base_unit = await self.db.get(Unit, unit_data.base_unit_id)
            if not base_unit:
                raise NotFoundError("Base unit not found")
            if base_unit.type != unit_data.type:
                raise ValidationError("Base unit must have the same unit type")

        unit = Unit(**unit_data.model_dump())
        self.db.add(unit)
        await self.db.commit()

        logger.info(f"Unit created: {unit.short_name} ({unit.id})")
        return await self.get_unit(unit.id)

    async def get_units(self, unit_type: Optional[UnitType] = None) -> List[Unit]:
        query = select(Unit).options(selectinload(Unit.base_unit))
        if unit_type:
            query = query.where(Unit.type == unit_type)
        result = await self.db.execute(query.order_by(Unit.type, Unit.name))
        return result.scalars().all()

    async def get_unit(self, unit_id: int) -> Unit:
        result = await self.db.execute(
            select(Unit)
            .options(selectinload(Unit.base_unit), selectinload(Unit.derived_units))
            .where(Unit.id == unit_id)
            .execution_options(populate_existing=True)
        )
        unit = result.scalar_one_or_none()
        if not unit:
            raise UnitNotFoundError(f"Unit {unit_id} not found")
        return unit

    async def get_base_units(self) -> List[Unit]:
        result = await self.db.execute(
            select(Unit).where(Unit.base_unit_id.is_(None)).order_by(Unit.type, Unit.name)
        )
        return result.scalars().all()

    async def update_unit(self, unit_id: int, unit_data: UnitUpdate) -> Unit:
        unit = await self.get_unit(unit_id)
        update_data = unit_data.model_dump(exclude_unset=True)

        if "name" in update_data or "short_name" in update_data:
            await self._ensure_unique(
                update_data.get("name", unit.name),
                update_data.get("short_name", unit.short_name),
                exclude_id=unit_id
            )

        new_type = update_data.get("type", unit.type)
        base_unit_id = update_data.get("base_unit_id", unit.base_unit_id)
        if base_unit_id is not None:
            if await self._creates_cycle(unit_id, base_unit_id):
                raise ValidationError("Circular reference between units is not allowed")
            base_unit = await self.db.get(Unit, base_unit_id)
            if not base_unit:
                raise NotFoundError("Base unit not found")
            if base_unit.type != new_type:
                raise ValidationError("Base unit must have the same unit type")
        if "type" in update_data and new_type != unit.type and unit.derived_units:
            raise ConflictError("Cannot change the type of a unit that has derived units")

        for field, value in update_data.items():
            setattr(unit, field, value)

        await self.db.commit()
        return await self.get_unit(unit_id)

    async def delete_unit(self, unit_id: int) -> None:
        unit = await self.get_unit(unit_id)

        products_count = await self.db.scalar(
            select(func.count(Product.id)).where(Product.unit_id == unit_id)
        )
        if products_count:
            raise ConflictError("Cannot delete a unit that is used by products")
        ingredients_count = await self.db.scalar(
            select(func.count(RecipeIngredient.id)).where(RecipeIngredient.unit_id == unit_id)
        )
        if ingredients_count:
            raise ConflictError("Cannot delete a unit that is used by recipe ingredients")
        if unit.derived_units:
            raise ConflictError("Cannot delete a unit that has derived units")

        await self.db.delete(unit)
        await self.db.commit()
        logger.info(f"Unit deleted: {unit_id}")

    async def convert(self, quantity, from_unit_id: int, to_unit_id: int) -> Decimal:
        if from_unit_id == to_unit_id:
            await self.get_unit(from_unit_id)
            return to_decimal(quantity)

        units_by_id = await self._load_units()
        from_unit = units_by_id.get(from_unit_id)
        to_unit = units_by_id.get(to_unit_id)
        if from_unit is None:
            raise UnitNotFoundError(f"Unit {from_unit_id} not found")
        if to_unit is None:
            raise UnitNotFoundError(f"Unit {to_unit_id} not found")
        return convert_quantity(quantity, from_unit, to_unit, units_by_id)

    async def get_conversion_chain(self, unit_id: int) -> List[Unit]:
        """Units from the root base unit down to ``unit_id``"""
        units_by_id = await self._load_units()
        if unit_id not in units_by_id:
            raise UnitNotFoundError(f"Unit {unit_id} not found")

        chain = []
        current_id = unit_id
        while current_id is not None and current_id not in [u.id for u in chain]:
            unit = units_by_id[current_id]
            chain.insert(0, unit)
            current_id = unit.base_unit_id
        return chain

    async def create_default_units(self) -> int:
        """Create the standard units that are missing; returns how many were created"""
        result = await self.db.execute(select(Unit))
        by_short_name = {u.short_name: u for u in result.scalars().all()}

        created = 0
        for name, short_name, unit_type, base_short_name, conversion_factor in DEFAULT_UNITS:
            if short_name in by_short_name:
                continue
            base_unit = by_short_name.get(base_short_name) if base_short_name else None
            unit = Unit(
                name=name,
                short_name=short_name,
                type=unit_type,
                base_unit_id=base_unit.id if base_unit else None,
                conversion_factor=conversion_factor
            )
            self.db.add(unit)
            await self.db.flush()
            by_short_name[short_name] = unit
            created += 1

        await self.db.commit()
        if created:
            logger.info(f"Created {created} default units")
        return created

    async def _load_units(self) -> Dict[int, Unit]:
        result = await self.db.execute(select(Unit))
        return {unit.id: unit for unit in result.scalars().all()}

    async def _ensure_unique(self, name: str, short_name: str, exclude_id: Optional[int] = None) -> None:
        query = select(Unit).where(or_(Unit.name == name, Unit.short_name == short_name))
        if exclude_id is not None:
            query = query.where(Unit.id != exclude_id)
        existing = await self.db.execute(query)
        if existing.scalars().first():
            raise ConflictError("Unit with this name or short name already exists")

    async def _creates_cycle(self, unit_id: int, base_unit_id: int) -> bool:
        current_id = base_unit_id
        visited = set()
        while current_id is not None and current_id not in visited:
            if current_id == unit_id:
                return True
            visited.add(current_id)
            current = await self.db.get(Unit, current_id)
            current_id = current.base_unit_id if current else None
        return False
