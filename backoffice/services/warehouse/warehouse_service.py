import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from backoffice.models.warehouse.warehouse import Warehouse
from backoffice.models.warehouse.stock_balance import StockBalance
from backoffice.models.shared.enums import WarehouseType
from backoffice.schemas.warehouse.warehouse import WarehouseCreate, WarehouseUpdate
from backoffice.core.exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_WAREHOUSES = [
    ("Main warehouse", WarehouseType.MAIN),
    ("Kitchen", WarehouseType.KITCHEN),
]

class WarehouseService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_warehouse(self, warehouse_data: WarehouseCreate) -> Warehouse:
        await self._ensure_unique_name(warehouse_data.name)

        warehouse = Warehouse(**warehouse_data.model_dump())
        self.db.add(warehouse)
        await self.db.commit()
        await self.db.refresh(warehouse)

        logger.info(f"Warehouse created: {warehouse.name} ({warehouse.id})")
        return warehouse

    async def get_warehouse(self, warehouse_id: int) -> Warehouse:
        warehouse = await self.db.get(Warehouse, warehouse_id)
        if not warehouse:
            raise NotFoundError("Warehouse not found")
        return warehouse

    async def get_warehouses(self, include_inactive: bool = False, warehouse_type: Optional[WarehouseType] = None) -> List[Warehouse]:
        query = select(Warehouse)
        if not include_inactive:
            query = query.where(Warehouse.is_active == True)
        if warehouse_type:
            query = query.where(Warehouse.type == warehouse_type)
        result = await self.db.execute(query.order_by(Warehouse.name))
        return result.scalars().all()

    async def update_warehouse(self, warehouse_id: int, warehouse_data: WarehouseUpdate) -> Warehouse:
        warehouse = await self.get_warehouse(warehouse_id)
        update_data = warehouse_data.model_dump(exclude_unset=True)

        if "name" in update_data and update_data["name"] != warehouse.name:
            await self._ensure_unique_name(update_data["name"], exclude_id=warehouse_id)

        for field, value in update_data.items():
            setattr(warehouse, field, value)

        await self.db.commit()
        await self.db.refresh(warehouse)
        return warehouse

    async def delete_warehouse(self, warehouse_id: int) -> None:
        warehouse = await self.get_warehouse(warehouse_id)

        stocked = await self.db.scalar(
            select(func.count(StockBalance.id)).where(
                StockBalance.warehouse_id == warehouse_id,
                StockBalance.quantity != 0
            )
        )
        if stocked:
            raise ConflictError("Cannot delete a warehouse that holds stock")

        # Ledger rows keep referencing the warehouse, so it is only deactivated
        warehouse.is_active = False
        await self.db.commit()
        logger.info(f"Warehouse deactivated: {warehouse_id}")

    async def create_default_warehouses(self) -> int:
        result = await self.db.execute(select(Warehouse.name))
        existing = set(result.scalars().all())

        created = 0
        for name, warehouse_type in DEFAULT_WAREHOUSES:
            if name not in existing:
                self.db.add(Warehouse(name=name, type=warehouse_type))
                created += 1

        await self.db.commit()
        return created

    async def _ensure_unique_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        query = select(Warehouse).where(Warehouse.name == name)
        if exclude_id is not None:
            query = query.where(Warehouse.id != exclude_id)
        existing = await self.db.execute(query)
        if existing.scalar_one_or_none():
            raise ConflictError("Warehouse with this name already exists")
