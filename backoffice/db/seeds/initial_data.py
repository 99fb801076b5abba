import logging
from sqlalchemy.ext.asyncio import AsyncSession
from backoffice.services.nomenclature.unit_service import UnitService
from backoffice.services.system.system_setting_service import SystemSettingService
from backoffice.services.warehouse.warehouse_service import WarehouseService

logger = logging.getLogger(__name__)

async def create_initial_data(session: AsyncSession):
    """Create the reference data every installation starts with"""
    try:
        logger.info("📋 Creating initial data...")

        units = await UnitService(session).create_default_units()
        warehouses = await WarehouseService(session).create_default_warehouses()
        settings_created = await SystemSettingService(session).ensure_default_settings()

        logger.info(
            f"✅ Initial data created: {units} units, {warehouses} warehouses, {settings_created} settings"
        )
        return True

    except Exception as e:
        logger.error(f"❌ Error creating initial data: {str(e)}")
        await session.rollback()
        raise
