import logging
from decimal import Decimal
from typing import Any, Dict, List, NamedTuple, Optional
from pydantic import TypeAdapter
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from backoffice.core.config import settings
from backoffice.models.system.system_setting import SystemSetting
from backoffice.models.shared.enums import SettingCategory
from backoffice.schemas.system.system_setting import (
    BooleanValue, DecimalValue, IntegerValue, SettingExportItem, SettingUpsert,
    SettingValue, SettingsImport, StringValue
)
from backoffice.core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

setting_value_adapter = TypeAdapter(SettingValue)

LOW_STOCK_THRESHOLD_KEY = "notifications.low_stock_threshold"
DEFAULT_MARGIN_KEY = "inventory.default_margin_percent"


class RegisteredSetting(NamedTuple):
    category: SettingCategory
    default: Any
    description: str
    is_public: bool = False


SETTINGS_REGISTRY: Dict[str, RegisteredSetting] = {
    "app.name": RegisteredSetting(
        SettingCategory.APP, StringValue(value=settings.APP_NAME), "Application name", True
    ),
    "app.timezone": RegisteredSetting(SettingCategory.APP, StringValue(value="UTC"), "Display time zone", True),
    "app.language": RegisteredSetting(SettingCategory.APP, StringValue(value="en"), "Interface language", True),
    DEFAULT_MARGIN_KEY: RegisteredSetting(
        SettingCategory.INVENTORY, DecimalValue(value=Decimal("30")),
        "Margin applied to recipe cost when none is given"
    ),
    "notifications.low_stock_enabled": RegisteredSetting(
        SettingCategory.NOTIFICATIONS, BooleanValue(value=True), "Show low stock notifications", True
    ),
    LOW_STOCK_THRESHOLD_KEY: RegisteredSetting(
        SettingCategory.NOTIFICATIONS, IntegerValue(value=settings.LOW_STOCK_THRESHOLD),
        "Quantity at or below which a balance counts as low stock", True
    ),
}


def parse_value(raw: Any) -> SettingValue:
    return setting_value_adapter.validate_python(raw)


def dump_value(value: SettingValue) -> Dict[str, Any]:
    return value.model_dump(mode="json")


class SystemSettingService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_settings(self, include_private: bool = False) -> List[SystemSetting]:
        query = select(SystemSetting)
        if not include_private:
            query = query.where(SystemSetting.is_public == True)
        result = await self.db.execute(query.order_by(SystemSetting.category, SystemSetting.key))
        return result.scalars().all()

    async def get_settings_by_category(self, category: SettingCategory, include_private: bool = False) -> List[SystemSetting]:
        query = select(SystemSetting).where(SystemSetting.category == category.value)
        if not include_private:
            query = query.where(SystemSetting.is_public == True)
        result = await self.db.execute(query.order_by(SystemSetting.key))
        return result.scalars().all()

    async def get_setting(self, key: str) -> SystemSetting:
        setting = await self._find(key)
        if not setting:
            raise NotFoundError(f"Setting '{key}' not found")
        return setting

    async def get_value(self, key: str, default: Any = None) -> Any:
        """Plain value of a setting, falling back to the registered default"""
        setting = await self._find(key)
        if setting is not None:
            return parse_value(setting.value).value
        if key in SETTINGS_REGISTRY:
            return SETTINGS_REGISTRY[key].default.value
        return default

    async def upsert_setting(self, key: str, setting_data: SettingUpsert, current_user_id: Optional[int] = None) -> SystemSetting:
        category = self._resolve_category(key, setting_data.value, setting_data.category)

        setting = await self._find(key)
        if setting is None:
            registered = SETTINGS_REGISTRY.get(key)
            setting = SystemSetting(
                key=key,
                category=category.value,
                description=setting_data.description or (registered.description if registered else None),
                is_public=setting_data.is_public if setting_data.is_public is not None else bool(registered and registered.is_public)
            )
            self.db.add(setting)
        else:
            setting.category = category.value
            if setting_data.description is not None:
                setting.description = setting_data.description
            if setting_data.is_public is not None:
                setting.is_public = setting_data.is_public

        setting.value = dump_value(setting_data.value)
        setting.updated_by = current_user_id
        await self.db.commit()
        await self.db.refresh(setting)

        logger.info(f"Setting {key} set by user {current_user_id}")
        return setting

    async def delete_setting(self, key: str) -> None:
        setting = await self.get_setting(key)
        await self.db.delete(setting)
        await self.db.commit()
        logger.info(f"Setting {key} deleted")

    async def get_categories(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(SystemSetting.category, func.count(SystemSetting.id))
            .group_by(SystemSetting.category)
            .order_by(SystemSetting.category)
        )
        return [{"category": category, "settings_count": count} for category, count in result.all()]

    async def export_settings(self) -> List[SettingExportItem]:
        return [
            SettingExportItem(
                key=s.key,
                category=SettingCategory(s.category),
                value=parse_value(s.value),
                description=s.description,
                is_public=bool(s.is_public)
            )
            for s in await self.get_settings(include_private=True)
        ]

    async def import_settings(self, import_data: SettingsImport, current_user_id: Optional[int] = None) -> Dict[str, int]:
        created = updated = skipped = 0
        try:
            for item in import_data.settings:
                self._resolve_category(item.key, item.value, item.category)
                setting = await self._find(item.key)
                if setting is None:
                    self.db.add(SystemSetting(
                        key=item.key,
                        category=item.category.value,
                        value=dump_value(item.value),
                        description=item.description,
                        is_public=item.is_public,
                        updated_by=current_user_id
                    ))
                    created += 1
                elif import_data.overwrite:
                    setting.value = dump_value(item.value)
                    setting.description = item.description
                    setting.is_public = item.is_public
                    setting.updated_by = current_user_id
                    updated += 1
                else:
                    skipped += 1
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Settings imported: {created} created, {updated} updated, {skipped} skipped")
        return {"created": created, "updated": updated, "skipped": skipped}

    async def reset_to_defaults(self, category: Optional[SettingCategory] = None) -> int:
        """Restore registered settings to their defaults; returns how many were reset"""
        reset = 0
        for key, registered in SETTINGS_REGISTRY.items():
            if category and registered.category != category:
                continue
            setting = await self._find(key)
            if setting is None:
                continue
            setting.value = dump_value(registered.default)
            reset += 1
        await self.db.commit()
        return reset

    async def ensure_default_settings(self) -> int:
        result = await self.db.execute(select(SystemSetting.key))
        existing = set(result.scalars().all())

        created = 0
        for key, registered in SETTINGS_REGISTRY.items():
            if key in existing:
                continue
            self.db.add(SystemSetting(
                key=key,
                category=registered.category.value,
                value=dump_value(registered.default),
                description=registered.description,
                is_public=registered.is_public
            ))
            created += 1

        await self.db.commit()
        return created

    async def _find(self, key: str) -> Optional[SystemSetting]:
        result = await self.db.execute(select(SystemSetting).where(SystemSetting.key == key))
        return result.scalar_one_or_none()

    @staticmethod
    def _resolve_category(key: str, value: SettingValue, category: Optional[SettingCategory]) -> SettingCategory:
        registered = SETTINGS_REGISTRY.get(key)
        if registered is None:
            if category is None:
                raise ValidationError(f"Category is required for setting '{key}'")
            return category

        if value.kind != registered.default.kind:
            raise ValidationError(
                f"Setting '{key}' holds a {registered.default.kind} value, got {value.kind}"
            )
        if category is not None and category != registered.category:
            raise ValidationError(f"Setting '{key}' belongs to category '{registered.category.value}'")
        return registered.category
