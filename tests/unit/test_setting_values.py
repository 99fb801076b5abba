import pytest
from decimal import Decimal
from pydantic import ValidationError as PydanticValidationError
from backoffice.core.exceptions import ValidationError
from backoffice.models.shared.enums import SettingCategory
from backoffice.schemas.system.system_setting import DecimalValue, IntegerValue, StringValue
from backoffice.services.system.system_setting_service import (
    SETTINGS_REGISTRY, SystemSettingService, dump_value, parse_value
)


class TestSettingValues:
    def test_parse_by_kind(self):
        assert parse_value({"kind": "integer", "value": 5}) == IntegerValue(value=5)
        assert parse_value({"kind": "boolean", "value": False}).value is False

    def test_decimal_survives_json_dump(self):
        stored = dump_value(DecimalValue(value=Decimal("12.50")))
        assert parse_value(stored).value == Decimal("12.50")

    def test_integer_kind_rejects_text(self):
        with pytest.raises(PydanticValidationError):
            parse_value({"kind": "integer", "value": "five"})

    def test_unknown_kind_is_rejected(self):
        with pytest.raises(PydanticValidationError):
            parse_value({"kind": "date", "value": "2026-01-01"})


class TestResolveCategory:
    def test_registered_key_takes_registered_category(self):
        category = SystemSettingService._resolve_category(
            "notifications.low_stock_threshold", IntegerValue(value=3), None
        )
        assert category == SettingCategory.NOTIFICATIONS

    def test_registered_key_rejects_other_kind(self):
        with pytest.raises(ValidationError):
            SystemSettingService._resolve_category(
                "notifications.low_stock_threshold", StringValue(value="3"), None
            )

    def test_registered_key_rejects_other_category(self):
        with pytest.raises(ValidationError):
            SystemSettingService._resolve_category(
                "notifications.low_stock_threshold", IntegerValue(value=60), SettingCategory.APP
            )

    def test_unregistered_key_needs_category(self):
        with pytest.raises(ValidationError):
            SystemSettingService._resolve_category("app.theme", StringValue(value="dark"), None)

    def test_every_registered_default_round_trips(self):
        for registered in SETTINGS_REGISTRY.values():
            assert parse_value(dump_value(registered.default)) == registered.default
