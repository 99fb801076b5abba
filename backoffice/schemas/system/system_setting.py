from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, validator
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from datetime import datetime
from decimal import Decimal
from backoffice.models.shared.enums import SettingCategory

class StringValue(BaseModel):
    kind: Literal["string"] = "string"
    value: str

class IntegerValue(BaseModel):
    kind: Literal["integer"] = "integer"
    value: StrictInt

class DecimalValue(BaseModel):
    kind: Literal["decimal"] = "decimal"
    value: Decimal

class BooleanValue(BaseModel):
    kind: Literal["boolean"] = "boolean"
    value: StrictBool

class JsonValue(BaseModel):
    kind: Literal["json"] = "json"
    value: Union[Dict[str, Any], List[Any]]

SettingValue = Annotated[
    Union[StringValue, IntegerValue, DecimalValue, BooleanValue, JsonValue],
    Field(discriminator="kind"),
]

class SettingUpsert(BaseModel):
    value: SettingValue
    category: Optional[SettingCategory] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None

class SettingResponse(BaseModel):
    id: int
    key: str
    category: str
    value: SettingValue
    description: Optional[str] = None
    is_public: bool = False
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class SettingExportItem(BaseModel):
    key: str
    category: SettingCategory
    value: SettingValue
    description: Optional[str] = None
    is_public: bool = False

    @validator('key')
    def validate_key(cls, v):
        if not v or not v.strip():
            raise ValueError('Setting key is required')
        return v.strip()

class SettingsImport(BaseModel):
    settings: List[SettingExportItem]
    overwrite: bool = True

class SettingsImportResult(BaseModel):
    created: int
    updated: int
    skipped: int

class CategoryInfo(BaseModel):
    category: str
    settings_count: int
