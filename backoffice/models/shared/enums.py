from enum import Enum

class UnitType(str, Enum):
    WEIGHT = "WEIGHT"
    VOLUME = "VOLUME"
    PIECE = "PIECE"
    LENGTH = "LENGTH"

class WarehouseType(str, Enum):
    MAIN = "MAIN"
    KITCHEN = "KITCHEN"
    RETAIL = "RETAIL"

class DocumentType(str, Enum):
    RECEIPT = "RECEIPT"
    TRANSFER = "TRANSFER"
    WRITEOFF = "WRITEOFF"
    INVENTORY_ADJUSTMENT = "INVENTORY_ADJUSTMENT"

class DocumentStatus(str, Enum):
    DRAFT = "DRAFT"
    APPROVED = "APPROVED"
    CANCELLED = "CANCELLED"

class MovementType(str, Enum):
    IN = "IN"
    OUT = "OUT"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"
    WRITEOFF = "WRITEOFF"
    PRODUCTION_USE = "PRODUCTION_USE"

class InventoryCountStatus(str, Enum):
    DRAFT = "DRAFT"
    COMPLETED = "COMPLETED"

class SettingCategory(str, Enum):
    APP = "app"
    INVENTORY = "inventory"
    NOTIFICATIONS = "notifications"
