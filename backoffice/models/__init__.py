from backoffice.models.nomenclature.unit import Unit
from backoffice.models.nomenclature.category import Category
from backoffice.models.nomenclature.product import Product
from backoffice.models.warehouse.warehouse import Warehouse
from backoffice.models.warehouse.stock_balance import StockBalance
from backoffice.models.warehouse.stock_movement import StockMovement
from backoffice.models.purchase.supplier import Supplier
from backoffice.models.document.document import Document
from backoffice.models.document.document_item import DocumentItem
from backoffice.models.recipe.recipe import Recipe
from backoffice.models.recipe.recipe_ingredient import RecipeIngredient
from backoffice.models.inventory.inventory_count import InventoryCount
from backoffice.models.inventory.inventory_count_item import InventoryCountItem
from backoffice.models.menu.menu import Menu
from backoffice.models.menu.menu_category import MenuCategory
from backoffice.models.menu.menu_item import MenuItem
from backoffice.models.menu.warehouse_menu import WarehouseMenu
from backoffice.models.system.system_setting import SystemSetting


__all__ = [
    "Unit",
    "Category",
    "Product",
    "Warehouse",
    "StockBalance",
    "StockMovement",
    "Supplier",
    "Document",
    "DocumentItem",
    "Recipe",
    "RecipeIngredient",
    "InventoryCount",
    "InventoryCountItem",
    "Menu",
    "MenuCategory",
    "MenuItem",
    "WarehouseMenu",
    "SystemSetting",
]
