from fastapi import APIRouter
from backoffice.api.v1.endpoints import (
    categories, documents, inventory_counts, menus, products, recipes, settings,
    stock_balances, stock_movements, suppliers, units, warehouses
)

api_router = APIRouter()

# Nomenclature routes
api_router.include_router(units.router, prefix="/units", tags=["Nomenclature"])
api_router.include_router(categories.router, prefix="/categories", tags=["Nomenclature"])
api_router.include_router(products.router, prefix="/products", tags=["Nomenclature"])

# Warehouse routes
api_router.include_router(warehouses.router, prefix="/warehouses", tags=["Warehouse"])
api_router.include_router(stock_balances.router, prefix="/stock-balances", tags=["Warehouse"])
api_router.include_router(stock_movements.router, prefix="/stock-movements", tags=["Warehouse"])
api_router.include_router(inventory_counts.router, prefix="/inventory-counts", tags=["Warehouse"])

# Purchase and document routes
api_router.include_router(suppliers.router, prefix="/suppliers", tags=["Purchase"])
api_router.include_router(documents.router, prefix="/documents", tags=["Documents"])

# Kitchen routes
api_router.include_router(recipes.router, prefix="/recipes", tags=["Recipes"])
api_router.include_router(menus.router, prefix="/menus", tags=["Menus"])

# System routes
api_router.include_router(settings.router, prefix="/settings", tags=["System"])
