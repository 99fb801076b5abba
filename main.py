import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from backoffice.core.config import settings
from backoffice.core.logging_config import setup_logging
from backoffice.api.v1.api import api_router
from backoffice.middleware.error_handlers import register_exception_handlers
from backoffice.middleware.logging import LoggingMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    from backoffice.db.init_db import init_db
    await init_db()
    logger.info(f"🚀 {settings.APP_NAME} v{settings.APP_VERSION} started ({settings.ENVIRONMENT})")
    yield
    logger.info("🛑 Application shutdown")


# Create FastAPI app
app_config = {
    "title": settings.APP_NAME,
    "description": "Restaurant back-office: nomenclature, warehouse documents, stock ledger and recipes",
    "version": settings.APP_VERSION,
    "lifespan": lifespan,
}

app = FastAPI(**app_config)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS
)
app.add_middleware(LoggingMiddleware)

register_exception_handlers(app)

# Include routers
app.include_router(api_router, prefix="/api/v1")

@app.get("/")
async def root():
    return {
        "message": f"Welcome to the {settings.APP_NAME}!",
        "status": "active",
        "version": settings.APP_VERSION,
        "docs": "/docs"
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "components": {
            "database": "connected"
        }
    }


def run_http():
    """Run HTTP server on port 9106"""
    import uvicorn
    print("🚀 Starting HTTP server on port 9106...")
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=9106,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run_http()
