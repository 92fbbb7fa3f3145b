"""Main FastAPI application"""

from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging

from storefront.core.config import settings
from storefront.core.logging import setup_logging
from storefront.core.middleware import setup_middleware
from storefront.services.record_store import get_record_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME}...")

    store = get_record_store()
    if not store.configured:
        logger.warning("Running without record store credentials; cart works from local storage only")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Storefront cart, coupons and catalogue lookups",
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan
)

setup_middleware(app)

# Include routers
from storefront.api.v1 import api_router
from storefront.api.pages import router as pages_router

app.include_router(api_router, prefix="/api/v1")
app.include_router(pages_router)


# Health check
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "record_store": get_record_store().access,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "storefront.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
