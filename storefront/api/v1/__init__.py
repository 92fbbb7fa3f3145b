"""API v1 routes aggregation"""

from fastapi import APIRouter

from .cart.router import router as cart_router
from .products.router import router as products_router

# Create v1 router
api_router = APIRouter()

api_router.include_router(products_router, prefix="/products", tags=["Products"])
api_router.include_router(cart_router, prefix="/cart", tags=["Cart"])
