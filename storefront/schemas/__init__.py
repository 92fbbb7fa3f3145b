"""Schemas package"""

from .product import Product
from .cart import (
    Cart,
    CartLine,
    CartSnapshot,
    CartTotals,
    CheckoutResult,
    ProductUnavailable,
    ReconciliationResult,
)
from .coupon import Coupon, CouponResult, DiscountType
from .events import PixelEventParams, TrackedEvent, TrackedEventKind
from .store import StoreResult, StoreStatus

__all__ = [
    "Product",
    "Cart",
    "CartLine",
    "CartSnapshot",
    "CartTotals",
    "CheckoutResult",
    "ProductUnavailable",
    "ReconciliationResult",
    "Coupon",
    "CouponResult",
    "DiscountType",
    "PixelEventParams",
    "TrackedEvent",
    "TrackedEventKind",
    "StoreResult",
    "StoreStatus",
]
