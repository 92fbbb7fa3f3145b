"""
Cart API schemas
"""

from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal

from storefront.schemas.coupon import CouponResult


class ApplyCouponRequest(BaseModel):
    """Schema for apply coupon request"""
    coupon_code: Optional[str] = Field(None, alias="couponCode", description="Coupon code to apply")
    cart_total: Decimal = Field(default=Decimal("0"), alias="cartTotal", description="Cart total before discount")

    class Config:
        populate_by_name = True


class ApplyCouponResponse(BaseModel):
    """Schema for apply coupon response"""
    success: bool
    message: str
    data: Optional[CouponResult] = None
