"""
Coupon schemas
"""

from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal
import enum


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Coupon(BaseModel):
    """Coupon definition"""
    code: str
    discount_type: DiscountType
    discount_value: Decimal = Field(..., gt=0)
    min_order_value: Decimal = Field(default=Decimal("0"))
    max_discount: Optional[Decimal] = None
    description: str = ""


class CouponResult(BaseModel):
    """Schema for coupon validation result"""
    valid: bool
    coupon_code: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = None
    discount_amount: Decimal = Field(default=Decimal("0"))
    original_total: Decimal = Field(default=Decimal("0"))
    final_total: Decimal = Field(default=Decimal("0"))
    error_code: Optional[str] = None
    message: str = ""
