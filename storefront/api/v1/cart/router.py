"""Cart router: coupon application"""

from fastapi import APIRouter
import logging

from storefront.core.exceptions import BadRequestException, InvalidCouponException
from storefront.services.coupon_service import CouponService
from .schemas import ApplyCouponRequest, ApplyCouponResponse

logger = logging.getLogger(__name__)

router = APIRouter()
coupon_service = CouponService()


@router.post("/apply-coupon", response_model=ApplyCouponResponse)
async def apply_coupon(payload: ApplyCouponRequest):
    """Validate a coupon against a cart total and return the discount"""
    if not payload.coupon_code:
        raise BadRequestException("Coupon code is required", error_code="MISSING_COUPON")
    if payload.cart_total < 0:
        raise BadRequestException("Invalid cart total", error_code="INVALID_CART_TOTAL")

    result = coupon_service.validate_coupon(payload.coupon_code, payload.cart_total)
    if not result.valid:
        raise InvalidCouponException(result.message, error_code=result.error_code)

    logger.info(f"Coupon {result.coupon_code} applied to total {payload.cart_total}")
    return ApplyCouponResponse(success=True, message=result.message, data=result)


@router.delete("/apply-coupon", response_model=ApplyCouponResponse)
async def remove_coupon():
    """Coupons live in the client cart; removal only needs acknowledging"""
    return ApplyCouponResponse(success=True, message="Coupon removed successfully")
