"""
Coupon service for validating discount coupons against a cart total
"""

from typing import Dict, Optional
from decimal import Decimal
import logging
import re

from storefront.schemas.coupon import Coupon, CouponResult, DiscountType
from storefront.utils.helpers import round_money

logger = logging.getLogger(__name__)

COUPON_CODE_PATTERN = re.compile(r"^[A-Z0-9]{3,20}$")

DEFAULT_COUPONS: Dict[str, Coupon] = {
    "IDAY30": Coupon(
        code="IDAY30",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("30"),
        max_discount=Decimal("1000"),
        description="Independence Day Sale - 30% off sitewide",
    ),
    "GORKHA10": Coupon(
        code="GORKHA10",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("10"),
        min_order_value=Decimal("500"),
        description="Gorkha Leaf Special - 10% off on orders above ₹500",
    ),
    "WELCOME20": Coupon(
        code="WELCOME20",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("20"),
        max_discount=Decimal("500"),
        description="Welcome offer - 20% off for new customers",
    ),
    "FLAT100": Coupon(
        code="FLAT100",
        discount_type=DiscountType.FIXED,
        discount_value=Decimal("100"),
        min_order_value=Decimal("1000"),
        description="Flat ₹100 off on orders above ₹1000",
    ),
}


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def is_valid_coupon_code(code: str) -> bool:
    """Alphanumeric, 3-20 characters"""
    return bool(COUPON_CODE_PATTERN.match(normalize_code(code)))


class CouponService:
    """
    Service for coupon validation
    """

    def __init__(self, coupons: Optional[Dict[str, Coupon]] = None):
        self.coupons = coupons if coupons is not None else DEFAULT_COUPONS

    def get_coupon(self, code: str) -> Optional[Coupon]:
        return self.coupons.get(normalize_code(code))

    @staticmethod
    def calculate_discount(coupon: Coupon, cart_total: Decimal) -> Decimal:
        """Discount for a cart total, never more than the total itself"""
        cart_total = Decimal(cart_total)
        if coupon.discount_type == DiscountType.PERCENTAGE:
            discount = cart_total * coupon.discount_value / Decimal(100)
            if coupon.max_discount is not None and discount > coupon.max_discount:
                discount = coupon.max_discount
        else:
            discount = min(coupon.discount_value, cart_total)
        return round_money(max(Decimal(0), min(discount, cart_total)))

    def validate_coupon(self, code: str, cart_total: Decimal) -> CouponResult:
        """
        Validate coupon and calculate discount
        """
        cart_total = Decimal(cart_total)
        normalized = normalize_code(code)

        if not normalized:
            return CouponResult(
                valid=False,
                original_total=cart_total,
                final_total=cart_total,
                error_code="MISSING_COUPON",
                message="Coupon code is required",
            )

        if not is_valid_coupon_code(normalized):
            return CouponResult(
                valid=False,
                original_total=cart_total,
                final_total=cart_total,
                error_code="INVALID_COUPON_FORMAT",
                message="Please enter a valid coupon code",
            )

        coupon = self.coupons.get(normalized)
        if not coupon:
            logger.info(f"Unknown coupon code {normalized}")
            return CouponResult(
                valid=False,
                coupon_code=normalized,
                original_total=cart_total,
                final_total=cart_total,
                error_code="INVALID_COUPON",
                message="Invalid or expired coupon code",
            )

        if coupon.min_order_value and cart_total < coupon.min_order_value:
            return CouponResult(
                valid=False,
                coupon_code=normalized,
                original_total=cart_total,
                final_total=cart_total,
                error_code="MIN_ORDER_NOT_MET",
                message=f"Minimum order value of ₹{coupon.min_order_value} required for this coupon",
            )

        discount = self.calculate_discount(coupon, cart_total)
        unit = "%" if coupon.discount_type == DiscountType.PERCENTAGE else "₹"
        return CouponResult(
            valid=True,
            coupon_code=normalized,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
            discount_amount=discount,
            original_total=cart_total,
            final_total=round_money(max(Decimal(0), cart_total - discount)),
            message=f"{coupon.discount_value}{unit} discount applied successfully!",
        )
