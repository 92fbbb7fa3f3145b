"""
Cart schemas: the in-memory aggregate, its persisted snapshot and operation results
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Tuple
from decimal import Decimal


class CartLine(BaseModel):
    """One product line in the cart"""
    product_id: str = Field(..., alias="productId", min_length=1)
    quantity: int = Field(..., ge=1)
    unit_price_snapshot: Decimal = Field(..., alias="unitPriceSnapshot", ge=0)
    name: Optional[str] = None

    class Config:
        frozen = True
        populate_by_name = True

    @property
    def line_total(self) -> Decimal:
        return self.unit_price_snapshot * self.quantity


class Cart(BaseModel):
    """
    Current session cart

    Lines keep insertion order and are unique by product id. `revision`
    grows by one on every mutation and is never persisted.
    """
    lines: Tuple[CartLine, ...] = ()
    revision: int = 0

    class Config:
        frozen = True

    def get(self, product_id: str) -> Optional[CartLine]:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    def __contains__(self, product_id: str) -> bool:
        return self.get(product_id) is not None

    @property
    def product_ids(self) -> List[str]:
        return [line.product_id for line in self.lines]

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self.lines), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self.lines


class CartSnapshot(BaseModel):
    """Wire format of the cart in client-local storage and the backend mirror"""
    version: int
    lines: List[CartLine] = []

    class Config:
        populate_by_name = True

    @field_validator("lines")
    @classmethod
    def unique_products(cls, v):
        seen = set()
        for line in v:
            if line.product_id in seen:
                raise ValueError(f"duplicate line for product {line.product_id}")
            seen.add(line.product_id)
        return v


class CartTotals(BaseModel):
    """Cart totals (prices are GST inclusive)"""
    subtotal: Decimal
    discount: Decimal = Field(default=Decimal("0"))
    total: Decimal
    item_count: int
    cgst: Decimal
    sgst: Decimal
    coupon_code: Optional[str] = None
    shipping_note: Optional[str] = None


class ProductUnavailable(BaseModel):
    """Notice for a line dropped because its product no longer exists"""
    product_id: str
    name: Optional[str] = None
    message: str


class ReconciliationResult(BaseModel):
    """Outcome of reconciling the cart with the record store"""
    cart: Cart
    unavailable: List[ProductUnavailable] = []
    repriced: List[str] = []
    applied: bool = True


class CheckoutResult(BaseModel):
    """Outcome of handing the cart to order creation"""
    success: bool
    order_id: Optional[str] = None
    totals: Optional[CartTotals] = None
    error_code: Optional[str] = None
    message: str = ""
