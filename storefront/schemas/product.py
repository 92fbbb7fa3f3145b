"""
Product schemas
"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, Literal
from decimal import Decimal


class Product(BaseModel):
    """Catalogue product as the cart sees it"""
    id: str = Field(..., min_length=1, description="Product ID")
    name: str = Field(..., description="Display name")
    price: Decimal = Field(..., ge=0, description="Unit price in INR")
    currency: Literal["INR"] = "INR"

    class Config:
        frozen = True

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        # Backend ids are numeric
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @classmethod
    def from_record(cls, row: Dict[str, Any]) -> "Product":
        """Map a products table row onto a Product"""
        return cls(
            id=row["id"],
            name=row.get("name") or "",
            price=Decimal(str(row.get("price") or 0)),
        )
