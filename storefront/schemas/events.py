"""
Analytics event schemas
"""

from pydantic import BaseModel, Field
from typing import List
from datetime import datetime
import enum


class TrackedEventKind(str, enum.Enum):
    """Meta pixel standard events emitted by the storefront"""
    VIEW_CONTENT = "ViewContent"
    ADD_TO_CART = "AddToCart"
    INITIATE_CHECKOUT = "InitiateCheckout"
    PURCHASE = "Purchase"


class TrackedEvent(BaseModel):
    """An event that reached the pixel sink"""
    kind: TrackedEventKind
    subject_id: str
    fired_at: datetime


class PixelEventParams(BaseModel):
    """Parameters passed to fbq("track", ...)"""
    content_ids: List[str]
    content_name: str
    content_type: str = "product"
    value: float = Field(..., ge=0)
    currency: str = "INR"
