"""
Meta pixel sink and event parameter builders
"""

from typing import Any, Callable, Mapping, Optional
import logging

from storefront.core.config import settings
from storefront.core.exceptions import SinkUnavailableException
from storefront.schemas.cart import Cart
from storefront.schemas.events import PixelEventParams, TrackedEventKind
from storefront.schemas.product import Product

logger = logging.getLogger(__name__)

PixelSink = Callable[[PixelEventParams], Any]


class MetaPixel:
    """
    Access to the `fbq` global of a client context

    The global is looked up on every call; it may be loaded late or never
    (ad blockers, consent not granted).
    """

    GLOBAL_NAME = "fbq"

    def __init__(self, window: Optional[Mapping[str, Any]] = None):
        self.window = window

    @property
    def available(self) -> bool:
        return callable(self._fbq())

    def _fbq(self):
        if self.window is None:
            return None
        return self.window.get(self.GLOBAL_NAME)

    def track(self, kind: TrackedEventKind, params: PixelEventParams):
        fbq = self._fbq()
        if not callable(fbq):
            raise SinkUnavailableException(f"{self.GLOBAL_NAME} is not loaded")
        fbq("track", TrackedEventKind(kind).value, params.model_dump())
        logger.debug(f"Meta {TrackedEventKind(kind).value} fired: {params.content_name}")

    def sink_for(self, kind: TrackedEventKind) -> PixelSink:
        """Sink that emits `kind` with whatever params it is handed"""
        def sink(params: PixelEventParams):
            self.track(kind, params)
        return sink


def view_content_params(product: Product) -> PixelEventParams:
    return PixelEventParams(
        content_ids=[product.id],
        content_name=product.name,
        content_type="product",
        value=float(product.price),
        currency=settings.CURRENCY,
    )


def add_to_cart_params(product: Product, quantity: int) -> PixelEventParams:
    return PixelEventParams(
        content_ids=[product.id],
        content_name=product.name,
        content_type="product",
        value=float(product.price * quantity),
        currency=settings.CURRENCY,
    )


def checkout_params(cart: Cart, value=None) -> PixelEventParams:
    names = [line.name or line.product_id for line in cart.lines]
    return PixelEventParams(
        content_ids=cart.product_ids,
        content_name=", ".join(names),
        content_type="product",
        value=float(cart.subtotal if value is None else value),
        currency=settings.CURRENCY,
    )
