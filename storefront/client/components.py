"""
Page components: the cart page and the product page

Each component is one mounted instance. Re-rendering calls `render()`
again; unmounting calls `unmount()`, after which a new instance is a new
lifetime for event tracking.
"""

from typing import List, Optional
import asyncio
import logging

from jinja2 import Environment, select_autoescape

from storefront.client.boundary import ClientOnlyBoundary
from storefront.client.runtime import ClientContext
from storefront.schemas.cart import CheckoutResult, ProductUnavailable, ReconciliationResult
from storefront.schemas.events import TrackedEventKind
from storefront.schemas.product import Product
from storefront.services.cart_store import CartStore
from storefront.services.event_deduper import EventDeduper
from storefront.services.pixel import (
    MetaPixel,
    add_to_cart_params,
    checkout_params,
    view_content_params,
)
from storefront.services.record_store import RecordStoreClient
from storefront.utils.helpers import format_currency

logger = logging.getLogger(__name__)

env = Environment(autoescape=select_autoescape(default=True, default_for_string=True))
env.filters["money"] = format_currency

CART_TEMPLATE = env.from_string("""\
<section class="cart" data-revision="{{ cart.revision }}">
{% for notice in notices %}  <p class="cart-notice">{{ notice.message }}</p>
{% endfor %}{% if cart.is_empty %}  <p class="cart-empty">Your cart is empty.</p>
{% else %}{% for line in cart.lines %}  <div class="cart-line" data-product-id="{{ line.product_id }}">
    <span class="name">{{ line.name or line.product_id }}</span>
    <span class="price">{{ line.unit_price_snapshot | money }}</span>
    <span class="quantity">{{ line.quantity }}</span>
    <span class="line-total">{{ line.line_total | money }}</span>
  </div>
{% endfor %}  <div class="cart-totals">
    <span class="subtotal">{{ totals.subtotal | money }}</span>
{% if totals.discount > 0 %}    <span class="discount">- {{ totals.discount | money }}</span>
{% endif %}    <span class="total">{{ totals.total | money }}</span>
  </div>
{% endif %}</section>
""")

PRODUCT_TEMPLATE = env.from_string("""\
<article class="product" data-product-id="{{ product.id }}">
  <h1>{{ product.name }}</h1>
  <span class="price">{{ product.price | money }}</span>
  <span class="cart-count">{{ cart_count }}</span>
</article>
""")


def _spawn(coro) -> Optional[asyncio.Task]:
    """Run a coroutine in the background if a loop is running"""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        coro.close()
        return None
    return loop.create_task(coro)


class Component:
    """Base for mounted components"""

    def __init__(self, context: ClientContext):
        self.context = context
        self.mounted = True

    def render(self) -> str:
        raise NotImplementedError

    def unmount(self):
        self.mounted = False


class ViewContentPixel:
    """Fires ViewContent for a product on every render, deduplicated"""

    def __init__(self, deduper: EventDeduper, pixel: MetaPixel):
        self.deduper = deduper
        self.pixel = pixel

    def observe(self, product: Optional[Product]) -> bool:
        if product is None:
            return False
        return self.deduper.fire_once(
            TrackedEventKind.VIEW_CONTENT,
            product.id,
            view_content_params(product),
            self.pixel.sink_for(TrackedEventKind.VIEW_CONTENT),
        )


class ProductPixel(ViewContentPixel):
    """Product-specific pixel; shares the page deduper with ViewContentPixel"""

    def observe(self, product: Optional[Product]) -> bool:
        fired = super().observe(product)
        if fired:
            logger.info(f"Meta ViewContent fired: {product.name}")
        return fired


class ProductPage(Component):
    """Product detail page with its view tracking and add-to-cart action"""

    def __init__(
        self,
        context: ClientContext,
        product: Product,
        cart_store: Optional[CartStore] = None,
        record_store: Optional[RecordStoreClient] = None,
    ):
        super().__init__(context)
        self.product = product
        self.deduper = EventDeduper()
        self.pixel = MetaPixel(context.window)
        self.observers = [
            ViewContentPixel(self.deduper, self.pixel),
            ProductPixel(self.deduper, self.pixel),
        ]
        self.cart_store = cart_store
        if self.cart_store is None and context.is_browser:
            self.cart_store = CartStore(
                context.local_storage,
                record_store=record_store,
                session_id=context.session_id,
            )
            self.cart_store.load()

    def render(self) -> str:
        if self.mounted:
            for observer in self.observers:
                observer.observe(self.product)
        return PRODUCT_TEMPLATE.render(
            product=self.product,
            cart_count=self.cart_store.count if self.cart_store else 0,
        )

    def add_to_cart(self, quantity: int = 1):
        if self.cart_store is None:
            logger.debug("Add to cart outside a browser context ignored")
            return None
        cart = self.cart_store.add_item(self.product, quantity)
        self.deduper.fire_once(
            TrackedEventKind.ADD_TO_CART,
            self.product.id,
            add_to_cart_params(self.product, quantity),
            self.pixel.sink_for(TrackedEventKind.ADD_TO_CART),
        )
        return cart

    def unmount(self):
        super().unmount()
        self.deduper.reset()


class CartPage(Component):
    """
    Cart page

    Mounting loads the stored cart and renders it straight away; syncing
    with the backend runs as a background task whose result is applied
    when it arrives.
    """

    def __init__(self, context: ClientContext, record_store: Optional[RecordStoreClient] = None):
        super().__init__(context)
        self.store = CartStore(
            context.local_storage,
            record_store=record_store,
            session_id=context.session_id,
        )
        self.deduper = EventDeduper()
        self.pixel = MetaPixel(context.window)
        self.notices: List[ProductUnavailable] = []
        self.store.load()
        self.refresh_task = _spawn(self.refresh())

    async def refresh(self) -> ReconciliationResult:
        """Hydrate from the backend mirror, then reconcile with the catalogue"""
        await self.store.hydrate()
        result = await self.store.reconcile_with_backend()
        if result.unavailable:
            self.notices.extend(result.unavailable)
        return result

    def render(self) -> str:
        return CART_TEMPLATE.render(
            cart=self.store.cart,
            totals=self.store.totals(),
            notices=self.notices,
        )

    def dismiss_notices(self):
        self.notices = []

    async def checkout(self) -> CheckoutResult:
        cart = self.store.cart
        if not cart.is_empty:
            self.deduper.fire_once(
                TrackedEventKind.INITIATE_CHECKOUT,
                f"rev-{cart.revision}",
                checkout_params(cart, self.store.totals().total),
                self.pixel.sink_for(TrackedEventKind.INITIATE_CHECKOUT),
            )

        result = await self.store.checkout()
        if result.success:
            self.deduper.fire_once(
                TrackedEventKind.PURCHASE,
                result.order_id,
                checkout_params(cart, result.totals.total),
                self.pixel.sink_for(TrackedEventKind.PURCHASE),
            )
        return result

    def unmount(self):
        super().unmount()
        if self.refresh_task is not None and not self.refresh_task.done():
            self.refresh_task.cancel()
        self.deduper.reset()


def cart_page_boundary(record_store: Optional[RecordStoreClient] = None) -> ClientOnlyBoundary[CartPage]:
    """The cart page as it ships: only ever mounted in the browser"""
    return ClientOnlyBoundary(
        lambda context: CartPage(context, record_store=record_store),
        placeholder='<div id="cart-root" data-client-only="true"></div>',
    )
