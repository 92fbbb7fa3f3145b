"""
Cart store: the session cart, its client-local snapshot and its backend mirror
"""

from typing import Any, Iterable, Mapping, Optional, Set, Union
from datetime import datetime, timezone
from decimal import Decimal
import asyncio
import json
import logging
import uuid

from pydantic import ValidationError

from storefront.core.config import Settings, settings as default_settings
from storefront.core.exceptions import InvalidQuantityException, PersistenceCorruptException
from storefront.schemas.cart import (
    Cart,
    CartLine,
    CartSnapshot,
    CartTotals,
    CheckoutResult,
    ProductUnavailable,
    ReconciliationResult,
)
from storefront.schemas.coupon import CouponResult
from storefront.schemas.product import Product
from storefront.schemas.store import StoreStatus
from storefront.services.coupon_service import CouponService
from storefront.services.record_store import RecordStoreClient, get_record_store
from storefront.services.storage import ClientStorage
from storefront.utils.helpers import round_money, round_rupee

logger = logging.getLogger(__name__)

GST_HALF_RATE = Decimal("0.025")
FREE_SHIPPING_THRESHOLD = Decimal("600")


def _check_quantity(quantity: Any):
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantityException(quantity)


class CartStore:
    """
    Owns every mutation of the session cart

    Mutations are synchronous: the new cart is built, its snapshot written
    to client-local storage, and only then swapped in. Network results come
    back through `_apply_remote`, which drops anything computed against an
    older revision than the current one.
    """

    def __init__(
        self,
        storage: Optional[ClientStorage],
        record_store: Optional[RecordStoreClient] = None,
        session_id: Optional[str] = None,
        coupon_service: Optional[CouponService] = None,
        config: Optional[Settings] = None,
    ):
        self.storage = storage
        self.record_store = record_store or get_record_store()
        self.session_id = session_id
        self.coupon_service = coupon_service or CouponService()
        self.config = config or default_settings

        self._cart = Cart()
        self._loaded = False
        self._coupon_code: Optional[str] = None
        self._mirrored_revision = 0
        self._mirror_lock = asyncio.Lock()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def count(self) -> int:
        return self._cart.item_count

    @property
    def coupon_code(self) -> Optional[str]:
        return self._coupon_code

    @property
    def max_quantity(self) -> int:
        return self.config.CART_MAX_LINE_QUANTITY

    # Snapshot encoding

    def _encode(self, cart: Cart) -> str:
        snapshot = CartSnapshot(version=self.config.CART_SNAPSHOT_VERSION, lines=list(cart.lines))
        return snapshot.model_dump_json(by_alias=True)

    def _decode(self, raw: Union[str, Mapping[str, Any], None]) -> tuple:
        """Snapshot (JSON text or parsed mapping) to cart lines"""
        if raw is None:
            return ()
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError as e:
                raise PersistenceCorruptException(f"unreadable JSON ({e})")
        if not isinstance(raw, Mapping):
            raise PersistenceCorruptException("snapshot is not an object")
        if raw.get("version") != self.config.CART_SNAPSHOT_VERSION:
            raise PersistenceCorruptException(f"version mismatch ({raw.get('version')!r})")
        try:
            snapshot = CartSnapshot.model_validate(raw)
        except ValidationError as e:
            raise PersistenceCorruptException(f"schema validation failed ({e.error_count()} errors)")
        return tuple(snapshot.lines)

    # Client-local persistence

    def _read_local(self) -> tuple:
        if self.storage is None:
            return ()
        try:
            raw = self.storage.get_item(self.config.CART_STORAGE_KEY)
        except Exception as e:
            raise PersistenceCorruptException(f"storage read failed ({e})")
        if raw is None:
            logger.debug("No stored cart, starting empty")
        return self._decode(raw)

    def _write_local(self, cart: Cart):
        if self.storage is None:
            return
        encoded = self._encode(cart)
        try:
            self.storage.set_item(self.config.CART_STORAGE_KEY, encoded)
        except Exception as e:
            logger.error(f"Failed to persist cart snapshot: {e}")

    def _remove_local(self):
        if self.storage is None:
            return
        try:
            self.storage.remove_item(self.config.CART_STORAGE_KEY)
        except Exception as e:
            logger.error(f"Failed to remove cart snapshot: {e}")

    # State transitions

    def _commit(self, lines: Iterable[CartLine], persist: bool = True, mirror: bool = True) -> Cart:
        cart = Cart(lines=tuple(lines), revision=self._cart.revision + 1)
        if persist:
            if cart.is_empty:
                self._remove_local()
            else:
                self._write_local(cart)
        self._cart = cart
        if mirror:
            self._schedule_mirror()
        else:
            self._mirrored_revision = cart.revision
        return cart

    def _apply_remote(self, started_revision: int, lines: Iterable[CartLine], mirror: bool = True) -> Optional[Cart]:
        """Single entry point for results of network calls"""
        if self._cart.revision != started_revision:
            logger.info(
                f"Discarding stale backend result (revision {started_revision}, now {self._cart.revision})"
            )
            return None
        return self._commit(lines, mirror=mirror)

    def load(self) -> Cart:
        """Read the stored cart; a missing or corrupt snapshot gives an empty cart"""
        try:
            lines = self._read_local()
        except PersistenceCorruptException as e:
            logger.warning(f"Discarding stored cart: {e.reason}")
            self._remove_local()
            lines = ()
        self._loaded = True
        return self._commit(lines, persist=False, mirror=False)

    def add_item(self, product: Union[Product, Mapping[str, Any]], quantity: int = 1) -> Cart:
        """Add a product, merging with an existing line for the same product"""
        _check_quantity(quantity)
        if quantity < 1:
            raise InvalidQuantityException(quantity)
        if not isinstance(product, Product):
            product = Product.model_validate(product)

        lines = list(self._cart.lines)
        for i, line in enumerate(lines):
            if line.product_id == product.id:
                lines[i] = line.model_copy(
                    update={"quantity": min(line.quantity + quantity, self.max_quantity)}
                )
                break
        else:
            lines.append(CartLine(
                product_id=product.id,
                quantity=min(quantity, self.max_quantity),
                unit_price_snapshot=product.price,
                name=product.name,
            ))
        logger.debug(f"Added {quantity} x {product.id} to cart")
        return self._commit(lines)

    def remove_item(self, product_id: str) -> Cart:
        """Remove a line; unknown ids are ignored"""
        product_id = str(product_id)
        if product_id not in self._cart:
            return self._cart
        return self._commit(line for line in self._cart.lines if line.product_id != product_id)

    def set_quantity(self, product_id: str, quantity: int) -> Cart:
        """Set a line's quantity; zero or less removes the line"""
        _check_quantity(quantity)
        product_id = str(product_id)
        if quantity <= 0:
            return self.remove_item(product_id)
        if product_id not in self._cart:
            logger.debug(f"set_quantity for {product_id} which is not in the cart")
            return self._cart

        quantity = min(quantity, self.max_quantity)
        return self._commit(
            line.model_copy(update={"quantity": quantity}) if line.product_id == product_id else line
            for line in self._cart.lines
        )

    def clear(self) -> Cart:
        """Empty the cart and forget its snapshot"""
        self._coupon_code = None
        return self._commit(())

    # Coupons and totals

    def apply_coupon(self, code: str) -> CouponResult:
        result = self.coupon_service.validate_coupon(code, self._cart.subtotal)
        self._coupon_code = result.coupon_code if result.valid else None
        return result

    def remove_coupon(self):
        self._coupon_code = None

    def totals(self) -> CartTotals:
        """Totals for the current cart, coupon re-checked against the current subtotal"""
        cart = self._cart
        subtotal = cart.subtotal
        discount = Decimal("0")
        applied_code = None

        if self._coupon_code and not cart.is_empty:
            result = self.coupon_service.validate_coupon(self._coupon_code, subtotal)
            if result.valid:
                discount = result.discount_amount
                applied_code = result.coupon_code

        total = round_rupee(max(Decimal("0"), subtotal - discount))
        shipping_note = None
        if not cart.is_empty and total < FREE_SHIPPING_THRESHOLD:
            shipping_note = (
                f"Orders below ₹{FREE_SHIPPING_THRESHOLD} are charged ₹30 shipping for prepaid "
                f"payment and ₹75 for cash on delivery."
            )

        return CartTotals(
            subtotal=round_money(subtotal),
            discount=round_money(discount),
            total=total,
            item_count=cart.item_count,
            cgst=round_money(total * GST_HALF_RATE),
            sgst=round_money(total * GST_HALF_RATE),
            coupon_code=applied_code,
            shipping_note=shipping_note,
        )

    # Backend

    def _schedule_mirror(self):
        if not self.session_id or not self.record_store.writable:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (plain sync caller); the next sync_to_backend catches up
            return
        task = loop.create_task(self.sync_to_backend())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_for_sync(self):
        """Wait for scheduled mirror writes"""
        if self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def sync_to_backend(self) -> bool:
        """Best-effort write of the current cart to the backend mirror"""
        if not self.session_id:
            return False

        async with self._mirror_lock:
            cart = self._cart
            if cart.revision <= self._mirrored_revision:
                return True

            if cart.is_empty:
                result = await self.record_store.delete("carts", self.session_id)
            else:
                result = await self.record_store.put("carts", self.session_id, {
                    "snapshot": json.loads(self._encode(cart)),
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })

            if not result.ok:
                logger.warning(f"Cart mirror write failed for {self.session_id}: {result.status.value}")
                return False
            self._mirrored_revision = max(self._mirrored_revision, cart.revision)
            return True

    async def hydrate(self) -> Cart:
        """Local cart (loaded if needed), falling back to the backend mirror when it is empty"""
        cart = self._cart if self._loaded else self.load()
        if not cart.is_empty or not self.session_id:
            return cart

        started = cart.revision
        result = await self.record_store.get("carts", self.session_id)
        if not result.ok:
            if result.status == StoreStatus.ERROR:
                logger.warning(f"Could not read cart mirror for {self.session_id}: {result.detail}")
            return self._cart

        try:
            lines = self._decode((result.record or {}).get("snapshot"))
        except PersistenceCorruptException as e:
            logger.warning(f"Ignoring cart mirror for {self.session_id}: {e.reason}")
            return self._cart

        restored = self._apply_remote(started, lines, mirror=False)
        if restored is None:
            return self._cart
        if not restored.is_empty:
            logger.info(f"Restored cart for {self.session_id} from backend mirror")
        return restored

    async def reconcile_with_backend(self, reprice: bool = False) -> ReconciliationResult:
        """
        Check every line against the product catalogue

        Lines whose product is gone are dropped with one notice each. Prices
        change only when `reprice` is set. Lookup failures keep the cart as is.
        """
        cart = self._cart
        if cart.is_empty:
            return ReconciliationResult(cart=cart)

        started = cart.revision
        result = await self.record_store.get_many("products", cart.product_ids)
        if not result.ok:
            if result.status == StoreStatus.UNCONFIGURED:
                logger.info("Skipping reconciliation, record store not configured")
            else:
                logger.warning(f"Reconciliation lookup failed: {result.detail}")
            return ReconciliationResult(cart=self._cart, applied=False)

        found = result.record or {}
        lines = []
        unavailable = []
        repriced = []
        for line in cart.lines:
            row = found.get(line.product_id)
            if row is None:
                label = line.name or line.product_id
                unavailable.append(ProductUnavailable(
                    product_id=line.product_id,
                    name=line.name,
                    message=f"{label} is no longer available and was removed from your cart",
                ))
                continue

            if reprice:
                try:
                    product = Product.from_record(row)
                except (ValidationError, KeyError) as e:
                    logger.warning(f"Unusable product row for {line.product_id}: {e}")
                else:
                    if product.price != line.unit_price_snapshot:
                        line = line.model_copy(update={
                            "unit_price_snapshot": product.price,
                            "name": product.name or line.name,
                        })
                        repriced.append(line.product_id)
            lines.append(line)

        if not unavailable and not repriced:
            return ReconciliationResult(cart=cart)

        updated = self._apply_remote(started, lines)
        if updated is None:
            return ReconciliationResult(cart=self._cart, applied=False)

        for notice in unavailable:
            logger.info(f"Dropped unavailable product {notice.product_id} from cart")
        return ReconciliationResult(cart=updated, unavailable=unavailable, repriced=repriced)

    def _without_ordered(self, ordered: Cart) -> list:
        """Current lines minus what `ordered` already covered"""
        lines = []
        for line in self._cart.lines:
            placed = ordered.get(line.product_id)
            if placed is None:
                lines.append(line)
            elif line.quantity > placed.quantity:
                lines.append(line.model_copy(update={"quantity": line.quantity - placed.quantity}))
        return lines

    async def checkout(self) -> CheckoutResult:
        """
        Hand the cart to order creation

        The cart is cleared only when the order record was written. Lines
        added or raised while the order was in flight stay in the cart.
        """
        cart = self._cart
        started = cart.revision
        if cart.is_empty:
            return CheckoutResult(
                success=False,
                error_code="EMPTY_CART",
                message="Your cart is empty. Please add items to proceed.",
            )

        totals = self.totals()
        order_id = str(uuid.uuid4())
        record = {
            "session_id": self.session_id,
            "status": "pending",
            "currency": self.config.CURRENCY,
            "items": [line.model_dump(mode="json") for line in cart.lines],
            "subtotal": float(totals.subtotal),
            "discount": float(totals.discount),
            "total": float(totals.total),
            "coupon_code": totals.coupon_code,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

        result = await self.record_store.put("orders", order_id, record)
        if not result.ok:
            logger.error(f"Order creation failed: {result.status.value} {result.detail or ''}")
            return CheckoutResult(
                success=False,
                totals=totals,
                error_code=result.status.value.upper(),
                message="We could not place your order. Please try again.",
            )

        logger.info(f"Order {order_id} created for {cart.item_count} items")
        self._coupon_code = None
        if self._apply_remote(started, ()) is None:
            self._commit(self._without_ordered(cart))
        return CheckoutResult(
            success=True,
            order_id=order_id,
            totals=totals,
            message="Order placed. Thank you!",
        )
