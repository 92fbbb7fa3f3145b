"""Services package"""

from .cart_store import CartStore
from .coupon_service import CouponService
from .event_deduper import EventDeduper
from .pixel import MetaPixel
from .record_store import RecordStoreClient, get_record_store
from .storage import ClientStorage, FileStorage, MemoryStorage

__all__ = [
    "CartStore",
    "CouponService",
    "EventDeduper",
    "MetaPixel",
    "RecordStoreClient",
    "get_record_store",
    "ClientStorage",
    "FileStorage",
    "MemoryStorage",
]
