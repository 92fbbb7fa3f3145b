"""Product lookup router"""

from fastapi import APIRouter, Depends

from storefront.core.exceptions import (
    NotFoundException,
    ServiceUnavailableException,
    UnconfiguredException,
)
from storefront.schemas.product import Product
from storefront.services.record_store import RecordStoreClient, get_record_store

router = APIRouter()


@router.get("/{product_id}", response_model=Product)
async def get_product(
    product_id: str,
    store: RecordStoreClient = Depends(get_record_store)
):
    """Get a product from the record store"""
    result = await store.get("products", product_id)

    if result.unconfigured:
        raise UnconfiguredException()
    if result.not_found:
        raise NotFoundException("Product not found", error_code="PRODUCT_NOT_FOUND")
    if not result.ok:
        raise ServiceUnavailableException("Product catalogue is unavailable")

    return Product.from_record(result.record)
