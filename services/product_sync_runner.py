# services/product_sync_runner.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from config import Settings, settings as default_settings
from crud.local_store import LocalStore
from crud.record_cache import RecordListCache
from errors import DashboardError, MalformedRecord, NoChangesError
from schemas import Product, ProductUpdate
from services import sync_tracker
from services.normalizer import Err, PRODUCT_ID_FIELDS, extract_records, format_price, normalize_products
from webhook_service import WebhookService

logger = logging.getLogger("products")

PRODUCTS_NAMESPACE = "products"


@dataclass
class ProductsOutcome:
    products: List[Product]
    has_loaded: bool
    dropped: int = 0
    error: Optional[DashboardError] = None


def product_cache(store: LocalStore) -> RecordListCache[Product]:
    return RecordListCache(store, PRODUCTS_NAMESPACE, Product)


def load_products(db: Session) -> ProductsOutcome:
    cache = product_cache(LocalStore(db))
    return ProductsOutcome(products=cache.load(), has_loaded=cache.has_loaded())


def refresh_products(
    db: Session,
    service: Optional[WebhookService] = None,
    config: Optional[Settings] = None,
) -> ProductsOutcome:
    """
    Background-safe products refresh. Remote failures fall back to the cached
    list; a blank body is a legitimately empty catalogue.
    """
    config = config or default_settings
    service = service or WebhookService(config)
    cache = product_cache(LocalStore(db))
    task_id = sync_tracker.add_task("products", "Refresh products")

    try:
        payload = service.get_products()
        if payload is None:
            records = []
        else:
            extracted = extract_records(payload, ("products", "data"), ("title",) + PRODUCT_ID_FIELDS,
                                        operation="products")
            if isinstance(extracted, Err):
                raise extracted.error
            records = extracted.records
    except DashboardError as e:
        cached = cache.load()
        logger.error("Products refresh failed (%s): %s; showing %d cached products", e.kind, e.message, len(cached))
        sync_tracker.finish_task(task_id, ok=False, note=e.user_message())
        return ProductsOutcome(products=cached, has_loaded=cache.has_loaded(), error=e)

    products, dropped = normalize_products(records, config.currency_symbol)
    cache.save(products)
    sync_tracker.finish_task(task_id, ok=True, note=f"Loaded {len(products)} products ({dropped} malformed dropped)")
    return ProductsOutcome(products=products, has_loaded=True, dropped=dropped)


def _strip_symbol(price_display: str, symbol: str) -> str:
    return price_display[len(symbol):] if price_display.startswith(symbol) else price_display


def build_product_update(
    product: Product,
    symbol: str,
    price: Optional[str] = None,
    sku: Optional[str] = None,
    inventory: Optional[str] = None,
) -> ProductUpdate:
    """
    Compares the submitted form values against the cached product and keeps
    only the fields that changed and are not blank.
    """
    try:
        variant_id = int(product.variant_id)
    except ValueError as e:
        raise MalformedRecord(f"product {product.title!r} has no numeric variant id") from e

    changes = {}
    if price is not None and price.strip() and price.strip() != _strip_symbol(product.price_display, symbol):
        changes["price"] = float(price)
    if sku is not None and sku.strip() and sku.strip() != product.sku:
        changes["sku"] = sku.strip()
    if inventory is not None and inventory.strip() and inventory.strip() != str(product.inventory_quantity):
        changes["inventory"] = int(inventory)
    if not changes:
        raise NoChangesError()
    return ProductUpdate(variant_id=variant_id, **changes)


def apply_product_update(
    db: Session,
    variant_id: str,
    price: Optional[str] = None,
    sku: Optional[str] = None,
    inventory: Optional[str] = None,
    service: Optional[WebhookService] = None,
    config: Optional[Settings] = None,
) -> Product:
    """
    Sends the update, then patches and re-caches the local product list.
    Raises LookupError when the variant is not in the cached list.
    """
    config = config or default_settings
    service = service or WebhookService(config)
    cache = product_cache(LocalStore(db))
    products = cache.load()
    current = next((p for p in products if p.variant_id == str(variant_id)), None)
    if current is None:
        raise LookupError(f"Variant {variant_id} is not in the product list")

    update = build_product_update(current, config.currency_symbol, price, sku, inventory)
    response = service.update_product(update)
    logger.info("Product update for variant %s accepted: %s", variant_id, response)

    changes = {}
    if update.price is not None:
        changes["price_display"] = format_price(update.price, config.currency_symbol, empty="0.00")
    if update.sku is not None:
        changes["sku"] = update.sku
    if update.inventory is not None:
        changes["inventory_quantity"] = update.inventory
    patched = current.model_copy(update=changes)
    cache.save([patched if p.variant_id == current.variant_id else p for p in products])
    return patched
