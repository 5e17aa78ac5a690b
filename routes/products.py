# routes/products.py

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import get_db
from errors import DashboardError
from routes.base import http_error, error_payload
from services import product_sync_runner

router = APIRouter(
    prefix="/api/products",
    tags=["Products"],
)


class ProductUpdateForm(BaseModel):
    """Raw form values; blank or unchanged fields are not sent."""
    variant_id: str
    price: Optional[str] = None
    sku: Optional[str] = None
    inventory: Optional[str] = None


def _products_view(outcome: product_sync_runner.ProductsOutcome, search: Optional[str] = None) -> dict:
    products = outcome.products
    if search:
        term = search.lower()
        products = [p for p in products if term in p.title.lower() or term in p.sku.lower()]
    return {
        "has_loaded": outcome.has_loaded,
        "total_count": len(outcome.products),
        "products": [p.model_dump(mode="json") for p in products],
        "error": error_payload(outcome.error),
        "dropped": outcome.dropped,
    }


@router.get("/")
def get_products(search: Optional[str] = None, db: Session = Depends(get_db)):
    """
    Get the cached product list, optionally filtered by title or SKU.
    """
    return _products_view(product_sync_runner.load_products(db), search)


@router.post("/refresh")
def refresh_products(db: Session = Depends(get_db)):
    return _products_view(product_sync_runner.refresh_products(db))


@router.post("/update")
def update_product(form: ProductUpdateForm, db: Session = Depends(get_db)):
    try:
        product = product_sync_runner.apply_product_update(
            db, form.variant_id, price=form.price, sku=form.sku, inventory=form.inventory,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DashboardError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return product.model_dump(mode="json")
