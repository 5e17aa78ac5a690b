import pytest
import responses
from responses import matchers

from errors import MalformedRecord, NoChangesError
from schemas import Product
from services.product_sync_runner import (
    apply_product_update,
    build_product_update,
    load_products,
    product_cache,
    refresh_products,
)
from services.summary_runner import SUMMARY_KEY, load_summary, refresh_summary

from conftest import hook

PRODUCTS_URL = hook("get-all-products")
UPDATE_URL = hook("update-product-info")
SUMMARY_URL = hook("get-orders-summary")

TEST_PRODUCT = {
    "title": "Test-Product",
    "productId": 14744698388843,
    "variantId": 52233017098603,
    "sku": "T-001",
    "price": "200.00",
    "inventoryItemId": 53298585174379,
    "inventoryQuantity": 85,
    "vendor": "shoplytic-test",
}


@responses.activate
def test_refresh_products_caches_list(db, service, settings):
    responses.add(responses.GET, PRODUCTS_URL, json={"products": [TEST_PRODUCT, {"title": "no ids"}]})

    outcome = refresh_products(db, service=service, config=settings)

    assert [p.sku for p in outcome.products] == ["T-001"]
    assert outcome.dropped == 1
    assert load_products(db).products == outcome.products


@responses.activate
def test_blank_products_body_is_an_empty_catalogue(db, service, settings):
    responses.add(responses.GET, PRODUCTS_URL, body="", content_type="application/json")

    outcome = refresh_products(db, service=service, config=settings)

    assert outcome.error is None
    assert outcome.products == []
    assert outcome.has_loaded is True


@responses.activate
def test_single_product_object_is_accepted(db, service, settings):
    responses.add(responses.GET, PRODUCTS_URL, json=TEST_PRODUCT)

    outcome = refresh_products(db, service=service, config=settings)

    assert [p.variant_id for p in outcome.products] == ["52233017098603"]


@responses.activate
def test_products_failure_keeps_cached_list(db, service, settings):
    responses.add(responses.GET, PRODUCTS_URL, json=[TEST_PRODUCT])
    refresh_products(db, service=service, config=settings)
    responses.replace(responses.GET, PRODUCTS_URL, body="<html/>", content_type="text/html")

    outcome = refresh_products(db, service=service, config=settings)

    assert outcome.error.reason == "non_json"
    assert len(outcome.products) == 1


def _product(**overrides):
    fields = dict(variant_id="52233017098603", sku="T-001", price_display="₹200.00", inventory_quantity=85)
    fields.update(overrides)
    return Product(**fields)


def test_build_update_keeps_only_changed_fields():
    update = build_product_update(_product(), "₹", price="200.00", sku=" T-002 ", inventory="")

    assert update.model_dump() == {"variant_id": 52233017098603, "price": None, "sku": "T-002", "inventory": None}


def test_build_update_without_changes_is_refused():
    with pytest.raises(NoChangesError):
        build_product_update(_product(), "₹", price="200.00", sku="T-001", inventory="85")


def test_build_update_needs_numeric_variant():
    with pytest.raises(MalformedRecord):
        build_product_update(_product(variant_id="N/A"), "₹", sku="X")


@responses.activate
def test_apply_update_patches_cached_product(db, store, service, settings):
    product_cache(store).save([_product(), _product(variant_id="1", sku="OTHER")])
    responses.add(
        responses.POST, UPDATE_URL, json={"ok": True},
        match=[matchers.json_params_matcher({"variant_id": 52233017098603, "price": 250.0, "sku": None, "inventory": 90})],
    )

    patched = apply_product_update(db, "52233017098603", price="250", inventory="90", service=service, config=settings)

    assert patched.price_display == "₹250"
    assert patched.inventory_quantity == 90
    assert [p.sku for p in product_cache(store).load()] == ["T-001", "OTHER"]
    assert product_cache(store).load()[0].inventory_quantity == 90


def test_apply_update_for_unknown_variant(db, service, settings):
    with pytest.raises(LookupError):
        apply_product_update(db, "404", sku="X", service=service, config=settings)


@responses.activate
def test_summary_refresh_and_fallback(db, store, service, settings):
    responses.add(responses.GET, SUMMARY_URL, json={"totalOrders": 12, "fulfilledOrders": 5})

    first = refresh_summary(db, service=service, config=settings)

    assert first.summary.total_orders == 12
    assert store.get(SUMMARY_KEY)["fulfilled_orders"] == 5

    responses.replace(responses.GET, SUMMARY_URL, status=404)
    second = refresh_summary(db, service=service, config=settings)

    assert second.error.status_code == 404
    assert second.summary == first.summary
    assert load_summary(store).has_loaded is True


def test_summary_never_loaded(store):
    outcome = load_summary(store)
    assert outcome.summary is None
    assert outcome.has_loaded is False
