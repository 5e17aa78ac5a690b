from datetime import date

import pytest
import requests
import responses
from responses import matchers

from config import Settings
from errors import LogicalFailure, MalformedResponse, TransportError, TransportTimeout
from schemas import DateRange, ProductUpdate

from conftest import hook


@responses.activate
def test_get_orders_sends_date_range(service):
    responses.add(
        responses.GET, hook("get-orders-list"),
        json=[{"orderNumber": 1}],
        match=[matchers.query_param_matcher({"startDate": "2025-07-01", "endDate": "2025-07-31"})],
    )

    payload = service.get_orders(DateRange(start_date=date(2025, 7, 1), end_date=date(2025, 7, 31)))

    assert payload == [{"orderNumber": 1}]


@responses.activate
def test_timeout_is_reported_as_timeout(service):
    responses.add(responses.GET, hook("get-orders-list"), body=requests.exceptions.Timeout("slow"))

    with pytest.raises(TransportTimeout) as exc:
        service.get_orders()
    assert exc.value.user_message() == "Request timed out"


@responses.activate
def test_connection_failure_is_transport_error(service):
    responses.add(responses.GET, hook("get-orders-list"), body=requests.exceptions.ConnectionError("refused"))

    with pytest.raises(TransportError) as exc:
        service.get_orders()
    assert exc.value.status_code is None


@responses.activate
def test_missing_webhook_has_activation_hint(service):
    responses.add(responses.GET, hook("get-orders-list"), status=404, json={"message": "not registered"})

    with pytest.raises(TransportError) as exc:
        service.get_orders()
    assert exc.value.status_code == 404
    assert "activate" in exc.value.user_message()


@responses.activate
def test_server_error_is_transport_error(service):
    responses.add(responses.POST, hook("fulfill-order"), status=500)

    with pytest.raises(TransportError) as exc:
        service.fulfill_order("1006")
    assert exc.value.status_code == 500


@pytest.mark.parametrize("body, content_type, reason", [
    ("<html>ok</html>", "text/html", "non_json"),
    ("", "application/json", "empty"),
    ("   ", "application/json", "empty"),
    ("{orders: [", "application/json", "invalid_json"),
])
@responses.activate
def test_bad_bodies_are_distinct_errors(service, body, content_type, reason):
    responses.add(responses.GET, hook("get-orders-list"), body=body, content_type=content_type)

    with pytest.raises(MalformedResponse) as exc:
        service.get_orders()
    assert exc.value.reason == reason


@responses.activate
def test_empty_products_body_is_allowed(service):
    responses.add(responses.GET, hook("get-all-products"), body="", content_type="application/json")
    assert service.get_products() is None


@responses.activate
def test_fulfill_ignores_body(service):
    responses.add(
        responses.POST, hook("fulfill-order"), body="queued", content_type="text/plain",
        match=[matchers.json_params_matcher({"order_id": "1006"})],
    )

    assert service.fulfill_order("1006") is None


@responses.activate
def test_cancel_requires_explicit_success(service):
    responses.add(
        responses.POST, hook("cancel-order"), json={"success": True, "message": "cancelled"},
        match=[matchers.json_params_matcher({"orderId": "1006"})],
    )

    assert service.cancel_order("1006")["success"] is True


@pytest.mark.parametrize("body", [{"success": False, "message": "Already shipped"}, {"message": "Already shipped"}])
@responses.activate
def test_cancel_rejection_is_logical_failure(service, body):
    responses.add(responses.POST, hook("cancel-order"), json=body)

    with pytest.raises(LogicalFailure) as exc:
        service.cancel_order("1006")
    assert "Already shipped" in exc.value.user_message()


@responses.activate
def test_update_product_sends_only_changes(service):
    responses.add(
        responses.POST, hook("update-product-info"), json={"ok": True},
        match=[matchers.json_params_matcher(
            {"variant_id": 52233017098603, "price": None, "sku": "T-002", "inventory": None}
        )],
    )

    assert service.update_product(ProductUpdate(variant_id=52233017098603, sku="T-002")) == {"ok": True}


def test_absolute_paths_are_used_verbatim():
    config = Settings(webhook_base_url="https://a.example/webhook/")

    assert config.url_for("/x") == "https://a.example/webhook/x"
    assert config.url_for("https://b.example/y") == "https://b.example/y"


@pytest.mark.parametrize("overrides", [{"webhook_base_url": "  "}, {"request_timeout_seconds": 0}])
def test_invalid_settings_are_rejected(overrides):
    with pytest.raises(ValueError):
        Settings(**overrides)
