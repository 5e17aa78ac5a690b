import pytest

from schemas import FulfillmentStatus as FS
from services.normalizer import normalize_orders
from services.reconciliation import reconcile, resolve_status

from conftest import make_order


def _statuses(result):
    return {o.order_number: o.fulfillment_status for o in result.orders}


def test_local_cancel_survives_remote_unfulfilled():
    snapshot = [make_order("1"), make_order("2")]
    result = reconcile(snapshot, {"1": FS.CANCELLED, "2": FS.CANCELLED}, [])

    assert _statuses(result) == {"1": FS.CANCELLED, "2": FS.CANCELLED}
    assert result.override_writes == {}


def test_remote_processed_status_wins_and_rewrites_override():
    result = reconcile([make_order("1", FS.FULFILLED)], {"1": FS.CANCELLED}, [])

    assert _statuses(result) == {"1": FS.FULFILLED}
    assert result.override_writes == {"1": FS.FULFILLED}


@pytest.mark.parametrize("remote", list(FS))
def test_no_override_passes_remote_status_through(remote):
    result = reconcile([make_order("7", remote)], {}, [])

    assert _statuses(result) == {"7": remote}


def test_remote_processed_without_override_is_recorded():
    result = reconcile([make_order("7", FS.RESTOCKED)], {}, [])
    assert result.override_writes == {"7": FS.RESTOCKED}


def test_missing_remote_status_carries_prior_processed_status_forward():
    snapshot, _ = normalize_orders([{"orderNumber": "9"}])
    previous = [make_order("9", FS.RESTOCKED)]

    result = reconcile(snapshot, {}, previous)

    assert _statuses(result) == {"9": FS.RESTOCKED}
    assert result.override_writes == {"9": FS.RESTOCKED}


def test_missing_remote_status_without_history_is_unfulfilled():
    snapshot, _ = normalize_orders([{"orderNumber": "9"}])

    result = reconcile(snapshot, {}, [make_order("9", FS.UNFULFILLED)])

    assert _statuses(result) == {"9": FS.UNFULFILLED}
    assert result.override_writes == {}


def test_reported_unfulfilled_is_not_carried_forward():
    # An explicit remote value beats the previous in-memory list.
    result = reconcile([make_order("9", FS.UNFULFILLED)], {}, [make_order("9", FS.FULFILLED)])
    assert _statuses(result) == {"9": FS.UNFULFILLED}


def test_already_correct_override_is_not_rewritten():
    snapshot, _ = normalize_orders([{"orderNumber": "1006", "fulfillmentStatus": "unfulfilled"}])

    result = reconcile(snapshot, {"1006": FS.FULFILLED}, [])

    assert [(o.order_number, o.fulfillment_status) for o in result.orders] == [("1006", FS.FULFILLED)]
    assert result.override_writes == {}


def test_reconcile_is_idempotent_against_its_own_output():
    snapshot, _ = normalize_orders([
        {"orderNumber": "1", "fulfillmentStatus": "unfulfilled"},
        {"orderNumber": "2", "fulfillmentStatus": "fulfilled"},
        {"orderNumber": "3"},
        {"orderNumber": "4", "fulfillmentStatus": "restocked"},
    ])
    overrides = {"1": FS.CANCELLED, "3": FS.FULFILLED}

    first = reconcile(snapshot, overrides, [])
    merged_overrides = {**overrides, **first.override_writes}
    second = reconcile(snapshot, merged_overrides, first.orders)

    assert second.orders == first.orders
    assert second.override_writes == {}


def test_output_keeps_snapshot_order_and_reports_drops():
    snapshot = [make_order("3"), make_order("1"), make_order("2")]

    result = reconcile(snapshot, {}, [], dropped=2)

    assert [o.order_number for o in result.orders] == ["3", "1", "2"]
    assert result.dropped == 2


def test_orders_absent_from_snapshot_are_not_resurrected():
    result = reconcile([make_order("1")], {"2": FS.FULFILLED}, [make_order("2", FS.FULFILLED)])
    assert [o.order_number for o in result.orders] == ["1"]


def test_resolve_status_table():
    assert resolve_status(None, None, None) == (FS.UNFULFILLED, None)
    assert resolve_status(FS.UNFULFILLED, FS.FULFILLED, None) == (FS.FULFILLED, None)
    assert resolve_status(None, FS.CANCELLED, FS.UNFULFILLED) == (FS.CANCELLED, None)
    assert resolve_status(FS.RESTOCKED, FS.CANCELLED, None) == (FS.RESTOCKED, FS.RESTOCKED)
    assert resolve_status(FS.FULFILLED, FS.FULFILLED, None) == (FS.FULFILLED, None)
    assert resolve_status(None, None, FS.CANCELLED) == (FS.CANCELLED, FS.CANCELLED)
