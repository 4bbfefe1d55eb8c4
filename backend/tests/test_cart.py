import threading
from decimal import Decimal

import pytest

from app.db import SessionLocal
from app.errors import DomainError
from app.models.cart import Cart
from app.models.cart_item import CartItem
from app.repositories.cart_repo import CartRepository
from app.schemas.cart_schema import CartItemAddIn
from app.security.context import RequestContext
from app.services.cart_service import CartService

from conftest import API


def _add(client, **overrides):
    payload = {"sessionId": "sess-1", "idProduct": None, "idFlavor": None, "idSize": None, "quantity": 1}
    payload.update(overrides)
    payload = {k: v for k, v in payload.items() if v is not None}
    return client.post(f"{API}/cart/item", json=payload)


def _cart_items():
    db = SessionLocal()
    try:
        return [
            (it.cart_id, it.product_id, it.flavor_id, it.size_id, it.quantity, it.unit_price, it.total_price, it.observations)
            for it in db.query(CartItem).order_by(CartItem.id).all()
        ]
    finally:
        db.close()


def _cart_count():
    db = SessionLocal()
    try:
        return db.query(Cart).count()
    finally:
        db.close()


def test_add_item_prices_with_size_modifier(client, catalog):
    res = _add(client, idProduct=catalog.p1, idFlavor=catalog.chocolate, idSize=catalog.medium, quantity=2)
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["success"] is True
    data = body["data"]
    assert set(data) == {"idCartItem", "idCart", "quantity", "unitPrice", "totalPrice"}
    assert data["quantity"] == 2
    assert data["unitPrice"] == 25.0
    assert data["totalPrice"] == 50.0


def test_add_uses_promotional_price(client, catalog):
    res = _add(client, idProduct=catalog.p2, idFlavor=catalog.strawberry, idSize=catalog.small, quantity=1)
    assert res.status_code == 200
    assert res.json()["data"]["unitPrice"] == 25.0


def test_same_combination_merges_into_one_line(client, catalog):
    first = _add(client, idProduct=catalog.p1, idFlavor=catalog.chocolate, idSize=catalog.medium, quantity=3).json()["data"]
    second = _add(client, idProduct=catalog.p1, idFlavor=catalog.chocolate, idSize=catalog.medium, quantity=4).json()["data"]
    assert second["idCartItem"] == first["idCartItem"]
    assert second["idCart"] == first["idCart"]
    assert second["quantity"] == 7
    assert second["totalPrice"] == second["unitPrice"] * 7
    rows = _cart_items()
    assert len(rows) == 1
    assert rows[0][4] == 7
    assert rows[0][6] == Decimal("175.00")


def test_different_flavor_or_size_is_a_new_line(client, catalog):
    _add(client, idProduct=catalog.p1, idFlavor=catalog.chocolate, idSize=catalog.small)
    _add(client, idProduct=catalog.p1, idFlavor=catalog.vanilla, idSize=catalog.small)
    _add(client, idProduct=catalog.p1, idFlavor=catalog.chocolate, idSize=catalog.medium)
    assert len(_cart_items()) == 3
    assert _cart_count() == 1


def test_sessions_get_separate_carts(client, catalog):
    a = _add(client, sessionId="a", idProduct=catalog.p1, idFlavor=catalog.chocolate, idSize=catalog.small).json()["data"]
    b = _add(client, sessionId="b", idProduct=catalog.p1, idFlavor=catalog.chocolate, idSize=catalog.small).json()["data"]
    assert a["idCart"] != b["idCart"]
    assert b["quantity"] == 1


def test_merge_over_maximum_is_rejected_and_row_untouched(client, catalog):
    _add(client, idProduct=catalog.p1, idFlavor=catalog.chocolate, idSize=catalog.small, quantity=8)
    res = _add(client, idProduct=catalog.p1, idFlavor=catalog.chocolate, idSize=catalog.small, quantity=5)
    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert body["error"]["message"] == "quantityExceedsMaximum"
    rows = _cart_items()
    assert len(rows) == 1
    assert rows[0][4] == 8


def test_merge_up_to_maximum_is_allowed(client, catalog):
    _add(client, idProduct=catalog.p1, idFlavor=catalog.chocolate, idSize=catalog.small, quantity=8)
    res = _add(client, idProduct=catalog.p1, idFlavor=catalog.chocolate, idSize=catalog.small, quantity=2)
    assert res.status_code == 200
    assert res.json()["data"]["quantity"] == 10


def test_out_of_stock_product_makes_no_writes(client, catalog):
    res = _add(client, idProduct=catalog.p3, idFlavor=catalog.vanilla, idSize=catalog.small)
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "productNotAvailable"
    assert _cart_count() == 0
    assert _cart_items() == []


def test_disabled_product_is_not_available(client, catalog):
    res = _add(client, idProduct=catalog.p4, idFlavor=catalog.vanilla, idSize=catalog.medium)
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "productNotAvailable"


@pytest.mark.parametrize("product", ["p5", "p8", None])
def test_missing_product(client, catalog, product):
    pid = getattr(catalog, product) if product else 99999
    res = _add(client, idProduct=pid, idFlavor=catalog.chocolate, idSize=catalog.small)
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "productDoesntExist"


def test_flavor_disabled_for_product(client, catalog):
    res = _add(client, idProduct=catalog.p1, idFlavor=catalog.strawberry, idSize=catalog.small)
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "flavorNotAvailable"


def test_size_disabled_or_not_offered(client, catalog):
    res = _add(client, idProduct=catalog.p1, idFlavor=catalog.chocolate, idSize=catalog.large)
    assert res.json()["error"]["message"] == "sizeNotAvailable"
    res = _add(client, idProduct=catalog.p2, idFlavor=catalog.strawberry, idSize=catalog.medium)
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "sizeNotAvailable"
    assert _cart_count() == 0


def test_observations_kept_unless_replaced(client, catalog):
    choice = dict(idProduct=catalog.p1, idFlavor=catalog.chocolate, idSize=catalog.small)
    _add(client, observations="no nuts", **choice)
    _add(client, **choice)
    assert _cart_items()[0][7] == "no nuts"
    _add(client, observations="write 'Happy birthday'", **choice)
    assert _cart_items()[0][7] == "write 'Happy birthday'"


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"quantity": 0}, "quantity"),
        ({"quantity": 11}, "quantity"),
        ({"sessionId": ""}, "sessionId"),
        ({"sessionId": "x" * 256}, "sessionId"),
        ({"observations": "x" * 201}, "observations"),
        ({"idProduct": -1}, "idProduct"),
        ({"idProduct": 2**70}, "idProduct"),
        ({"idSize": 2**31}, "idSize"),
    ],
)
def test_input_validation(client, catalog, overrides, field):
    payload = dict(idProduct=catalog.p1, idFlavor=catalog.chocolate, idSize=catalog.small)
    payload.update(overrides)
    res = _add(client, **payload)
    assert res.status_code == 400
    body = res.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert field in [d["field"] for d in body["error"]["details"]]
    assert _cart_count() == 0


def test_missing_required_field(client, catalog):
    res = client.post(f"{API}/cart/item", json={"sessionId": "s", "idProduct": catalog.p1, "quantity": 1})
    assert res.status_code == 400
    fields = [d["field"] for d in res.json()["error"]["details"]]
    assert "idFlavor" in fields
    assert "idSize" in fields


def test_repository_rejects_missing_session(catalog):
    db = SessionLocal()
    try:
        with pytest.raises(DomainError) as exc:
            CartRepository(db).add_item(1, "", catalog.p1, catalog.chocolate, catalog.small, 1)
        assert exc.value.message == "sessionIdRequired"
    finally:
        db.close()


def test_concurrent_insert_of_same_combination_is_merged(catalog, monkeypatch):
    """
    Simulates a second request that checked for an existing line before the
    first one committed: the unique constraint rejects its insert and the
    quantity is merged into the existing row instead.
    """
    db = SessionLocal()
    try:
        CartRepository(db).add_item(1, "race", catalog.p1, catalog.chocolate, catalog.small, 2)
    finally:
        db.close()

    real_find = CartRepository._find_item
    calls = {"n": 0}

    def stale_find(self, *args):
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return real_find(self, *args)

    monkeypatch.setattr(CartRepository, "_find_item", stale_find)

    db = SessionLocal()
    try:
        result = CartRepository(db).add_item(1, "race", catalog.p1, catalog.chocolate, catalog.small, 3)
    finally:
        db.close()

    assert calls["n"] == 2
    assert result.quantity == 5
    rows = _cart_items()
    assert len(rows) == 1
    assert rows[0][4] == 5


def test_parallel_adds_to_one_session_all_succeed(catalog):
    workers = 8
    barrier = threading.Barrier(workers)
    ok, errors = [], []
    payload = CartItemAddIn(
        session_id="parallel", id_product=catalog.p1, id_flavor=catalog.chocolate, id_size=catalog.small, quantity=1
    )

    def add():
        db = SessionLocal()
        try:
            barrier.wait()
            ok.append(CartService(db).add_item(RequestContext(account_id=1, user_id=1), payload))
        except Exception as exc:
            errors.append(exc)
        finally:
            db.close()

    threads = [threading.Thread(target=add) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(ok) == workers
    assert sorted(r.quantity for r in ok) == list(range(1, workers + 1))
    assert len({r.id_cart_item for r in ok}) == 1
    rows = _cart_items()
    assert len(rows) == 1
    assert rows[0][4] == workers
    assert _cart_count() == 1
