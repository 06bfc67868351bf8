import itertools

import pytest
from fastapi import HTTPException

from storefront.cart import service as cart_service


class _FakeCartRepository:
    """Table cart_items en mémoire, unique par (session_id, product_id, size)."""

    def __init__(self):
        self.rows = []
        self._ids = itertools.count(1)

    def list_items(self, session_id):
        return [r for r in reversed(self.rows) if r["session_id"] == session_id]

    def find_item(self, session_id, product_id, size):
        for r in self.rows:
            if (r["session_id"], r["product_id"], r["size"]) == (session_id, product_id, size):
                return {"id": r["id"], "quantity": r["quantity"]}
        return None

    def insert_item(self, payload):
        if self.find_item(payload["session_id"], payload["product_id"], payload["size"]):
            raise RuntimeError("duplicate key value violates unique constraint")
        row = dict(payload, id=str(next(self._ids)))
        self.rows.append(row)
        return row

    def update_quantity(self, item_id, session_id, quantity):
        for r in self.rows:
            if r["id"] == item_id and r["session_id"] == session_id:
                r["quantity"] = quantity
                return dict(r)
        return None

    def delete_item(self, item_id, session_id):
        self.rows = [r for r in self.rows if not (r["id"] == item_id and r["session_id"] == session_id)]


@pytest.fixture
def repo(monkeypatch):
    fake = _FakeCartRepository()
    for name in ("list_items", "find_item", "insert_item", "update_quantity", "delete_item"):
        monkeypatch.setattr(f"storefront.cart.repository.{name}", getattr(fake, name))
    return fake


def _item(**overrides):
    body = {"productId": "P1", "name": "Tee", "price": "19.5", "size": "M", "quantity": 2}
    body.update(overrides)
    return body


def test_adding_same_variant_twice_accumulates_quantity(repo):
    cart_service.add_to_cart("sess-1", _item(quantity=2))
    result = cart_service.add_to_cart("sess-1", _item(quantity=3))

    assert len(repo.rows) == 1
    assert repo.rows[0]["quantity"] == 5
    assert result["item"]["quantity"] == 5


def test_different_size_or_session_creates_new_rows(repo):
    cart_service.add_to_cart("sess-1", _item(size="M"))
    cart_service.add_to_cart("sess-1", _item(size="L"))
    cart_service.add_to_cart("sess-2", _item(size="M"))
    assert len(repo.rows) == 3
    assert len(cart_service.list_cart("sess-1")["items"]) == 2


def test_cart_item_payload_normalises_values():
    payload = cart_service.cart_item_payload("s", _item(productId=" P1 ", quantity="0", image=""))
    assert payload == {
        "session_id": "s",
        "product_id": "P1",
        "name": "Tee",
        "price": 19.5,
        "image": None,
        "size": "M",
        "quantity": 1,
    }


@pytest.mark.parametrize("missing", ["productId", "name", "price", "size"])
def test_required_fields(repo, missing):
    body = _item()
    body.pop(missing)
    with pytest.raises(HTTPException) as exc:
        cart_service.add_to_cart("sess-1", body)
    assert exc.value.status_code == 400
    assert repo.rows == []


def test_price_must_be_numeric(repo):
    with pytest.raises(HTTPException) as exc:
        cart_service.add_to_cart("sess-1", _item(price="cheap"))
    assert exc.value.detail == "price must be numeric"


def test_missing_session_is_rejected(repo):
    for call in (
        lambda: cart_service.list_cart(None),
        lambda: cart_service.add_to_cart("", _item()),
        lambda: cart_service.update_cart_item(None, {"id": "1", "quantity": 2}),
        lambda: cart_service.remove_cart_item(None, "1"),
    ):
        with pytest.raises(HTTPException) as exc:
            call()
        assert exc.value.status_code == 400


def test_update_quantity_has_a_floor_of_one(repo):
    item = cart_service.add_to_cart("sess-1", _item())["item"]
    result = cart_service.update_cart_item("sess-1", {"id": item["id"], "quantity": -4})
    assert result["item"]["quantity"] == 1


def test_update_is_scoped_to_the_session(repo):
    item = cart_service.add_to_cart("sess-1", _item())["item"]
    with pytest.raises(HTTPException) as exc:
        cart_service.update_cart_item("sess-2", {"id": item["id"], "quantity": 3})
    assert exc.value.status_code == 404


def test_remove_item(repo):
    item = cart_service.add_to_cart("sess-1", _item())["item"]
    assert cart_service.remove_cart_item("sess-1", item["id"]) == {"success": True}
    assert repo.rows == []
    with pytest.raises(HTTPException):
        cart_service.remove_cart_item("sess-1", None)
