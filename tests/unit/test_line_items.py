import pytest
from fastapi import HTTPException

from storefront.payments.line_items import (
    MAX_IMAGE_URL_LENGTH,
    LegacyCartItem,
    make_absolute,
    parse_checkout_request,
    sanitize_image_url,
    sanitize_line_items,
    to_line_items,
)


def test_legacy_items_are_mapped_to_line_items():
    request = parse_checkout_request({
        "items": [
            {"productId": "P1", "name": "Tee", "price": 19.99, "image": "https://cdn.test/p1.png", "size": "M", "quantity": 2},
            {"productId": "P2", "name": "Cap", "price": 10},
        ]
    })
    line_items = to_line_items(request)
    assert len(line_items) == 2

    first = line_items[0].to_stripe()
    assert first["quantity"] == 2
    assert first["price_data"]["unit_amount"] == 1999
    assert first["price_data"]["currency"] == "usd"
    assert first["price_data"]["product_data"]["name"] == "Tee (M)"
    assert first["price_data"]["product_data"]["images"] == ["https://cdn.test/p1.png"]

    second = line_items[1].to_stripe()
    assert second["quantity"] == 1
    assert second["price_data"]["product_data"]["name"] == "Cap"
    assert second["price_data"]["product_data"]["images"] == []


def test_unit_amount_is_rounded_to_minor_units():
    item = LegacyCartItem(name="Mug", price=0.295, quantity=1)
    assert item.to_line_item().price_data.unit_amount == round(0.295 * 100)


def test_line_items_take_precedence_over_items():
    request = parse_checkout_request({
        "lineItems": [{"price": "price_123", "quantity": 3}],
        "items": [{"productId": "P1", "name": "Tee", "price": 5}],
    })
    line_items = to_line_items(request)
    assert [li.to_stripe() for li in line_items] == [{"price": "price_123", "quantity": 3}]


def test_no_usable_line_items_is_a_client_error():
    with pytest.raises(HTTPException) as exc:
        to_line_items(parse_checkout_request({"mode": "payment"}))
    assert exc.value.status_code == 400


@pytest.mark.parametrize("body", [["not", "an", "object"], "text", {"items": "nope"}, {"lineItems": [{"quantity": "many"}]}])
def test_invalid_payload_shapes_are_rejected(body):
    with pytest.raises(HTTPException) as exc:
        parse_checkout_request(body)
    assert exc.value.status_code == 400


def test_sanitize_image_url():
    assert sanitize_image_url("https://cdn.test/a.png") == "https://cdn.test/a.png"
    assert sanitize_image_url("http://cdn.test/a.png") == "http://cdn.test/a.png"
    assert sanitize_image_url("data:image/png;base64,AAAA") is None
    assert sanitize_image_url("/images/a.png") is None
    assert sanitize_image_url("https://cdn.test/" + "x" * MAX_IMAGE_URL_LENGTH) is None
    assert sanitize_image_url(None) is None
    assert sanitize_image_url(42) is None


def test_invalid_images_are_dropped_but_line_is_kept():
    request = parse_checkout_request({
        "lineItems": [{
            "quantity": 1,
            "price_data": {
                "currency": "usd",
                "unit_amount": 500,
                "product_data": {
                    "name": "Poster",
                    "images": ["ftp://bad", "https://ok.test/p.png", "https://" + "y" * 2001, 7],
                },
            },
        }]
    })
    sanitized = sanitize_line_items(to_line_items(request))
    assert len(sanitized) == 1
    assert sanitized[0]["price_data"]["product_data"]["images"] == ["https://ok.test/p.png"]
    assert sanitized[0]["price_data"]["unit_amount"] == 500


@pytest.mark.parametrize("price_data", [
    {"currency": "usd", "unit_amount": 500, "product": "prod_123"},
    {"currency": "eur", "unit_amount_decimal": "499.5", "product": "prod_123"},
])
def test_price_data_referencing_an_existing_product_is_passed_through(price_data):
    request = parse_checkout_request({"lineItems": [{"price_data": price_data, "quantity": 1}]})
    sanitized = sanitize_line_items(to_line_items(request))
    assert sanitized == [{"quantity": 1, "price_data": price_data}]


def test_make_absolute():
    assert make_absolute("/api/checkout-success", "https://example.com") == "https://example.com/api/checkout-success"
    assert make_absolute("thanks", "https://example.com/") == "https://example.com/thanks"
    assert make_absolute("https://other.test/ok", "https://example.com") == "https://other.test/ok"
    assert make_absolute(None, "https://example.com") is None
