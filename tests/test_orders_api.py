from sqlalchemy import func, select

import pytest

from app.core.exceptions import StockConflictError
from app.models.catalog_models import Product
from app.models.order_models import Order, OrderItem
from app.schemas.order_schemas import OrderCreate
from app.services.order_service import persist_order, price_request
from app.services.pricing import cart_lines

CUSTOMER = {
    "firstName": "Mona",
    "lastName": "Adel",
    "address": "12 Nile St, Cairo",
    "mobileNumber": "01000000000",
    "customerEmail": "mona@example.com",
}


async def _stock(session_factory, product_id):
    async with session_factory() as session:
        return (await session.execute(select(Product.stock).where(Product.id == product_id))).scalar_one()


async def _order_count(session_factory):
    async with session_factory() as session:
        return (await session.execute(select(func.count(Order.id)))).scalar_one()


# ---------------------------------------------------
# Quote
# ---------------------------------------------------
async def test_quote_applies_category_discount_and_coupon(client, catalog):
    resp = await client.post("/customer/couponsApply", json={
        "items": [{"productId": catalog["lamp"], "quantity": 2}],
        "couponCode": "SAVE5",
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["subtotal"] == 180.0
    assert body["couponCode"] == "SAVE5"
    assert body["couponDiscountAmount"] == 9.0
    assert body["totalAfterDiscount"] == 171.0
    item = body["discountedItems"][0]
    assert item["originalPrice"] == 100.0
    assert item["discountApplied"] == 10.0
    assert item["priceAfterDiscount"] == 90.0
    assert item["lineTotal"] == 180.0


async def test_quote_persists_nothing(client, session_factory, catalog):
    await client.post("/customer/couponsApply", json={"items": [{"productId": catalog["lamp"], "quantity": 1}]})
    assert await _order_count(session_factory) == 0
    assert await _stock(session_factory, catalog["lamp"]) == 10


async def test_quote_with_expired_coupon_is_rejected(client, catalog):
    resp = await client.post("/customer/couponsApply", json={
        "items": [{"productId": catalog["lamp"], "quantity": 1}],
        "couponCode": "OLD",
    })
    assert resp.status_code == 400


async def test_quote_with_empty_cart_is_a_bad_request(client, catalog):
    resp = await client.post("/customer/couponsApply", json={"items": []})
    assert resp.status_code == 400


# ---------------------------------------------------
# Create order
# ---------------------------------------------------
async def test_create_order_snapshots_prices_and_decrements_stock(client, session_factory, catalog):
    resp = await client.post("/customer/createOrder", json={
        **CUSTOMER,
        "items": [
            {"productId": catalog["lamp"], "quantity": 2},
            {"productId": catalog["chair"], "quantity": 1},
        ],
        "couponCode": "SAVE5",
    })
    assert resp.status_code == 201
    order = resp.json()["order"]

    # 180 (lamp, 10% category) + 42.5 (chair, 15% tag) = 222.5, less 5%
    assert order["totalAmount"] == pytest.approx(211.375)
    assert order["status"] == "pending"
    assert order["currency"] == "EGP"
    assert order["coupon"]["code"] == "SAVE5"
    lamp_item, chair_item = order["items"]
    assert lamp_item["priceAtPurchase"] == 90.0
    assert lamp_item["productName"] == "Lamp"
    assert lamp_item["productImageUrl"] == "https://images.test/lamp.jpg"
    assert chair_item["discountApplied"] == 15.0
    assert chair_item["priceAtPurchase"] == 42.5

    assert await _stock(session_factory, catalog["lamp"]) == 8
    assert await _stock(session_factory, catalog["chair"]) == 4


async def test_coupon_below_minimum_is_not_recorded(client, catalog):
    resp = await client.post("/customer/createOrder", json={
        **CUSTOMER,
        "items": [{"productId": catalog["bulb"], "quantity": 1}],
        "couponCode": "BIG20",
    })
    assert resp.status_code == 201
    order = resp.json()["order"]
    assert order["totalAmount"] == 18.0
    assert order["coupon"] is None


async def test_insufficient_stock_creates_nothing(client, session_factory, catalog):
    resp = await client.post("/customer/createOrder", json={
        **CUSTOMER,
        "items": [
            {"productId": catalog["lamp"], "quantity": 1},
            {"productId": catalog["bulb"], "quantity": 4},
        ],
    })
    assert resp.status_code == 400
    assert "Bulb" in resp.json()["detail"]
    assert await _order_count(session_factory) == 0
    assert await _stock(session_factory, catalog["lamp"]) == 10
    assert await _stock(session_factory, catalog["bulb"]) == 3


async def test_inactive_product_cannot_be_ordered(client, catalog):
    resp = await client.post("/customer/createOrder", json={
        **CUSTOMER,
        "items": [{"productId": catalog["hidden"], "quantity": 1}],
    })
    assert resp.status_code == 400


async def test_missing_customer_fields_are_a_bad_request(client, catalog):
    resp = await client.post("/customer/createOrder", json={
        "firstName": "Mona",
        "items": [{"productId": catalog["lamp"], "quantity": 1}],
    })
    assert resp.status_code == 400


async def test_stock_taken_between_quote_and_commit_rolls_back(session_factory, catalog):
    data = OrderCreate(**CUSTOMER, items=[
        {"productId": catalog["lamp"], "quantity": 1},
        {"productId": catalog["bulb"], "quantity": 3},
    ])

    async with session_factory() as session:
        priced = await price_request(session, cart_lines(data.items), None)

        # Another checkout takes the last bulbs before this one commits
        async with session_factory() as other:
            bulb = await other.get(Product, catalog["bulb"])
            bulb.stock = 1
            await other.commit()

        with pytest.raises(StockConflictError) as exc:
            await persist_order(session, data, priced)
        assert exc.value.status_code == 409
        assert exc.value.product_id == catalog["bulb"]

    assert await _order_count(session_factory) == 0
    async with session_factory() as session:
        assert (await session.execute(select(func.count(OrderItem.id)))).scalar_one() == 0
    assert await _stock(session_factory, catalog["lamp"]) == 10
    assert await _stock(session_factory, catalog["bulb"]) == 1


# ---------------------------------------------------
# Admin order management
# ---------------------------------------------------
async def _place_order(client, catalog, quantity=1):
    resp = await client.post("/customer/createOrder", json={
        **CUSTOMER,
        "items": [{"productId": catalog["lamp"], "quantity": quantity}],
    })
    assert resp.status_code == 201
    return resp.json()["order"]


async def test_orders_require_authentication(client, catalog):
    resp = await client.get("/admin/orders")
    assert resp.status_code == 401


async def test_operator_lists_and_filters_orders(operator_client, catalog):
    await _place_order(operator_client, catalog)
    await _place_order(operator_client, catalog, quantity=2)

    resp = await operator_client.get("/admin/orders", params={"status": "pending", "limit": 1})
    assert resp.status_code == 200
    body = resp.json()
    assert body["totalCount"] == 2
    assert body["totalPages"] == 2
    assert len(body["orders"]) == 1

    resp = await operator_client.get("/admin/orders", params={"status": "shipped"})
    assert resp.json()["totalCount"] == 0


async def test_admin_updates_order_status(admin_client, catalog):
    order = await _place_order(admin_client, catalog)

    resp = await admin_client.put(f"/admin/orders/{order['id']}", json={"status": "shipped"})
    assert resp.status_code == 200
    assert resp.json()["order"]["status"] == "shipped"

    resp = await admin_client.get(f"/admin/orders/{order['id']}")
    assert resp.json()["status"] == "shipped"

    summary = await admin_client.get("/admin/dashboard/summary")
    assert summary.json()["orderCount"] == 1
    assert summary.json()["totalSales"] == 90.0


async def test_unknown_status_and_unknown_order(admin_client, catalog):
    order = await _place_order(admin_client, catalog)
    resp = await admin_client.put(f"/admin/orders/{order['id']}", json={"status": "teleported"})
    assert resp.status_code == 400

    resp = await admin_client.put("/admin/orders/9999", json={"status": "shipped"})
    assert resp.status_code == 404
