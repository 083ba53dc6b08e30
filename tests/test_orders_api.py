import razorpay
import requests
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from app.models.cart import CartItem
from app.models.order import Order, PaymentMethod
from app.models.order_item import OrderItem
from tests.conftest import add_cart_item, add_order, auth_headers


def order_payload(address_id, method="COD", **extra):
    payload = {
        "addressId": address_id,
        "items": [{"id": "A", "quantity": 1}, {"id": "B", "quantity": 1}],
        "paymentMethod": method,
    }
    payload.update(extra)
    return payload


class TestPlaceOrder:
    def test_cash_on_delivery(self, client, session, catalog):
        add_cart_item(session, "A")

        response = client.post("/orders", json=order_payload(catalog["address_id"]), headers=auth_headers())

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Orders Placed Successfully"
        assert len(data["orderIds"]) == 2
        assert data["total"] == 368.0
        assert session.exec(select(CartItem)).all() == []

    def test_razorpay_through_orders_endpoint(self, client, catalog, razorpay_orders):
        response = client.post(
            "/orders", json=order_payload(catalog["address_id"], method="RAZORPAY"), headers=auth_headers()
        )

        assert response.status_code == 201
        data = response.json()
        assert data["razorpayOrder"]["amount"] == 36800
        assert data["key"] == "rzp_test_key"
        assert len(razorpay_orders.calls) == 1

    def test_stripe_uses_request_origin(self, client, catalog, stripe_adapter):
        headers = {**auth_headers(), "Origin": "https://shop.example"}

        response = client.post("/orders", json=order_payload(catalog["address_id"], method="STRIPE"), headers=headers)

        assert response.status_code == 201
        assert response.json()["session"]["id"] == "cs_test_1"
        assert stripe_adapter.sessions[0]["origin"] == "https://shop.example"

    def test_missing_token(self, client, catalog):
        response = client.post("/orders", json=order_payload(catalog["address_id"]))

        assert response.status_code == 401
        assert response.json()["code"] == "unauthorized"

    def test_malformed_body(self, client, session, catalog):
        response = client.post("/orders", json={"addressId": catalog["address_id"], "items": []}, headers=auth_headers())

        assert response.status_code == 400
        data = response.json()
        assert data["detail"] == "missing order details."
        assert data["code"] == "invalid_request"
        assert data["ordersRecorded"] is False
        assert session.exec(select(Order)).all() == []

    def test_zero_quantity_rejected(self, client, catalog):
        payload = order_payload(catalog["address_id"], items=[{"id": "A", "quantity": 0}])

        response = client.post("/orders", json=payload, headers=auth_headers())

        assert response.status_code == 400

    def test_unknown_product(self, client, session, catalog):
        payload = order_payload(catalog["address_id"], items=[{"id": "ghost", "quantity": 1}])

        response = client.post("/orders", json=payload, headers=auth_headers())

        assert response.status_code == 400
        assert response.json()["code"] == "product_not_found"
        assert session.exec(select(Order)).all() == []

    def test_unknown_coupon(self, client, session, catalog):
        payload = order_payload(catalog["address_id"], couponCode="NOPE")

        response = client.post("/orders", json=payload, headers=auth_headers())

        assert response.status_code == 400
        assert response.json()["code"] == "coupon_not_found"
        assert session.exec(select(Order)).all() == []

    def test_gateway_down(self, client, session, catalog, razorpay_orders):
        razorpay_orders.error = razorpay.errors.GatewayError("timeout")

        response = client.post(
            "/orders", json=order_payload(catalog["address_id"], method="RAZORPAY"), headers=auth_headers()
        )

        assert response.status_code == 502
        data = response.json()
        assert data["code"] == "gateway_failure"
        assert data["ordersRecorded"] is True
        assert len(data["orderIds"]) == 2

    def test_gateway_timeout(self, client, session, catalog, razorpay_orders):
        razorpay_orders.error = requests.Timeout("read timed out")

        response = client.post(
            "/orders", json=order_payload(catalog["address_id"], method="RAZORPAY"), headers=auth_headers()
        )

        assert response.status_code == 502
        data = response.json()
        assert data["code"] == "gateway_failure"
        assert data["ordersRecorded"] is True
        assert sorted(data["orderIds"]) == sorted(o.id for o in session.exec(select(Order)).all())

    def test_gateway_id_not_saved(self, client, session, catalog, monkeypatch):
        def db_gone(*args, **kwargs):
            raise SQLAlchemyError("connection lost")

        monkeypatch.setattr("app.services.payment_gateways.attach_gateway_reference", db_gone)

        response = client.post(
            "/orders", json=order_payload(catalog["address_id"], method="RAZORPAY"), headers=auth_headers()
        )

        assert response.status_code == 500
        assert response.headers["content-type"] == "application/json"
        data = response.json()
        assert data["code"] == "payment_setup_failure"
        assert data["ordersRecorded"] is True
        orders = session.exec(select(Order)).all()
        assert len(orders) == 2
        assert sorted(data["orderIds"]) == sorted(o.id for o in orders)
        assert not any(o.is_paid for o in orders)


class TestRazorpayOrderEndpoint:
    def test_returns_breakdown(self, client, session, catalog):
        payload = {"addressId": catalog["address_id"], "items": [{"id": "A", "quantity": 2}]}

        response = client.post("/payments/razorpay/order", json=payload, headers=auth_headers())

        assert response.status_code == 200
        data = response.json()
        assert data["breakdown"] == {
            "subtotal": 200.0,
            "gstAmount": 36.0,
            "shippingCharge": 50.0,
            "discount": 0.0,
            "total": 286.0,
        }
        assert data["razorpayOrder"]["amount"] == 28600
        order = session.get(Order, data["orderIds"][0])
        assert order.payment_method == PaymentMethod.RAZORPAY
        assert order.razorpay_order_id == data["razorpayOrder"]["id"]

    def test_members_ship_free(self, client, catalog):
        payload = {"addressId": catalog["address_id"], "items": [{"id": "B", "quantity": 1}]}

        response = client.post("/payments/razorpay/order", json=payload, headers=auth_headers(plans=["plus"]))

        assert response.json()["breakdown"]["shippingCharge"] == 0.0
        assert response.json()["total"] == 200.0


class TestMyOrders:
    def test_lists_only_paid_orders_of_the_buyer(self, client, session, catalog):
        paid = add_order(session, is_paid=True, total=168)
        add_order(session, is_paid=False)
        add_order(session, user_id="user_other", is_paid=True)

        response = client.get("/orders", headers=auth_headers())

        assert response.status_code == 200
        orders = response.json()["orders"]
        assert [o["id"] for o in orders] == [paid.id]
        assert orders[0]["total"] == 168
        assert orders[0]["store"]["name"] == "S1"

    def test_order_items_are_listed(self, client, session, catalog):
        order = add_order(session, is_paid=True, total=236)
        session.add(OrderItem(order_id=order.id, product_id="A", quantity=2, price=100, gst_percent=18, gst_amount=36))
        session.commit()

        response = client.get("/orders", headers=auth_headers())

        assert response.json()["orders"][0]["orderItems"] == [
            {"productId": "A", "quantity": 2, "price": 100.0, "gstPercent": 18.0, "gstAmount": 36.0}
        ]
