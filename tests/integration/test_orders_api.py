"""Integration tests for commerce order and transaction endpoints."""

import uuid
from decimal import Decimal

import pytest

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _create_order(client, store_id, **overrides):
    payload = {
        "store_id": str(store_id),
        "order_number": f"ORD-{uuid.uuid4().hex[:8]}",
        "tax_amount": "5.00",
        "shipping_cost": "10.00",
        "discount_amount": "2.00",
        "items": [
            {"product_name": "Widget", "unit_price": "10.00", "quantity": 2},
            {"product_name": "Gadget", "unit_price": "4.50", "discount_amount": "1.00"},
        ],
    }
    payload.update(overrides)
    response = await client.post("/commerce/orders", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(commerce_client):
    response = await commerce_client.get("/health")

    assert response.status_code == 200
    assert response.json()["service"] == "commerce"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_order_computes_totals(commerce_client, store_id):
    """POST /commerce/orders returns server-computed totals."""
    data = await _create_order(commerce_client, store_id)

    assert Decimal(data["subtotal"]) == Decimal("23.50")
    assert Decimal(data["total_amount"]) == Decimal("36.50")
    assert len(data["items"]) == 2
    assert data["status"] == "pending"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_item_lifecycle_keeps_totals_consistent(commerce_client, store_id):
    order = await _create_order(commerce_client, store_id)
    order_id = order["id"]
    widget = next(i for i in order["items"] if i["product_name"] == "Widget")

    response = await commerce_client.patch(
        f"/commerce/orders/{order_id}/items/{widget['id']}", json={"quantity": 3}
    )
    assert response.status_code == 200, response.text
    assert Decimal(response.json()["total_price"]) == Decimal("30.00")

    response = await commerce_client.post(
        f"/commerce/orders/{order_id}/items",
        json={"product_name": "Extra", "unit_price": "1.25", "quantity": 4},
    )
    assert response.status_code == 201, response.text

    response = await commerce_client.get(f"/commerce/orders/{order_id}")
    data = response.json()
    assert Decimal(data["subtotal"]) == Decimal("38.50")
    assert Decimal(data["total_amount"]) == Decimal("51.50")

    for item in data["items"]:
        response = await commerce_client.delete(
            f"/commerce/orders/{order_id}/items/{item['id']}"
        )
        assert response.status_code == 200, response.text

    data = response.json()
    assert data["items"] == []
    assert Decimal(data["subtotal"]) == Decimal("0")
    assert Decimal(data["total_amount"]) == Decimal("13.00")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_status_patch_stamps_dates(commerce_client, store_id):
    order = await _create_order(commerce_client, store_id)

    response = await commerce_client.patch(
        f"/commerce/orders/{order['id']}",
        json={"status": "shipped", "payment_status": "paid"},
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["shipped_date"] is not None
    assert data["payment_date"] is not None
    assert data["delivered_date"] is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_item_on_other_order_is_404(commerce_client, store_id):
    order_a = await _create_order(commerce_client, store_id)
    order_b = await _create_order(commerce_client, store_id)
    item_id = order_a["items"][0]["id"]

    response = await commerce_client.delete(
        f"/commerce/orders/{order_b['id']}/items/{item_id}"
    )

    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundError"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_missing_order_is_404(commerce_client):
    response = await commerce_client.get(f"/commerce/orders/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["field"] == "order_id"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_returnable_requires_delivery(commerce_client, store_id):
    order = await _create_order(commerce_client, store_id)
    item_id = order["items"][0]["id"]
    url = f"/commerce/orders/{order['id']}/items/{item_id}/returnable"

    response = await commerce_client.get(url)
    assert response.json()["returnable"] is False

    await commerce_client.patch(
        f"/commerce/orders/{order['id']}", json={"status": "delivered"}
    )
    response = await commerce_client.get(url)
    assert response.json()["returnable"] is True


@pytest.mark.asyncio
@pytest.mark.integration
async def test_null_item_price_is_422(commerce_client, store_id):
    order = await _create_order(
        commerce_client,
        store_id,
        tax_amount="0",
        shipping_cost="0",
        discount_amount="0",
        items=[{"product_name": "Widget", "unit_price": "50.00", "quantity": 2}],
    )
    item_id = order["items"][0]["id"]

    response = await commerce_client.patch(
        f"/commerce/orders/{order['id']}/items/{item_id}", json={"unit_price": None}
    )

    assert response.status_code == 422
    assert response.json()["field"] == "unit_price"
    response = await commerce_client.get(f"/commerce/orders/{order['id']}")
    assert Decimal(response.json()["total_amount"]) == Decimal("100.00")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_null_order_status_is_422(commerce_client, store_id):
    order = await _create_order(commerce_client, store_id)

    response = await commerce_client.patch(
        f"/commerce/orders/{order['id']}", json={"status": None}
    )

    assert response.status_code == 422
    assert response.json()["field"] == "status"
    response = await commerce_client.get(f"/commerce/orders/{order['id']}")
    assert response.json()["status"] == "pending"


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_transaction_settlement_flow(commerce_client, store_id):
    response = await commerce_client.post(
        "/commerce/transactions",
        json={
            "store_id": str(store_id),
            "transaction_number": "TXN-1001",
            "transaction_type": "payment",
            "amount": "100",
            "gateway_fee": "3",
            "platform_fee": "2",
        },
    )
    assert response.status_code == 201, response.text
    txn = response.json()
    assert Decimal(txn["net_amount"]) == Decimal("95")
    assert txn["processed_at"] is None

    response = await commerce_client.patch(
        f"/commerce/transactions/{txn['id']}", json={"transaction_status": "completed"}
    )
    assert response.status_code == 200, response.text
    assert response.json()["processed_at"] is not None

    response = await commerce_client.post(
        f"/commerce/transactions/{txn['id']}/reconcile", json={"reference": "STMT-1"}
    )
    assert response.json()["reconciled"] is True
