from datetime import datetime

import pytest

from stock_tracker import db
from stock_tracker.models import StockTransaction


@pytest.fixture()
def seeded_ledger(app, make_product):
    """Satu produk dengan total 120 baris ledger (1 baris pembuatan + 119 IN)."""
    product = make_product("Widget")
    with app.app_context():
        for index in range(119):
            db.session.add(
                StockTransaction(
                    product_id=product["id"],
                    transaction_type="IN",
                    quantity=1,
                    previous_stock=index,
                    new_stock=index + 1,
                    reason="Seed",
                    created_by="seed",
                    created_at=datetime(2020, 1, 1 + index % 28, 8, 0, 0),
                )
            )
        db.session.commit()
    return product


def test_pagination_metadata(client, seeded_ledger):
    response = client.get("/api/stock/transactions?page=2&limit=50")

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert len(data["transactions"]) == 50
    assert data["pagination"] == {
        "current_page": 2,
        "total_pages": 3,
        "total_items": 120,
        "items_per_page": 50,
        "has_next_page": True,
        "has_prev_page": True,
    }


def test_last_page_and_out_of_range_page(client, seeded_ledger):
    data = client.get("/api/stock/transactions?page=3&limit=50").get_json()["data"]
    assert len(data["transactions"]) == 20
    assert data["pagination"]["has_next_page"] is False

    data = client.get("/api/stock/transactions?page=9&limit=50").get_json()["data"]
    assert data["transactions"] == []
    assert data["pagination"]["total_pages"] == 3


def test_default_limit_is_fifty(client, seeded_ledger):
    data = client.get("/api/stock/transactions").get_json()["data"]

    assert data["pagination"]["items_per_page"] == 50
    assert data["pagination"]["current_page"] == 1
    assert data["pagination"]["has_prev_page"] is False


def test_transactions_are_newest_first_with_product_name(client, seeded_ledger):
    data = client.get("/api/stock/transactions?limit=5").get_json()["data"]

    created = [row["created_at"] for row in data["transactions"]]
    assert created == sorted(created, reverse=True)
    # baris pembuatan produk memakai waktu sekarang, jadi paling baru
    assert data["transactions"][0]["reason"] == "Product created"
    assert data["transactions"][0]["product_name"] == "Widget"


def test_filters_by_date_range_inclusive(client, seeded_ledger):
    data = client.get(
        "/api/stock/transactions?start_date=2020-01-01&end_date=2020-01-02&limit=200"
    ).get_json()["data"]

    # tanggal 1 dan 2 muncul di index 0,1,28,29,56,57,84,85,112,113
    assert data["pagination"]["total_items"] == 10
    assert all(row["created_at"].startswith(("2020-01-01", "2020-01-02")) for row in data["transactions"])


def test_filters_by_product_and_type(client, make_product):
    kopi = make_product("Kopi", stock_awal=10)
    make_product("Teh", stock_awal=5)

    data = client.get(f"/api/stock/transactions?product_id={kopi['id']}").get_json()["data"]
    assert {row["product_name"] for row in data["transactions"]} == {"Kopi"}
    assert data["pagination"]["total_items"] == 2

    data = client.get("/api/stock/transactions?transaction_type=ADJUSTMENT").get_json()["data"]
    assert data["pagination"]["total_items"] == 2
    assert {row["transaction_type"] for row in data["transactions"]} == {"ADJUSTMENT"}


def test_invalid_query_parameters(client):
    for query in (
        "page=0",
        "page=abc",
        "limit=0",
        "limit=1000",
        "product_id=x",
        "transaction_type=MOVE",
        "start_date=01-02-2026",
        "start_date=2026-02-02&end_date=2026-02-01",
    ):
        response = client.get(f"/api/stock/transactions?{query}")
        assert response.status_code == 400, query
        assert response.get_json()["error_kind"] == "validation_error"


def test_create_transaction_tracks_ledger_stock(client, make_product):
    product = make_product("Gula")
    pid = product["id"]

    response = client.post(
        "/api/stock/transaction",
        json={"product_id": pid, "transaction_type": "IN", "quantity": 30, "reason": "Restock"},
    )
    assert response.status_code == 200
    body = response.get_json()
    assert body["message"] == "Transaction created successfully"
    entry = body["data"]
    assert (entry["previous_stock"], entry["new_stock"]) == (0, 30)
    assert entry["created_by"] == "gudang"
    assert entry["product_name"] == "Gula"

    entry = client.post(
        "/api/stock/transaction",
        json={"product_id": pid, "transaction_type": "OUT", "quantity": 12, "created_by": "kasir"},
    ).get_json()["data"]
    assert (entry["previous_stock"], entry["new_stock"]) == (30, 18)
    assert entry["created_by"] == "kasir"

    entry = client.post(
        "/api/stock/transaction",
        json={"product_id": pid, "transaction_type": "ADJUSTMENT", "quantity": 25, "reference_number": "SO-1"},
    ).get_json()["data"]
    assert (entry["previous_stock"], entry["new_stock"]) == (18, 25)
    assert entry["reference_number"] == "SO-1"

    entry = client.post(
        "/api/stock/transaction",
        json={"product_id": pid, "transaction_type": "IN", "quantity": 5},
    ).get_json()["data"]
    assert (entry["previous_stock"], entry["new_stock"]) == (25, 30)


def test_manual_transaction_does_not_touch_product_row(client, make_product):
    product = make_product("Gula", stock_awal=10)

    client.post(
        "/api/stock/transaction",
        json={"product_id": product["id"], "transaction_type": "IN", "quantity": 30},
    )

    data = client.get(f"/api/products/{product['id']}").get_json()["data"]
    assert data["stock_awal"] == 10
    assert data["version"] == product["version"]


def test_create_transaction_validation(client, make_product):
    product = make_product("Gula")

    response = client.post("/api/stock/transaction", json={"product_id": product["id"], "quantity": 3})
    assert response.status_code == 400
    assert response.get_json()["error"] == "Product ID, transaction type, and quantity are required"

    response = client.post(
        "/api/stock/transaction",
        json={"product_id": product["id"], "transaction_type": "MOVE", "quantity": 3},
    )
    assert response.status_code == 400
    assert response.get_json()["error"] == "Transaction type must be IN, OUT, or ADJUSTMENT"

    response = client.post(
        "/api/stock/transaction",
        json={"product_id": product["id"], "transaction_type": "OUT", "quantity": -2},
    )
    assert response.status_code == 400
    assert response.get_json()["error"] == "Quantity must be positive"


def test_create_transaction_for_unknown_product(client):
    response = client.post(
        "/api/stock/transaction",
        json={"product_id": 777, "transaction_type": "IN", "quantity": 1},
    )

    assert response.status_code == 404
    assert response.get_json()["error_kind"] == "not_found"
