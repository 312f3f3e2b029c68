from sqlalchemy import event

from stock_tracker import db, services
from stock_tracker.models import Product, StockTransaction


def test_create_product_starts_at_zero_with_birth_transaction(client, app):
    response = client.post("/api/products", json={"name": "Widget"})

    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    assert body["message"] == "Product created successfully"
    product = body["data"]
    assert product["name"] == "Widget"
    for field in ("stock_awal", "keluar_manual", "keluar_pos", "stock_akhir", "qty_di_pesan", "selisih"):
        assert product[field] == 0
    assert product["days_to_order"] == 3
    assert product["version"] == 1

    with app.app_context():
        entries = StockTransaction.query.filter_by(product_id=product["id"]).all()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.transaction_type == "IN"
        assert entry.quantity == 0
        assert entry.previous_stock == 0
        assert entry.new_stock == 0
        assert entry.reason == "Product created"
        assert entry.created_by == "gudang"


def test_create_product_trims_name(client):
    response = client.post("/api/products", json={"name": "  Kopi Susu  "})

    assert response.status_code == 200
    assert response.get_json()["data"]["name"] == "Kopi Susu"


def test_duplicate_name_is_rejected_and_store_unchanged(client, app, make_product):
    make_product("Widget")
    with app.app_context():
        products_before = Product.query.count()
        entries_before = StockTransaction.query.count()

    response = client.post("/api/products", json={"name": "Widget"})

    assert response.status_code == 400
    body = response.get_json()
    assert body["success"] is False
    assert body["error_kind"] == "conflict"
    assert body["error"] == "Product with this name already exists"
    with app.app_context():
        assert Product.query.count() == products_before
        assert StockTransaction.query.count() == entries_before


def test_duplicate_check_is_case_sensitive(client, make_product):
    make_product("Widget")

    response = client.post("/api/products", json={"name": "widget"})

    assert response.status_code == 200


def test_create_product_requires_name(client):
    for payload in ({}, {"name": ""}, {"name": "   "}, {"name": None}):
        response = client.post("/api/products", json=payload)
        assert response.status_code == 400
        body = response.get_json()
        assert body["error_kind"] == "validation_error"
        assert body["error"] == "Product name is required"


def test_create_product_rejects_long_name(client):
    response = client.post("/api/products", json={"name": "x" * 256})

    assert response.status_code == 400
    assert response.get_json()["error"] == "Product name too long"


def test_get_product_and_not_found(client, make_product):
    product = make_product("Gula")

    response = client.get(f"/api/products/{product['id']}")
    assert response.status_code == 200
    assert response.get_json()["data"]["name"] == "Gula"

    response = client.get("/api/products/9999")
    assert response.status_code == 404
    body = response.get_json()
    assert body["error"] == "Product not found"
    assert body["error_kind"] == "not_found"


def test_stock_list_is_ordered_by_name(client, make_product):
    make_product("Teh")
    make_product("Air")
    make_product("Kopi")

    response = client.get("/api/stock")

    assert response.status_code == 200
    names = [item["name"] for item in response.get_json()["data"]]
    assert names == ["Air", "Kopi", "Teh"]
    assert client.get("/api/products").get_json()["data"] == response.get_json()["data"]


def test_service_create_product_returns_tagged_result(app):
    with app.app_context():
        result = services.create_product("Beras")
        assert result.ok
        assert result.data["name"] == "Beras"

        result = services.create_product("Beras")
        assert not result.ok
        assert result.kind == "conflict"
        assert result.status == 400
        assert db.session.query(Product).count() == 1


def test_name_taken_after_duplicate_check_is_conflict(app):
    with app.app_context():
        session = db.session()

        # request lain menyimpan "Widget" di antara pengecekan dan flush
        @event.listens_for(session, "before_flush", once=True)
        def _rival_insert(session, flush_context, instances):
            session.add(Product(name="Widget"))

        result = services.create_product("Widget")

        assert not result.ok
        assert result.kind == "conflict"
        assert result.status == 400
        assert result.error == "Product with this name already exists"
        assert result.details == {"name": "Widget"}
        assert Product.query.count() == 0
        assert StockTransaction.query.count() == 0
