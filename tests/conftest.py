# tests/conftest.py
import os

import pytest
from werkzeug.security import generate_password_hash

# --- Paksa environment test yang aman ---
os.environ.setdefault("SECRET_KEY", "test")
# Gunakan SQLite in-memory agar tidak butuh MySQL/Postgres saat CI
os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite://"
os.environ.pop("ROLLOVER_ARCHIVE_DIR", None)

from stock_tracker import create_app, db  # noqa: E402
from stock_tracker.auth import StaticCredentialVerifier  # noqa: E402

TEST_USERNAME = "gudang"
TEST_PASSWORD = "rahasia123"


@pytest.fixture()
def app():
    verifier = StaticCredentialVerifier(
        {TEST_USERNAME: generate_password_hash(TEST_PASSWORD, method="pbkdf2:sha256")}
    )
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "ROLLOVER_ARCHIVE_DIR": None,
        },
        verifier=verifier,
    )
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def anon_client(app):
    return app.test_client()


@pytest.fixture()
def client(app):
    client = app.test_client()
    with client.session_transaction() as session:
        session["username"] = TEST_USERNAME
    return client


@pytest.fixture()
def runner(app):
    return app.test_cli_runner()


@pytest.fixture()
def make_product(client):
    def _make(name, **stock):
        response = client.post("/api/products", json={"name": name})
        assert response.status_code == 200, response.get_json()
        product = response.get_json()["data"]
        if stock:
            payload = {"id": product["id"], "name": name}
            payload.update(stock)
            response = client.put("/api/stock/update", json=payload)
            assert response.status_code == 200, response.get_json()
            product = response.get_json()["data"]
        return product

    return _make
