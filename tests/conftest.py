"""Shared fixtures: in-memory database, HTTP client and data builders."""

import os

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from main import app
from models.product import Product
from models.cart import CartItem
from models.users import Role, User
from utils.hashing import get_password_hash

PASSWORD = "secret-pass"


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make_user(username="alice", role=Role.USER, email=None, password=PASSWORD):
        user = User(
            username=username,
            password_hash=get_password_hash(password),
            email=email or f"{username}@example.com",
            role=role.value,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_product(db):
    def _make_product(title="Product", price=100, producer="Acme", quantity=10):
        product = Product(
            title=title,
            producer=producer,
            year=2020,
            country="US",
            description=f"{title} description",
            price=price,
            quantity=quantity,
            type="generic",
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make_product


@pytest.fixture
def fill_cart(db):
    def _fill_cart(user, *products):
        for product in products:
            user.cart.append(CartItem(product=product))
        db.commit()
        db.refresh(user)
        return user

    return _fill_cart


@pytest.fixture
def login(client):
    def _login(username, password=PASSWORD):
        response = client.post("/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login


@pytest.fixture
def shipping():
    return {
        "first_name": "Alice",
        "last_name": "Liu",
        "city": "Reno",
        "address": "1 Main St",
        "post_index": "89501",
        "email": "a@x.com",
        "phone_number": "5551234",
        "total_price": 150,
    }
