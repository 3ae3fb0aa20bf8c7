import os

# The module-level app in app.py must not try to reach a real server
os.environ["DISABLE_MONGO"] = "1"

from datetime import date, datetime, timedelta, timezone

import mongomock
import pytest

from agromarket.mongo import mongo
from agromarket.services.identity_service import bcrypt
from agromarket.session import SESSION_KEY, MarketSession
from app import create_app

TEST_CONFIG = {
    "TESTING": True,
    "MONGO_URI": "",
    "DISABLE_MONGO": False,
    "SECRET_KEY": "test-secret",
    "JWT_SECRET_KEY": "test-jwt-secret-key-that-is-long-enough-for-hs256",
    "BCRYPT_LOG_ROUNDS": 4,
    "LOG_LEVEL": "WARNING",
}

FARMER = MarketSession(user_id="FRM0001", full_name="Ravi Farmer", email="ravi@example.com", role="farmer")
BUYER = MarketSession(user_id="BUY0001", full_name="Bina Buyer", email="bina@example.com", role="buyer")
OTHER_FARMER = MarketSession(user_id="FRM0002", full_name="Other Farmer", email="other@example.com", role="farmer")


@pytest.fixture
def app():
    app = create_app(dict(TEST_CONFIG))
    mongo.db = mongomock.MongoClient()["agromarket_test"]
    yield app
    mongo.db = None


@pytest.fixture
def db(app):
    return mongo.db


@pytest.fixture
def ctx(app):
    with app.test_request_context():
        yield


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def farmer():
    return FARMER


@pytest.fixture
def buyer():
    return BUYER


@pytest.fixture
def other_farmer():
    return OTHER_FARMER


def insert_user(db, ms, password="secret123"):
    db.users.insert_one({
        "userId": ms.user_id,
        "fullName": ms.full_name,
        "email": ms.email,
        "role": ms.role,
        "password": bcrypt.generate_password_hash(password).decode("utf-8"),
        "createdAt": datetime.now(timezone.utc),
    })


def insert_listing(db, farmer=FARMER, **overrides):
    doc = {
        "farmerId": farmer.user_id,
        "farmerName": farmer.full_name,
        "cropName": "Red Onions",
        "cropCategory": "Vegetables",
        "availableQuantity": 500,
        "minPrice": 25,
        "description": "Dry red onions, graded and bagged.",
        "location": "Lasalgaon, Maharashtra",
        "harvestDate": (date.today() + timedelta(days=20)).isoformat(),
        "createdAt": datetime.now(timezone.utc),
    }
    doc.update(overrides)
    return str(db.listings.insert_one(doc).inserted_id)


def sign_in_as(client, ms):
    """Put ``ms`` into the test client's cookie session."""
    with client.session_transaction() as s:
        s[SESSION_KEY] = {
            "userId": ms.user_id,
            "fullName": ms.full_name,
            "email": ms.email,
            "role": ms.role,
        }
