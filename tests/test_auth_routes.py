from agromarket.services import auth_api_client
from agromarket.services.auth_api_client import AuthApiError
from agromarket.session import SESSION_KEY
from conftest import BUYER, insert_user

INVALID = b"Invalid email or password. Please try again."


def _sign_up(client, **kw):
    form = {
        "fullName": "Meena Devi",
        "email": "Meena@Example.com",
        "password": "secret123",
        "role": "farmer",
    }
    form.update(kw)
    return client.post("/sign-up", data=form)


def test_sign_up_opens_session_and_hashes_password(client, db):
    resp = _sign_up(client)
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/dashboard")

    user = db.users.find_one({"email": "meena@example.com"})
    assert user["userId"].startswith("FRM")
    assert user["password"] != "secret123"

    with client.session_transaction() as s:
        assert s[SESSION_KEY]["userId"] == user["userId"]
        assert s[SESSION_KEY]["role"] == "farmer"


def test_buyer_ids_use_buyer_prefix(client, db):
    _sign_up(client, role="buyer", email="b@example.com")
    assert db.users.find_one({"email": "b@example.com"})["userId"].startswith("BUY")


def test_duplicate_email_is_rejected(client, db):
    _sign_up(client)
    client.post("/sign-out")
    resp = _sign_up(client)
    assert resp.status_code == 400
    assert b"An account with this email already exists." in resp.data
    assert db.users.count_documents({}) == 1


def test_sign_up_field_errors(client, db):
    resp = _sign_up(client, password="123", role="trader")
    assert resp.status_code == 400
    assert b"Please correct the highlighted fields." in resp.data
    assert db.users.count_documents({}) == 0


def test_sign_in_success(client, db):
    insert_user(db, BUYER)
    resp = client.post("/sign-in", data={"email": BUYER.email, "password": "secret123"})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/dashboard")


def test_wrong_password_and_unknown_email_look_the_same(client, db):
    insert_user(db, BUYER)
    wrong = client.post("/sign-in", data={"email": BUYER.email, "password": "nope-nope"})
    unknown = client.post("/sign-in", data={"email": "ghost@example.com", "password": "secret123"})

    for resp in (wrong, unknown):
        assert resp.status_code == 401
        assert INVALID in resp.data


def test_sign_out_closes_session(client, db):
    insert_user(db, BUYER)
    client.post("/sign-in", data={"email": BUYER.email, "password": "secret123"})

    resp = client.post("/sign-out", follow_redirects=True)
    assert b"You have been signed out." in resp.data

    resp = client.get("/dashboard")
    assert resp.status_code == 302
    assert "/sign-in" in resp.headers["Location"]


def test_signed_in_user_skips_auth_pages(client, db):
    _sign_up(client)
    assert client.get("/sign-in").status_code == 302
    assert client.get("/sign-up").status_code == 302


# ---------- remote identity provider ----------
def test_remote_sign_in_recreates_missing_profile(app, client, db, monkeypatch):
    app.config["USE_REMOTE_AUTH_API"] = True
    monkeypatch.setattr(
        auth_api_client, "login",
        lambda email, password: {"user": {"userId": "BUY777", "name": "Remote Buyer", "role": "Buyer"}},
    )

    resp = client.post("/sign-in", data={"email": "remote@example.com", "password": "whatever"})
    assert resp.status_code == 302

    doc = db.users.find_one({"userId": "BUY777"})
    assert doc["fullName"] == "Remote Buyer"
    assert doc["role"] == "buyer"
    assert "password" not in doc


def test_remote_sign_in_failure_is_generic(app, client, monkeypatch):
    app.config["USE_REMOTE_AUTH_API"] = True

    def _fail(email, password):
        raise AuthApiError("Invalid credentials (HTTP 401)")

    monkeypatch.setattr(auth_api_client, "login", _fail)
    resp = client.post("/sign-in", data={"email": "remote@example.com", "password": "whatever"})
    assert resp.status_code == 401
    assert INVALID in resp.data


def test_remote_sign_up_keeps_password_out_of_profile(app, client, db, monkeypatch):
    app.config["USE_REMOTE_AUTH_API"] = True
    sent = {}
    monkeypatch.setattr(auth_api_client, "register", lambda payload: sent.update(payload) or {"ok": True})

    resp = _sign_up(client, email="r@example.com")
    assert resp.status_code == 302
    assert sent["password"] == "secret123"
    assert sent["name"] == "Meena Devi"
    assert "password" not in db.users.find_one({"email": "r@example.com"})
