from datetime import datetime, timedelta, UTC

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from todolist.config import ALGORITHM, SECRET_KEY, TOKEN_COOKIE_NAME
from todolist.errors import Unauthenticated
from todolist.main import app
from todolist.utils.auth import Identity, create_token, extract_token, hash_password, verify_password, verify_token

from conftest import PASSWORD, unique_email


def _expired_token(user_id=1, email="a@example.com"):
    past = datetime.now(UTC) - timedelta(days=8)
    claims = {"userId": user_id, "email": email, "iat": int(past.timestamp()), "exp": int((past + timedelta(days=7)).timestamp())}
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


# ---- token primitives ----

def test_token_roundtrip_exposes_identity():
    token = create_token(7, "seven@example.com")
    assert verify_token(token) == Identity(user_id=7, email="seven@example.com")


def test_token_lifetime_is_seven_days():
    claims = jwt.get_unverified_claims(create_token(1, "a@example.com"))
    assert claims["exp"] - claims["iat"] == 7 * 24 * 60 * 60


@pytest.mark.parametrize(
    "token",
    [
        "garbage",
        "a.b.c",
        jwt.encode({"userId": 1, "email": "a@example.com"}, "another-secret", algorithm="HS256"),
        jwt.encode({"email": "a@example.com"}, SECRET_KEY, algorithm=ALGORITHM),
    ],
)
def test_bad_tokens_rejected_uniformly(token):
    with pytest.raises(Unauthenticated) as exc_info:
        verify_token(token)
    assert exc_info.value.message == "Invalid or expired token"


def test_expired_token_rejected_with_same_message():
    with pytest.raises(Unauthenticated) as exc_info:
        verify_token(_expired_token())
    assert exc_info.value.message == "Invalid or expired token"


def test_extract_token_prefers_cookie():
    assert extract_token("from-cookie", "Bearer from-header") == "from-cookie"
    assert extract_token(None, "Bearer from-header") == "from-header"
    assert extract_token(None, "Basic abc") is None
    assert extract_token(None, None) is None


def test_password_hashing():
    hashed = hash_password("correct_horse")
    assert verify_password("correct_horse", hashed)
    assert not verify_password("wrong", hashed)
    with pytest.raises(ValueError):
        hash_password("a" * 100)


# ---- endpoints ----

def test_register_sets_cookie_and_returns_user(client: TestClient):
    email = unique_email()
    r = client.post("/register", json={"email": email, "password": PASSWORD})
    assert r.status_code == 201
    data = r.json()
    assert data["user"]["email"] == email
    assert "id" in data["user"]
    assert "password" not in r.text
    assert TOKEN_COOKIE_NAME in r.cookies
    assert "httponly" in r.headers["set-cookie"].lower()

    me = client.get("/me")
    assert me.status_code == 200
    assert me.json()["email"] == email
    assert "createdAt" in me.json()


def test_register_validation(client: TestClient):
    r = client.post("/register", json={"password": PASSWORD})
    assert r.status_code == 400
    assert r.json()["error"]

    r = client.post("/register", json={"email": unique_email(), "password": "12345"})
    assert r.status_code == 400
    assert "at least 6" in r.text

    r = client.post("/register", json={"email": unique_email(), "password": "a" * 100})
    assert r.status_code == 400
    assert "too long" in r.text.lower()

    # the limit counts UTF-8 bytes: 25 characters, 75 bytes
    r = client.post("/register", json={"email": unique_email(), "password": "\u20ac" * 25})
    assert r.status_code == 400
    assert "72 bytes" in r.text


def test_register_duplicate_email(client: TestClient):
    email = unique_email()
    assert client.post("/register", json={"email": email, "password": PASSWORD}).status_code == 201
    r = client.post("/register", json={"email": email, "password": "other_password"})
    assert r.status_code == 400
    assert "exists" in r.json()["error"].lower()


def test_email_is_case_sensitive(client: TestClient):
    assert client.post("/register", json={"email": "Ann@example.com", "password": PASSWORD}).status_code == 201
    assert client.post("/register", json={"email": "ann@example.com", "password": PASSWORD}).status_code == 201


def test_login(client: TestClient):
    email = unique_email()
    client.post("/register", json={"email": email, "password": PASSWORD})

    fresh = TestClient(app)
    r = fresh.post("/login", json={"email": email, "password": "wrong-password"})
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid email or password"}

    r = fresh.post("/login", json={"email": "nobody@example.com", "password": PASSWORD})
    assert r.status_code == 401

    r = fresh.post("/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200
    assert r.json()["user"]["email"] == email
    assert fresh.get("/me").status_code == 200


def test_login_missing_fields(client: TestClient):
    r = client.post("/login", json={"email": unique_email()})
    assert r.status_code == 400


def test_logout_clears_cookie(make_client):
    c = make_client()
    assert c.get("/me").status_code == 200
    r = c.post("/logout")
    assert r.status_code == 200
    assert c.get("/me").status_code == 401


def test_me_requires_auth(client: TestClient):
    r = client.get("/me")
    assert r.status_code == 401
    assert r.json() == {"error": "Missing authentication token"}


def test_bearer_header_accepted(make_client, client: TestClient):
    email = unique_email()
    c = make_client(email)
    user_id = c.get("/me").json()["id"]

    r = client.get("/me", headers={"Authorization": f"Bearer {create_token(user_id, email)}"})
    assert r.status_code == 200
    assert r.json()["id"] == user_id


def test_cookie_takes_precedence_over_header(make_client):
    email = unique_email()
    c = make_client(email)
    user_id = c.get("/me").json()["id"]
    good = create_token(user_id, email)

    bad_cookie = TestClient(app)
    bad_cookie.cookies.set(TOKEN_COOKIE_NAME, "tampered")
    assert bad_cookie.get("/me", headers={"Authorization": f"Bearer {good}"}).status_code == 401

    good_cookie = TestClient(app)
    good_cookie.cookies.set(TOKEN_COOKIE_NAME, good)
    assert good_cookie.get("/me", headers={"Authorization": "Bearer tampered"}).status_code == 200


def test_expired_and_tampered_tokens_look_the_same(client: TestClient):
    expired = client.get("/me", headers={"Authorization": f"Bearer {_expired_token()}"})
    tampered = client.get("/me", headers={"Authorization": "Bearer not.a.token"})
    assert expired.status_code == tampered.status_code == 401
    assert expired.json() == tampered.json()


def test_me_for_removed_user(client: TestClient):
    r = client.get("/me", headers={"Authorization": f"Bearer {create_token(999, 'ghost@example.com')}"})
    assert r.status_code == 404
    assert r.json() == {"error": "User not found"}
