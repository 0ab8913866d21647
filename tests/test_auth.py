from datetime import datetime, timedelta

from sqlalchemy import select

from conftest import STRONG_PASSWORD, auth_header, register
from huequitas.core.rate_limit import _reset_for_tests
from huequitas.core.security import decode_access_token
from huequitas.models.users import UserAuth
from huequitas.services import mailer


def test_register_and_verify(auth_client):
    r = register(auth_client)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["user"]["email"] == "u1@example.com"
    assert body["user"]["name"] == "Ana Lopez"
    assert "password" not in body["user"]

    r2 = auth_client.get("/verify", headers=auth_header(body["token"]))
    assert r2.status_code == 200, r2.text
    assert r2.json() == {"valid": True, "user": body["user"]}


def test_token_carries_identity(auth_client):
    body = register(auth_client).json()
    claims = decode_access_token(body["token"])
    assert claims["sub"] == body["user"]["id"]
    assert claims["email"] == "u1@example.com"
    assert claims["name"] == "Ana Lopez"


def test_register_weak_password_400(auth_client):
    r = register(auth_client, password="abcdefgh")
    assert r.status_code == 400
    error = r.json()["error"]
    assert "uppercase" in error
    assert "numbers" in error
    assert "special" in error


def test_register_password_mismatch_400(auth_client):
    r = auth_client.post(
        "/register",
        json={"email": "u@example.com", "password": STRONG_PASSWORD, "confirmPassword": "Other1!x", "name": "Ana Lopez"},
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Passwords do not match"


def test_register_missing_field_400(auth_client):
    r = auth_client.post("/register", json={"email": "u@example.com", "password": STRONG_PASSWORD})
    assert r.status_code == 400
    assert r.json()["error"] == "Name is required"


def test_register_invalid_email_and_name(auth_client):
    assert register(auth_client, email="not-an-email").status_code == 400
    assert register(auth_client, name="Al").status_code == 400
    assert register(auth_client, name="R2D2 Unit").status_code == 400
    assert register(auth_client, name="José Muñoz").status_code == 201


def test_register_duplicate_email_409(auth_client):
    assert register(auth_client, email="dup@example.com").status_code == 201
    r = register(auth_client, email="dup@example.com")
    assert r.status_code == 409
    assert r.json() == {"error": "User already exists"}


def test_login_success_and_failure(auth_client):
    register(auth_client, email="u2@example.com")

    ok = auth_client.post("/login", json={"email": "u2@example.com", "password": STRONG_PASSWORD})
    assert ok.status_code == 200, ok.text
    assert ok.json()["token"]

    bad = auth_client.post("/login", json={"email": "u2@example.com", "password": "Wrong123!"})
    assert bad.status_code == 401
    assert bad.json() == {"error": "Invalid credentials"}

    unknown = auth_client.post("/login", json={"email": "nope@example.com", "password": STRONG_PASSWORD})
    assert unknown.status_code == 401


def test_verify_requires_token(auth_client):
    assert auth_client.get("/verify").status_code == 401
    r = auth_client.get("/verify", headers=auth_header("garbage"))
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid token"}


def test_rate_limit_on_login(auth_client):
    _reset_for_tests()

    for _ in range(10):
        r = auth_client.post("/login", json={"email": "x@example.com", "password": "Wrong123!"})
        assert r.status_code == 401

    r = auth_client.post("/login", json={"email": "x@example.com", "password": "Wrong123!"})
    assert r.status_code == 429, r.text
    assert "Retry-After" in r.headers


def test_reset_request_does_not_reveal_accounts(auth_client):
    register(auth_client, email="known@example.com")

    known = auth_client.post("/password-reset-request", json={"email": "known@example.com"})
    unknown = auth_client.post("/password-reset-request", json={"email": "ghost@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json()["message"] == unknown.json()["message"]


def test_full_password_reset_flow(auth_client, db, monkeypatch):
    sent = {}

    async def fake_send(to_email, code):
        sent[to_email] = code

    monkeypatch.setattr("huequitas.routers.auth.send_reset_email", fake_send)
    register(auth_client, email="reset@example.com")

    r = auth_client.post("/password-reset-request", json={"email": "reset@example.com"})
    assert r.status_code == 200
    code = sent["reset@example.com"]
    assert len(code) == 6 and code.isdigit()

    bad = auth_client.post("/verify-reset-code", json={"email": "reset@example.com", "resetCode": "000000"})
    assert bad.status_code == 400

    ok = auth_client.post("/verify-reset-code", json={"email": "reset@example.com", "resetCode": code})
    assert ok.status_code == 200, ok.text
    temp_token = ok.json()["tempToken"]
    assert decode_access_token(temp_token)["purpose"] == "reset"
    # A reset token is not a session token
    assert auth_client.get("/verify", headers=auth_header(temp_token)).status_code == 401

    new_password = "Newpass9$"
    r = auth_client.post(
        "/password-reset",
        json={"email": "reset@example.com", "resetCode": code, "newPassword": new_password, "confirmPassword": new_password},
    )
    assert r.status_code == 200, r.text

    user = db.scalar(select(UserAuth).where(UserAuth.email == "reset@example.com"))
    assert user.reset_code is None
    assert user.reset_token is None
    assert user.reset_token_expiry is None

    assert auth_client.post("/login", json={"email": "reset@example.com", "password": STRONG_PASSWORD}).status_code == 401
    assert auth_client.post("/login", json={"email": "reset@example.com", "password": new_password}).status_code == 200

    # The code is single use
    again = auth_client.post(
        "/password-reset",
        json={"email": "reset@example.com", "resetCode": code, "newPassword": new_password, "confirmPassword": new_password},
    )
    assert again.status_code == 400


def test_expired_reset_code_rejected(auth_client, db):
    register(auth_client, email="late@example.com")
    user = db.scalar(select(UserAuth).where(UserAuth.email == "late@example.com"))
    user.reset_code = "123456"
    user.reset_token_expiry = datetime.utcnow() - timedelta(minutes=1)
    db.commit()

    r = auth_client.post("/verify-reset-code", json={"email": "late@example.com", "resetCode": "123456"})
    assert r.status_code == 400


def test_reset_mail_failure_answers_like_unknown_email(auth_client, db, monkeypatch):
    async def broken_send(to_email, code):
        raise mailer.MailError("smtp down")

    monkeypatch.setattr("huequitas.routers.auth.send_reset_email", broken_send)
    register(auth_client, email="mail@example.com")

    known = auth_client.post("/password-reset-request", json={"email": "mail@example.com"})
    unknown = auth_client.post("/password-reset-request", json={"email": "nobody@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()

    # The undelivered code is not left behind
    user = db.scalar(select(UserAuth).where(UserAuth.email == "mail@example.com"))
    assert user.reset_code is None
    assert user.reset_token_expiry is None


def test_reset_code_guesses_limited_per_email(auth_client):
    register(auth_client, email="target@example.com")

    for i in range(5):
        # Spread over several addresses; the account still counts every guess
        r = auth_client.post(
            "/verify-reset-code",
            json={"email": "target@example.com", "resetCode": f"00000{i}"},
            headers={"X-Forwarded-For": f"10.0.0.{i}"},
        )
        assert r.status_code == 400

    new_password = "Newpass9$"
    r = auth_client.post(
        "/password-reset",
        json={"email": "target@example.com", "resetCode": "000009", "newPassword": new_password, "confirmPassword": new_password},
        headers={"X-Forwarded-For": "10.0.0.99"},
    )
    assert r.status_code == 429, r.text
    assert r.json() == {"error": "Too many requests"}
    assert "Retry-After" in r.headers

    other = auth_client.post("/verify-reset-code", json={"email": "other@example.com", "resetCode": "000000"})
    assert other.status_code == 400
