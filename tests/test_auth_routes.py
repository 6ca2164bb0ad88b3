from datetime import timedelta

import pytest

from app.api.deps import session_issuer
from app.core.session import SessionIssuer
from app.models.user import User

USER = {"email": "maria@famli.me", "name": "Maria Silva", "password": "senha1234"}


def test_register_sets_session_cookie(client):
    response = client.post("/api/auth/register", json=USER)

    assert response.status_code == 201
    body = response.json()
    assert body["user"]["email"] == "maria@famli.me"
    assert body["user"]["name"] == "Maria Silva"
    assert body["user"]["provider"] == "email"
    assert "password" not in response.text
    assert "hashed_password" not in body["user"]

    cookie = response.headers["set-cookie"].lower()
    assert cookie.startswith("famli_session=")
    assert "httponly" in cookie
    assert "samesite=lax" in cookie
    assert "max-age=86400" in cookie
    assert "secure" not in cookie


def test_register_behind_tls_proxy_sets_secure_cookie(client):
    response = client.post("/api/auth/register", json=USER, headers={"X-Forwarded-Proto": "https"})
    assert "secure" in response.headers["set-cookie"].lower()


def test_password_is_hashed(client, db_session):
    client.post("/api/auth/register", json=USER)
    user = db_session.query(User).filter(User.email == "maria@famli.me").one()
    assert user.hashed_password.startswith("$2b$")


@pytest.mark.parametrize("password", ["curta1", "somenteletras", "1234567890"])
def test_register_rejects_weak_password(client, password):
    response = client.post("/api/auth/register", json={**USER, "password": password})
    assert response.status_code == 400
    assert response.json() == {"error": "Senha precisa ter no mínimo 8 caracteres com letras e números."}


def test_register_rejects_invalid_email(client):
    response = client.post("/api/auth/register", json={**USER, "email": "não-é-email"})
    assert response.status_code == 400
    assert response.json() == {"error": "Dados inválidos."}


def test_register_rejects_blank_name(client):
    response = client.post("/api/auth/register", json={**USER, "name": "   "})
    assert response.status_code == 400


def test_register_duplicate_email_is_case_insensitive(client):
    client.post("/api/auth/register", json=USER)
    response = client.post("/api/auth/register", json={**USER, "email": "MARIA@famli.me"})
    assert response.status_code == 409


def test_login_and_me(client):
    client.post("/api/auth/register", json=USER)
    client.cookies.clear()

    response = client.post("/api/auth/login", json={"email": "Maria@Famli.me", "password": "senha1234"})
    assert response.status_code == 200
    assert "famli_session=" in response.headers["set-cookie"]

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["email"] == "maria@famli.me"
    assert me.json()["is_admin"] is True  # ADMIN_EMAILS 비어 있고 비운영 환경


def test_login_failures_share_one_message(client):
    client.post("/api/auth/register", json=USER)
    client.cookies.clear()

    wrong_password = client.post("/api/auth/login", json={"email": USER["email"], "password": "errada123"})
    unknown_email = client.post("/api/auth/login", json={"email": "ninguem@famli.me", "password": "errada123"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"error": "E-mail ou senha incorretos."}
    assert "set-cookie" not in wrong_password.headers


def test_social_user_cannot_login_with_password(client, store):
    store.create_or_update_social_user("google", "g-123", "social@famli.me", "Social")
    response = client.post("/api/auth/login", json={"email": "social@famli.me", "password": ""})
    assert response.status_code == 401


def test_me_without_session(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json() == {"error": "Sessão não encontrada."}


def test_me_with_cookie_signed_by_other_secret(client):
    user_id = client.post("/api/auth/register", json=USER).json()["user"]["id"]
    forged = SessionIssuer("another-secret-that-the-server-does-not-know").issue(user_id)
    client.cookies.clear()
    client.cookies.set("famli_session", forged.token)

    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json() == {"error": "Sessão inválida."}


def test_logout_clears_cookie(auth_client):
    response = auth_client.post("/api/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"message": "Sessão encerrada."}
    cookie = response.headers["set-cookie"].lower()
    assert "max-age=0" in cookie
    assert "1970" in cookie
    assert auth_client.get("/api/auth/me").status_code == 401


def test_session_is_renewed_near_expiry(auth_client):
    user_id = auth_client.get("/api/auth/me").json()["id"]
    short = session_issuer.issue(user_id, "maria@famli.me", ttl=timedelta(hours=1))
    auth_client.cookies.clear()
    auth_client.cookies.set("famli_session", short.token)

    response = auth_client.get("/api/auth/me")

    assert response.status_code == 200
    assert "max-age=86400" in response.headers["set-cookie"].lower()


def test_fresh_session_is_not_renewed(auth_client):
    response = auth_client.get("/api/auth/me")
    assert "set-cookie" not in response.headers


def test_session_for_deleted_user_is_rejected(client):
    client.cookies.set("famli_session", session_issuer.issue("usr_nao_existe").token)
    assert client.get("/api/auth/me").status_code == 401


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
