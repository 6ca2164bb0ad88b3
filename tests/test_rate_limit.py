from starlette.requests import Request

from app.config import settings
from app.core.rate_limit import RateLimiter
from app.core.security import get_client_ip
from app.models.share import ShareLinkAccess

USER = {"email": "maria@famli.me", "name": "Maria Silva", "password": "senha1234"}


def make_request(headers: dict, client=("10.0.0.1", 5555)) -> Request:
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": client,
    })


def create_pin_link(client) -> str:
    response = client.post("/api/share/links", json={"pin": "1234"})
    assert response.status_code == 201
    return response.json()["token"]


# ===== RateLimiter =====

def test_limiter_blocks_after_limit_and_resets_after_window():
    limiter = RateLimiter()

    assert [limiter.hit("pin:1.2.3.4", 3, 60, now=100.0)[0] for _ in range(3)] == [True, True, True]
    allowed, retry_after = limiter.hit("pin:1.2.3.4", 3, 60, now=130.0)
    assert allowed is False
    assert retry_after == 30

    # 다른 키는 별도 카운트
    assert limiter.hit("pin:5.6.7.8", 3, 60, now=130.0)[0] is True
    # 윈도우가 지나면 다시 허용
    assert limiter.hit("pin:1.2.3.4", 3, 60, now=160.0)[0] is True


def test_limiter_reset():
    limiter = RateLimiter()
    limiter.hit("login:x", 1, 60, now=0.0)
    assert limiter.hit("login:x", 1, 60, now=1.0)[0] is False

    limiter.reset()
    assert limiter.hit("login:x", 1, 60, now=2.0)[0] is True


# ===== 엔드포인트 =====

def test_share_pin_guessing_is_throttled(auth_client, monkeypatch):
    monkeypatch.setattr(settings, "pin_rate_limit", 3)
    token = create_pin_link(auth_client)

    statuses = [
        auth_client.post(f"/api/shared/{token}/verify", json={"pin": f"{pin:04d}"}).status_code
        for pin in range(3)
    ]
    assert statuses == [401, 401, 401]

    # 맞는 PIN이어도 제한 중에는 거부
    blocked = auth_client.post(f"/api/shared/{token}/verify", json={"pin": "1234"})
    assert blocked.status_code == 429
    assert blocked.json() == {"error": "Muitas tentativas. Aguarde um pouco e tente novamente."}
    assert int(blocked.headers["retry-after"]) >= 1


def test_default_pin_limit_stops_long_guessing_runs(auth_client):
    token = create_pin_link(auth_client)

    statuses = {
        auth_client.post(f"/api/shared/{token}/verify", json={"pin": f"{pin:04d}"}).status_code
        for pin in range(60)
    }
    assert statuses == {401, 429}


def test_login_is_throttled(client):
    client.post("/api/auth/register", json=USER)

    statuses = [
        client.post("/api/auth/login", json={"email": USER["email"], "password": "errada123"}).status_code
        for _ in range(settings.login_rate_limit)
    ]
    assert set(statuses) == {401}

    blocked = client.post("/api/auth/login", json={"email": USER["email"], "password": USER["password"]})
    assert blocked.status_code == 429


def test_register_is_throttled(client):
    for i in range(settings.register_rate_limit):
        response = client.post("/api/auth/register", json={**USER, "email": f"pessoa{i}@famli.me"})
        assert response.status_code == 201

    response = client.post("/api/auth/register", json={**USER, "email": "mais.uma@famli.me"}, headers={"Accept-Language": "en"})
    assert response.status_code == 429
    assert response.json() == {"error": "Too many attempts. Please wait and try again."}


def test_limits_can_be_disabled(auth_client, monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_enabled", False)
    monkeypatch.setattr(settings, "pin_rate_limit", 1)
    token = create_pin_link(auth_client)

    statuses = {auth_client.post(f"/api/shared/{token}/verify", json={"pin": "0000"}).status_code for _ in range(5)}
    assert statuses == {401}


def test_forged_forwarded_for_does_not_evade_limit(auth_client, monkeypatch):
    monkeypatch.setattr(settings, "pin_rate_limit", 2)
    token = create_pin_link(auth_client)

    statuses = [
        auth_client.post(
            f"/api/shared/{token}/verify",
            json={"pin": "0000"},
            headers={"X-Forwarded-For": f"198.51.100.{i}"}
        ).status_code
        for i in range(3)
    ]
    assert statuses == [401, 401, 429]


def test_trusted_proxy_limits_per_forwarded_ip(auth_client, monkeypatch):
    monkeypatch.setattr(settings, "trust_forwarded_for", True)
    monkeypatch.setattr(settings, "pin_rate_limit", 1)
    token = create_pin_link(auth_client)

    first = auth_client.post(f"/api/shared/{token}/verify", json={"pin": "0000"}, headers={"X-Forwarded-For": "198.51.100.1"})
    second = auth_client.post(f"/api/shared/{token}/verify", json={"pin": "0000"}, headers={"X-Forwarded-For": "198.51.100.2"})
    again = auth_client.post(f"/api/shared/{token}/verify", json={"pin": "0000"}, headers={"X-Forwarded-For": "198.51.100.1"})

    assert [first.status_code, second.status_code, again.status_code] == [401, 401, 429]


# ===== 클라이언트 IP =====

def test_client_ip_ignores_proxy_headers_by_default():
    request = make_request({"X-Forwarded-For": "203.0.113.9, 10.0.0.2", "X-Real-IP": "203.0.113.10"})
    assert get_client_ip(request) == "10.0.0.1"


def test_client_ip_uses_proxy_headers_when_trusted():
    forwarded = make_request({"X-Forwarded-For": "203.0.113.9, 10.0.0.2"})
    real_ip = make_request({"X-Real-IP": "203.0.113.10"})

    assert get_client_ip(forwarded, trust_forwarded_for=True) == "203.0.113.9"
    assert get_client_ip(real_ip, trust_forwarded_for=True) == "203.0.113.10"
    assert get_client_ip(make_request({}), trust_forwarded_for=True) == "10.0.0.1"


def test_share_access_records_socket_ip_not_forged_header(auth_client, db_session):
    token = auth_client.post("/api/share/links", json={}).json()["token"]

    response = auth_client.get(f"/api/shared/{token}", headers={"X-Forwarded-For": "203.0.113.9"})
    assert response.status_code == 200

    access = db_session.query(ShareLinkAccess).one()
    assert access.ip_address == "testclient"
