from datetime import datetime, timedelta, timezone

import pytest
from fastapi import Response
from jose import jwt
from starlette.requests import Request

from app.core.errors import Unauthorized
from app.core.session import SessionIssuer

SECRET_A = "secret-a-for-session-tests-0123456789abcdef"
SECRET_B = "secret-b-for-session-tests-0123456789abcdef"


def make_request(scheme: str = "http", headers: dict | None = None) -> Request:
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({
        "type": "http",
        "method": "GET",
        "scheme": scheme,
        "path": "/",
        "query_string": b"",
        "server": ("famli.me", 443 if scheme == "https" else 80),
        "headers": raw_headers,
    })


def set_cookie_header(issuer: SessionIssuer, request: Request) -> str:
    response = Response()
    issuer.set_cookie(response, request, issuer.issue("usr_1", "maria@famli.me"))
    return response.headers["set-cookie"]


def test_issue_and_validate():
    issuer = SessionIssuer(SECRET_A)
    session = issuer.issue("usr_1", "maria@famli.me")

    claims = issuer.validate(session.token)

    assert claims.user_id == "usr_1"
    assert claims.email == "maria@famli.me"
    assert claims.jti
    assert session.max_age == 24 * 3600
    assert abs((claims.expires_at - session.expires_at).total_seconds()) < 1


def test_claims_contain_standard_fields():
    session = SessionIssuer(SECRET_A).issue("usr_1")
    payload = jwt.get_unverified_claims(session.token)

    assert payload["sub"] == "usr_1"
    assert payload["nbf"] == payload["iat"]
    assert payload["exp"] - payload["iat"] == 24 * 3600
    assert "email" not in payload


def test_jti_is_unique_per_session():
    issuer = SessionIssuer(SECRET_A)
    jtis = {issuer.validate(issuer.issue("usr_1").token).jti for _ in range(20)}
    assert len(jtis) == 20


def test_custom_ttl():
    session = SessionIssuer(SECRET_A).issue("usr_1", ttl=timedelta(days=7))
    assert session.max_age == 7 * 24 * 3600


def test_token_from_other_secret_is_rejected():
    token = SessionIssuer(SECRET_A).issue("usr_1").token

    with pytest.raises(Unauthorized) as exc_info:
        SessionIssuer(SECRET_B).validate(token)

    assert exc_info.value.status_code == 401
    assert exc_info.value.message_key == "auth.session_invalid"


def test_expired_token_with_valid_signature_is_rejected():
    past = datetime.now(timezone.utc) - timedelta(minutes=5)
    token = jwt.encode(
        {"sub": "usr_1", "iat": int(past.timestamp()) - 60, "exp": int(past.timestamp())},
        SECRET_A,
        algorithm="HS256",
    )

    with pytest.raises(Unauthorized) as exc_info:
        SessionIssuer(SECRET_A).validate(token)

    assert exc_info.value.message_key == "auth.session_expired"


@pytest.mark.parametrize("token", [None, ""])
def test_missing_token(token):
    with pytest.raises(Unauthorized) as exc_info:
        SessionIssuer(SECRET_A).validate(token)
    assert exc_info.value.message_key == "auth.session_missing"


def test_token_without_subject_is_rejected():
    token = jwt.encode({"exp": int(datetime.now(timezone.utc).timestamp()) + 60}, SECRET_A, algorithm="HS256")
    with pytest.raises(Unauthorized):
        SessionIssuer(SECRET_A).validate(token)


def test_issuers_with_different_secrets_coexist():
    issuer_a = SessionIssuer(SECRET_A)
    issuer_b = SessionIssuer(SECRET_B)

    assert issuer_a.validate(issuer_a.issue("a").token).user_id == "a"
    assert issuer_b.validate(issuer_b.issue("b").token).user_id == "b"


def test_empty_secret_is_not_allowed():
    with pytest.raises(ValueError):
        SessionIssuer("")


def test_cookie_flags_over_plain_http():
    header = set_cookie_header(SessionIssuer(SECRET_A), make_request("http")).lower()

    assert header.startswith("famli_session=")
    assert "httponly" in header
    assert "samesite=lax" in header
    assert "path=/" in header
    assert "max-age=86400" in header
    assert "secure" not in header


def test_cookie_is_secure_over_tls():
    header = set_cookie_header(SessionIssuer(SECRET_A), make_request("https"))
    assert "secure" in header.lower()


def test_forwarded_proto_is_trusted_only_when_enabled():
    request = make_request("http", {"X-Forwarded-Proto": "https"})

    trusted = set_cookie_header(SessionIssuer(SECRET_A), request)
    untrusted = set_cookie_header(SessionIssuer(SECRET_A, trust_forwarded_proto=False), request)

    assert "secure" in trusted.lower()
    assert "secure" not in untrusted.lower()


def test_clear_cookie_expires_immediately():
    response = Response()
    SessionIssuer(SECRET_A).clear_cookie(response, make_request())
    header = response.headers["set-cookie"].lower()

    assert header.startswith('famli_session="";') or header.startswith("famli_session=;")
    assert "max-age=0" in header
    assert "01 jan 1970" in header
