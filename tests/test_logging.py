from app.core.logger import mask_email
from app.core.logging_middleware import mask_path


def test_mask_email():
    assert mask_email("maria@famli.me") == "ma***@famli.me"
    assert mask_email("ab@famli.me") == "***@famli.me"
    assert mask_email(None) == "***"
    assert mask_email("sem-arroba") == "***"


def test_share_tokens_are_masked_in_paths():
    assert mask_path("/api/shared/0123456789abcdef0123456789abcdef") == "/api/shared/<token>"
    assert mask_path("/api/shared/0123456789abcdef0123456789abcdef/verify") == "/api/shared/<token>/verify"
    assert mask_path("/api/share/links") == "/api/share/links"


def test_request_id_header(client):
    generated = client.get("/health")
    assert len(generated.headers["x-request-id"]) == 16

    forwarded = client.get("/health", headers={"X-Request-ID": "req-abc"})
    assert forwarded.headers["x-request-id"] == "req-abc"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nao-existe")
    assert response.status_code == 404
    assert response.json() == {"error": "Recurso não encontrado."}
