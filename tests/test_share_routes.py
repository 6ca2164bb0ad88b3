import re
from datetime import datetime, timedelta, timezone

from app.config import settings
from app.models.share import ShareLink


def create_items(client):
    for title, category in [("RG e CPF", "documentos"), ("Senha do Wi-Fi fica na geladeira", "casa")]:
        response = client.post("/api/box/items", json={"title": title, "category": category})
        assert response.status_code == 201


def test_create_link_returns_share_url(auth_client):
    response = auth_client.post("/api/share/links", json={
        "name": "Para a família",
        "type": "memorial",
        "pin": "1234",
        "expires_in_days": 30,
        "max_uses": 5,
    })

    assert response.status_code == 201
    body = response.json()
    assert re.fullmatch(r"[0-9a-f]{32}", body["token"])
    assert body["url"] == f"http://testserver/compartilhado/{body['token']}"
    assert body["has_pin"] is True
    assert body["max_uses"] == 5
    assert body["usage_count"] == 0
    assert body["expires_at"] is not None
    assert "pin_hash" not in body
    assert "1234" not in response.text


def test_share_url_uses_public_base_url(auth_client, monkeypatch):
    monkeypatch.setattr(settings, "public_base_url", "https://famli.me/")

    body = auth_client.post("/api/share/links", json={}).json()

    assert body["url"] == f"https://famli.me/compartilhado/{body['token']}"
    assert body["name"] == "Link de Compartilhamento"


def test_owner_routes_require_session(client):
    assert client.post("/api/share/links", json={}).status_code == 401
    assert client.get("/api/share/links").status_code == 401
    assert client.delete("/api/share/links/abc").status_code == 401


def test_list_and_delete(auth_client, switch_user):
    link_id = auth_client.post("/api/share/links", json={"name": "A"}).json()["id"]

    links = auth_client.get("/api/share/links").json()["links"]
    assert [link["id"] for link in links] == [link_id]

    # 다른 유저는 삭제 불가
    switch_user("pedro@famli.me")
    response = auth_client.delete(f"/api/share/links/{link_id}")
    assert response.status_code == 404
    assert response.json() == {"error": "Link não encontrado."}
    assert auth_client.get("/api/share/links").json()["links"] == []

    auth_client.post("/api/auth/login", json={"email": "maria@famli.me", "password": "senha1234"})
    response = auth_client.delete(f"/api/share/links/{link_id}")
    assert response.status_code == 200
    assert response.json() == {"message": "Link removido com sucesso."}
    assert auth_client.get("/api/share/links").json()["links"] == []


def test_public_access_with_categories(auth_client):
    create_items(auth_client)
    token = auth_client.post("/api/share/links", json={"categories": ["documentos"]}).json()["token"]

    auth_client.cookies.clear()
    response = auth_client.get(f"/api/shared/{token}")

    assert response.status_code == 200
    body = response.json()
    assert body["requires_pin"] is False
    assert body["type"] == "normal"
    assert body["owner_name"] == "Maria Silva"
    assert [item["title"] for item in body["items"]] == ["RG e CPF"]
    assert body["guardians"] == []
    assert body["owner_email"] is None

    auth_client.post("/api/auth/login", json={"email": "maria@famli.me", "password": "senha1234"})
    link = auth_client.get("/api/share/links").json()["links"][0]
    assert link["usage_count"] == 1
    assert link["access_count"] == 1


def test_memorial_access(auth_client):
    create_items(auth_client)
    auth_client.post("/api/guardians", json={"name": "Ana", "email": "ana@famli.me", "pin": "9876"})
    token = auth_client.post("/api/share/links", json={"type": "memorial"}).json()["token"]

    body = auth_client.get(f"/api/shared/{token}").json()

    assert body["owner_email"] == "maria@famli.me"
    assert body["guardians"] == [{"name": "Ana", "email": "ana@famli.me", "phone": None, "relationship": None}]
    assert body["message"].startswith("Este é o memorial de Maria Silva")
    assert len(body["items"]) == 2


def test_pin_flow(auth_client, db_session):
    create_items(auth_client)
    created = auth_client.post("/api/share/links", json={"pin": "1234"}).json()
    token = created["token"]
    auth_client.cookies.clear()

    locked = auth_client.get(f"/api/shared/{token}")
    assert locked.status_code == 200
    assert locked.json()["requires_pin"] is True
    assert locked.json()["items"] == []

    wrong = auth_client.post(f"/api/shared/{token}/verify", json={"pin": "0000"})
    assert wrong.status_code == 401
    assert wrong.json() == {"error": "PIN incorreto."}

    ok = auth_client.post(f"/api/shared/{token}/verify", json={"pin": "1234"})
    assert ok.status_code == 200
    assert len(ok.json()["items"]) == 2

    link = db_session.query(ShareLink).filter(ShareLink.token == token).one()
    db_session.refresh(link)
    assert link.usage_count == 1


def test_exhausted_expired_and_unknown_links_answer_404(auth_client, db_session):
    exhausted = auth_client.post("/api/share/links", json={"max_uses": 1}).json()["token"]
    expired = auth_client.post("/api/share/links", json={"expires_in_days": 1}).json()["token"]

    link = db_session.query(ShareLink).filter(ShareLink.token == expired).one()
    link.expires_at = datetime.now(timezone.utc) - timedelta(hours=1)
    db_session.commit()

    assert auth_client.get(f"/api/shared/{exhausted}").status_code == 200

    responses = [
        auth_client.get(f"/api/shared/{exhausted}"),
        auth_client.get(f"/api/shared/{expired}"),
        auth_client.get(f"/api/shared/{'f' * 32}"),
        auth_client.post(f"/api/shared/{expired}/verify", json={"pin": "1234"}),
    ]
    assert {r.status_code for r in responses} == {404}
    assert {r.json()["error"] for r in responses} == {"Este link expirou ou não está mais disponível."}


def test_error_messages_follow_accept_language(client):
    response = client.get(f"/api/shared/{'a' * 32}", headers={"Accept-Language": "en-US,en;q=0.9"})
    assert response.status_code == 404
    assert response.json() == {"error": "This link has expired or is no longer available."}
