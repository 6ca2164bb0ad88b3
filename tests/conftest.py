import os
import tempfile

# 앱 import 전에 테스트용 환경변수 설정
os.environ["SECRET_KEY"] = "test-secret-key-for-famli-sessions-0123456789"
os.environ["ENCRYPTION_KEY"] = "test-encryption-key-famli"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["ADMIN_EMAILS"] = ""
os.environ["GOOGLE_CLIENT_ID"] = ""
os.environ["APPLE_CLIENT_ID"] = ""
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="famli-logs-")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from app.api.deps import get_apple_verifier, get_cipher, get_google_verifier
from app.core.crypto import FieldCipher
from app.core.rate_limit import rate_limiter
from app.core.security import hash_password
from app.database import Base, get_db
from app.services.oauth_service import OAuthVerificationError
from app.services.store import Store

USER_PASSWORD = "senha1234"


class FakeVerifier:
    """네트워크 없이 정해진 결과를 돌려주는 검증기"""

    def __init__(self, provider: str, identity=None, configured: bool = True):
        self.provider = provider
        self.identity = identity
        self._configured = configured
        self.tokens = []

    @property
    def configured(self) -> bool:
        return self._configured

    async def verify(self, id_token: str, name: str = ""):
        self.tokens.append(id_token)
        if self.identity is None:
            raise OAuthVerificationError("rejected")
        return self.identity


@pytest.fixture(autouse=True)
def reset_rate_limits():
    # 테스트 클라이언트는 모두 같은 IP (testclient)
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture(scope="session")
def cipher():
    # Argon2 키 유도가 느리므로 세션당 한 번만
    return FieldCipher.create(os.environ["ENCRYPTION_KEY"])


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def store(db_session, cipher):
    return Store(db_session, cipher)


@pytest.fixture
def owner(store):
    return store.create_user("maria@famli.me", "Maria Silva", hash_password(USER_PASSWORD))


@pytest.fixture
def verifiers():
    return {
        "google": FakeVerifier("google", configured=False),
        "apple": FakeVerifier("apple", configured=False),
    }


@pytest.fixture
def client(db_session, cipher, verifiers):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cipher] = lambda: cipher
    app.dependency_overrides[get_google_verifier] = lambda: verifiers["google"]
    app.dependency_overrides[get_apple_verifier] = lambda: verifiers["apple"]

    # startup 이벤트는 실행하지 않음 (with 블록 미사용)
    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_client(client):
    """가입 후 세션 쿠키를 가진 클라이언트"""
    response = client.post("/api/auth/register", json={
        "email": "maria@famli.me",
        "name": "Maria Silva",
        "password": USER_PASSWORD,
    })
    assert response.status_code == 201
    return client


@pytest.fixture
def switch_user(client):
    """다른 유저로 가입해서 세션 전환"""
    def _switch(email: str, name: str = "Outra Pessoa"):
        client.cookies.clear()
        response = client.post("/api/auth/register", json={
            "email": email,
            "name": name,
            "password": USER_PASSWORD,
        })
        assert response.status_code == 201
        return response.json()["user"]
    return _switch
