# app/config.py
from pydantic_settings import BaseSettings
from pydantic import field_validator

class Settings(BaseSettings):
    """환경변수 설정"""

    # API 기본 설정
    app_name: str = "Famli API"
    debug: bool = False
    environment: str = "development"
    public_base_url: str = ""  # 비어 있으면 요청 호스트로 공유 URL 생성
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "https://famli.me",
        "https://www.famli.me",
    ]

    # Database
    database_url: str = "sqlite:///./famli.db"

    # JWT 세션
    secret_key: str
    algorithm: str = "HS256"
    session_cookie_name: str = "famli_session"
    session_ttl_hours: int = 24          # 이메일/비밀번호 로그인
    oauth_session_ttl_hours: int = 168   # Google/Apple 로그인 (7일)
    session_renew_threshold_hours: int = 6
    trust_forwarded_proto: bool = True   # 프록시의 X-Forwarded-Proto 신뢰 여부
    trust_forwarded_for: bool = False    # 프록시의 X-Forwarded-For / X-Real-IP 신뢰 여부

    # 민감 필드 암호화
    encryption_key: str

    # 비밀번호 해싱
    bcrypt_rounds: int = 12

    # OAuth
    google_client_id: str = ""
    apple_client_id: str = ""
    oauth_timeout_seconds: float = 5.0

    # 관리자 (쉼표 구분)
    admin_emails: str = ""

    # 요청 제한 (IP당, 프로세스 메모리)
    rate_limit_enabled: bool = True
    login_rate_limit: int = 5            # 1분
    register_rate_limit: int = 3         # 1시간
    pin_rate_limit: int = 10             # 1분

    # 로그
    log_dir: str = "logs"

    @field_validator('secret_key')
    def validate_secret_key(cls, v):
        if len(v) < 32:
            raise ValueError('SECRET_KEY는 최소 32자 이상이어야 합니다')
        return v

    @field_validator('encryption_key')
    def validate_encryption_key(cls, v):
        if len(v) < 16:
            raise ValueError('ENCRYPTION_KEY는 최소 16자 이상이어야 합니다')
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    class Config:
        env_file = ".env"
        case_sensitive = False

# 싱글톤 인스턴스
settings = Settings()
