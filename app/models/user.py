# app/models/user.py
from sqlalchemy import Column, String, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from app.database import Base
import uuid

class User(Base):
    """유저 모델"""
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("provider", "provider_id", name="uq_users_provider"),
    )

    # 기본 필드
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, index=True, nullable=False)  # 소문자 정규화
    name = Column(String, nullable=False, default="")
    hashed_password = Column(String, nullable=False, default="")  # 소셜 로그인 유저는 빈 값

    # 소셜 로그인
    provider = Column(String, nullable=False, default="email")  # email, google, apple
    provider_id = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)

    # 선호 언어 (pt-BR, en)
    locale = Column(String, nullable=True)

    # 타임스탬프
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User {self.id}>"
