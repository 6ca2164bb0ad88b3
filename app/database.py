# app/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config import settings

IS_SQLITE = settings.database_url.startswith("sqlite")

# SQLite는 스레드 간 커넥션 공유 허용 필요, Postgres는 끊긴 커넥션 감지
engine = create_engine(
    settings.database_url,
    echo=settings.debug,  # SQL 쿼리 로그 출력
    connect_args={"check_same_thread": False} if IS_SQLITE else {},
    pool_pre_ping=not IS_SQLITE,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 모든 모델의 부모
Base = declarative_base()

def init_db():
    """테이블 생성 (운영 환경은 alembic 마이그레이션 사용)"""
    Base.metadata.create_all(bind=engine)

# DB 세션 의존성
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
