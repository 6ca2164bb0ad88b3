# app/core/logger.py
from loguru import logger
import sys
import os

from app.config import settings

# 로그 디렉토리 생성
LOG_DIR = settings.log_dir
os.makedirs(LOG_DIR, exist_ok=True)

# 기본 로거 제거 + 요청 밖 로그의 기본 request_id
logger.remove()
logger.configure(extra={"request_id": "-"})

# 콘솔 출력 (개발용)
logger.add(
    sys.stdout,
    colorize=True,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    level="DEBUG" if settings.debug else "INFO"
)

# 파일 출력 (모든 로그)
logger.add(
    f"{LOG_DIR}/famli.log",
    rotation="10 MB",  # 10MB마다 새 파일
    retention="30 days",  # 30일 보관
    compression="zip",  # 압축
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[request_id]} | {name}:{function}:{line} - {message}",
    level="DEBUG"
)

# 에러 전용 파일
logger.add(
    f"{LOG_DIR}/error.log",
    rotation="10 MB",
    retention="30 days",
    compression="zip",
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[request_id]} | {name}:{function}:{line} - {message}",
    level="ERROR"
)

# 감사 로그 (로그인, 공유 링크 접근 등 보안 이벤트)
logger.add(
    f"{LOG_DIR}/audit.log",
    rotation="10 MB",
    retention="90 days",
    compression="zip",
    format="{time:YYYY-MM-DD HH:mm:ss} | {extra[event]} | {extra[request_id]} | {message}",
    filter=lambda record: record["extra"].get("audit", False),
    level="INFO"
)

audit_logger = logger.bind(audit=True, event="-")


def mask_email(email: str | None) -> str:
    """로그용 이메일 마스킹 (ab***@domain.com)"""
    if not email or len(email) < 5 or "@" not in email:
        return "***"
    at = email.index("@")
    if at <= 2:
        return "***" + email[at:]
    return email[:2] + "***" + email[at:]


def audit(event: str, message: str, **fields) -> None:
    """보안 감사 이벤트 기록"""
    details = " ".join(f"{k}={v}" for k, v in fields.items() if v is not None)
    audit_logger.bind(event=event).info(f"{message} {details}".strip())
