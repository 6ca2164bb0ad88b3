# main.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.api.routes import analytics, auth, box, guardians, oauth, share, user_settings
from app.core.crypto import FieldCipher
from app.core.errors import ApiError
from app.core.i18n import get_locale, tr
from app.core.logging_middleware import log_requests
from app.core.logger import logger
from app.database import SessionLocal, init_db
from app.services.store import Store  # 모든 모델을 import하므로 create_all 대상에 등록됨

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug
)

# ===== 로깅 미들웨어 (가장 먼저) =====
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    return await log_requests(request, call_next)

# 요청 크기 제한 미들웨어
MAX_REQUEST_SIZE = 1 * 1024 * 1024

@app.middleware("http")
async def limit_request_size(request: Request, call_next):
    """요청 크기 제한 (JSON API만 제공)"""
    if request.method in ["POST", "PUT", "PATCH"]:
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > MAX_REQUEST_SIZE:
            return JSONResponse(
                status_code=413,
                content={"error": tr(get_locale(request), "common.request_too_large")}
            )
    return await call_next(request)

# CORS 설정 (쿠키 세션이므로 credentials 허용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ===== 오류 응답: {"error": "<번역된 메시지>"} =====
@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": tr(get_locale(request), exc.message_key)},
        headers=exc.headers
    )

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    locale = get_locale(request)
    message = tr(locale, "common.not_found") if exc.status_code == 404 else tr(locale, "common.internal_error")
    return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.debug(f"요청 검증 실패: {request.url.path} ({len(exc.errors())}개 오류)")
    return JSONResponse(
        status_code=400,
        content={"error": tr(get_locale(request), "common.invalid_data")}
    )

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"처리되지 않은 오류: {type(exc).__name__}")
    return JSONResponse(
        status_code=500,
        content={"error": tr(get_locale(request), "common.internal_error")}
    )

# 라우터 등록
app.include_router(auth.router)
app.include_router(oauth.router)
app.include_router(box.router)
app.include_router(guardians.router)
app.include_router(user_settings.router)
app.include_router(share.router)
app.include_router(share.public_router)
app.include_router(share.guardian_access_router)
app.include_router(analytics.router)
app.include_router(analytics.admin_router)

# ===== 시작 / 종료 =====
@app.on_event("startup")
async def startup_event():
    init_db()

    # 저장된 salt로 필드 암호화기 생성 (없으면 새로 만들어 저장)
    db = SessionLocal()
    try:
        salt = Store(db).load_or_create_field_salt()
    finally:
        db.close()
    app.state.cipher = FieldCipher.from_salt(settings.encryption_key, salt)

    logger.info(f"{settings.app_name} 서버 시작 ({settings.environment})")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"{settings.app_name} 서버 종료")

@app.get("/health")
def health_check():
    """헬스체크"""
    return {
        "status": "healthy",
        "service": settings.app_name
    }
