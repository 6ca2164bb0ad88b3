# app/core/logging_middleware.py
import secrets
import time

from fastapi import Request

from app.core.logger import logger

REQUEST_ID_HEADER = "X-Request-ID"

def mask_path(path: str) -> str:
    """공유 토큰이 로그에 남지 않도록 경로 축약"""
    if path.startswith("/api/shared/"):
        suffix = "/verify" if path.endswith("/verify") else ""
        return f"/api/shared/<token>{suffix}"
    return path

async def log_requests(request: Request, call_next):
    """요청/응답 로깅 (요청마다 request_id를 로그 컨텍스트에 묶음)"""
    request_id = request.headers.get(REQUEST_ID_HEADER, "")[:64] or secrets.token_hex(8)
    path = mask_path(request.url.path)
    start_time = time.perf_counter()

    with logger.contextualize(request_id=request_id):
        logger.info(f"➡️  {request.method} {path}")

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"❌ {request.method} {path} "
                f"- Error: {type(e).__name__} "
                f"- Time: {process_time:.2f}ms"
            )
            raise

        process_time = (time.perf_counter() - start_time) * 1000
        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            f"⬅️  {request.method} {path} "
            f"- Status: {response.status_code} "
            f"- Time: {process_time:.2f}ms"
        )

    response.headers[REQUEST_ID_HEADER] = request_id
    return response
