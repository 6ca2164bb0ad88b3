# app/core/rate_limit.py
"""
IP당 요청 제한 (고정 윈도우, 프로세스 메모리)

로그인 / 회원가입 / PIN 확인처럼 추측 공격 대상인 엔드포인트에 의존성으로 건다.
"""
import threading
import time
from typing import Callable

from fastapi import Request

from app.config import settings
from app.core.errors import TooManyRequests
from app.core.logger import audit
from app.core.security import get_client_ip


class RateLimiter:
    """키별 (요청 수, 윈도우 종료 시각)"""

    def __init__(self):
        self._counters: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int, window_seconds: int, now: float | None = None) -> tuple[bool, int]:
        """요청 1회 소비. (허용 여부, 재시도까지 남은 초)"""
        now = time.monotonic() if now is None else now
        with self._lock:
            count, reset_at = self._counters.get(key, (0, now + window_seconds))
            if now >= reset_at:
                count = 0
                reset_at = now + window_seconds
            count += 1
            self._counters[key] = (count, reset_at)

            # 만료된 키 정리
            if len(self._counters) > 10000:
                self._counters = {k: v for k, v in self._counters.items() if v[1] > now}

        return count <= limit, max(int(reset_at - now), 1)

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()


rate_limiter = RateLimiter()


def rate_limit(scope: str, limit: Callable[[], int], window_seconds: int) -> Callable[[Request], None]:
    """IP당 제한 의존성 생성 (limit은 호출 시점의 설정값)"""

    def _dependency(request: Request) -> None:
        if not settings.rate_limit_enabled:
            return

        client_ip = get_client_ip(request) or "unknown"
        allowed, retry_after = rate_limiter.hit(f"{scope}:{client_ip}", limit(), window_seconds)
        if not allowed:
            audit("security.rate_limited", "요청 제한 초과", scope=scope, ip=client_ip)
            raise TooManyRequests("common.rate_limited", headers={"Retry-After": str(retry_after)})

    return _dependency


login_rate_limit = rate_limit("login", lambda: settings.login_rate_limit, window_seconds=60)
register_rate_limit = rate_limit("register", lambda: settings.register_rate_limit, window_seconds=3600)
pin_rate_limit = rate_limit("pin", lambda: settings.pin_rate_limit, window_seconds=60)
