"""
Pulse Security Module
보안 헤더, 슬라이딩 윈도우 Rate Limiting
"""

import math
import os
import time
import threading
import logging
from collections import deque
from typing import Deque, Dict, Optional, Tuple

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)


# ============================================
# Client IP
# ============================================

def get_client_ip(request: Request) -> str:
    """
    클라이언트 IP 추출

    X-Forwarded-For 첫 번째 값 -> X-Real-IP -> 연결 피어 순서
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return request.client.host if request.client else "unknown"


# ============================================
# Sliding Window Rate Limiter
# ============================================

class SlidingWindowRateLimiter:
    """
    슬라이딩 윈도우 Rate Limiter

    키별 요청 시각을 보관하고 윈도우를 벗어난 항목은
    해당 키 조회 시 제거. 빈 키는 cleanup_interval마다 일괄 정리.
    """

    def __init__(self, max_requests: int = 100, window_seconds: int = 3600, cleanup_interval: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.cleanup_interval = cleanup_interval
        self._requests: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_cleanup = 0.0

    def check(self, key: str, now: Optional[float] = None) -> Tuple[bool, int]:
        """
        요청 허용 여부 확인 및 기록

        Args:
            key: 클라이언트 키 (IP 등)
            now: 현재 시각 (epoch 초, 기본값: time.time())

        Returns:
            (허용 여부, 남은 요청 수)
        """
        now = time.time() if now is None else now
        cutoff = now - self.window_seconds

        with self._lock:
            self._cleanup(now)

            timestamps = self._requests.setdefault(key, deque())
            while timestamps and timestamps[0] <= cutoff:
                timestamps.popleft()

            if len(timestamps) >= self.max_requests:
                return False, 0

            timestamps.append(now)
            return True, self.max_requests - len(timestamps)

    def retry_after(self, key: str, now: Optional[float] = None) -> int:
        """다음 요청 가능까지 남은 초"""
        now = time.time() if now is None else now
        with self._lock:
            timestamps = self._requests.get(key)
            if not timestamps:
                return 0
            return max(1, math.ceil(timestamps[0] + self.window_seconds - now))

    def reset(self, key: Optional[str] = None):
        """키(또는 전체) 기록 삭제"""
        with self._lock:
            if key is None:
                self._requests.clear()
            else:
                self._requests.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._requests)

    def _cleanup(self, now: float):
        """오래된 항목 정리 (락 보유 상태에서 호출)"""
        if now - self._last_cleanup < self.cleanup_interval:
            return

        cutoff = now - self.window_seconds
        for key in list(self._requests.keys()):
            timestamps = self._requests[key]
            while timestamps and timestamps[0] <= cutoff:
                timestamps.popleft()
            if not timestamps:
                del self._requests[key]

        self._last_cleanup = now


# ============================================
# Rate Limiting Middleware
# ============================================

class RateLimitMiddleware(BaseHTTPMiddleware):
    """IP별 Rate Limiting (/api/ 경로만 적용)"""

    def __init__(self, app, max_requests: int = 100, window_seconds: int = 3600, enabled: bool = True):
        super().__init__(app)
        self.enabled = enabled
        self.limiter = SlidingWindowRateLimiter(max_requests, window_seconds)

    async def dispatch(self, request: Request, call_next) -> Response:
        if not self.enabled or not request.url.path.startswith("/api/"):
            return await call_next(request)

        client_ip = get_client_ip(request)
        allowed, remaining = self.limiter.check(client_ip)

        if not allowed:
            retry_after = self.limiter.retry_after(client_ip)
            logger.warning(f"⚠️ Rate limit exceeded for IP: {client_ip}")
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "error": "Rate limit exceeded. Please try again later.",
                    "retry_after": retry_after,
                },
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(self.limiter.max_requests),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(self.limiter.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)

        return response


# ============================================
# Security Headers Middleware
# ============================================

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """보안 헤더 추가 미들웨어"""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        # HSTS (프로덕션에서만)
        if os.getenv("ENVIRONMENT", "development") == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
