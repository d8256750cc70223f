"""
Widget Cache Service - Production Grade v1.0
위젯 응답 캐시

Features:
    - 인메모리 TTL 캐시 (지연 만료)
    - Redis 백엔드 (REDIS_URL 설정 및 연결 가능 시)
    - JSON 직렬화
    - 메트릭 추적
    - 헬스체크
    - 백엔드 오류는 캐시 미스로 처리
"""

import redis
import json
import hashlib
import threading
import time
from typing import Optional, Any, Dict, Callable, Tuple
from dataclasses import dataclass, field
import os
import logging

logger = logging.getLogger(__name__)


DEFAULT_TTL = 300  # 5분


# ============================================================
# Config & Metrics
# ============================================================

@dataclass
class CacheConfig:
    """캐시 설정"""
    redis_url: Optional[str] = None
    db: int = 0
    password: Optional[str] = None
    default_ttl: int = DEFAULT_TTL
    max_connections: int = 50
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> 'CacheConfig':
        """환경변수에서 로드"""
        return cls(
            redis_url=os.getenv("REDIS_URL") or None,
            db=int(os.getenv("REDIS_DB", "0")),
            password=os.getenv("REDIS_PASSWORD") or None,
            default_ttl=int(os.getenv("WIDGET_CACHE_TTL", str(DEFAULT_TTL))),
        )


@dataclass
class CacheMetrics:
    """캐시 메트릭"""
    hits: int = 0
    misses: int = 0
    writes: int = 0
    deletes: int = 0
    errors: int = 0
    start_time: float = field(default_factory=time.time)

    @property
    def hit_rate(self) -> float:
        """캐시 히트율 (%)"""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hits': self.hits,
            'misses': self.misses,
            'writes': self.writes,
            'deletes': self.deletes,
            'errors': self.errors,
            'hit_rate': round(self.hit_rate, 2),
            'uptime_seconds': round(time.time() - self.start_time, 0),
        }


class CacheSerializer:
    """캐시 직렬화 (JSON)"""

    @staticmethod
    def serialize(value: Any) -> str:
        return json.dumps(value, ensure_ascii=False, default=str)

    @staticmethod
    def deserialize(data: Optional[str]) -> Any:
        if not data:
            return None
        return json.loads(data)


# ============================================================
# In-memory TTL Cache
# ============================================================

class TTLCache:
    """
    인메모리 TTL 캐시

    만료된 엔트리는 조회 시점에 제거됨 (지연 만료).
    set() 시 cleanup_interval마다 만료 엔트리를 일괄 정리함.
    """

    def __init__(
        self,
        default_ttl: int = DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
        cleanup_interval: float = 60,
    ):
        self.default_ttl = default_ttl
        self.cleanup_interval = cleanup_interval
        self._last_cleanup = 0.0
        self.metrics = CacheMetrics()
        self._clock = clock
        self._store: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """캐시 조회 (만료 시 None)"""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self.metrics.misses += 1
                return None

            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._store[key]
                self.metrics.misses += 1
                return None

            self.metrics.hits += 1
            return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """캐시 저장"""
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()
        with self._lock:
            if now - self._last_cleanup >= self.cleanup_interval:
                self._purge(now)
            self._store[key] = (value, now + ttl)
            self.metrics.writes += 1
        return True

    def delete(self, key: str) -> bool:
        """캐시 삭제"""
        with self._lock:
            removed = self._store.pop(key, None) is not None
            if removed:
                self.metrics.deletes += 1
            return removed

    def get_or_set(self, key: str, factory: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """캐시에서 가져오거나 없으면 생성하여 저장"""
        value = self.get(key)
        if value is not None:
            return value

        value = factory()
        self.set(key, value, ttl)
        return value

    def purge_expired(self) -> int:
        """만료 엔트리 일괄 삭제, 삭제 수 반환"""
        with self._lock:
            return self._purge(self._clock())

    def _purge(self, now: float) -> int:
        """만료 엔트리 삭제 (락 보유 상태에서 호출)"""
        expired = [k for k, (_, expires_at) in self._store.items() if now >= expires_at]
        for key in expired:
            del self._store[key]
        self._last_cleanup = now
        return len(expired)

    def clear(self):
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


# ============================================================
# Cache Client
# ============================================================

class CacheClient:
    """
    위젯 캐시 클라이언트

    Features:
        - 싱글톤 패턴
        - Redis 우선, 불가 시 인메모리 TTLCache
        - 자동 직렬화
        - 메트릭 추적
        - 폴백 처리
    """

    _instance: Optional['CacheClient'] = None
    _lock = threading.Lock()

    def __new__(cls, config: Optional[CacheConfig] = None):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config: Optional[CacheConfig] = None):
        if hasattr(self, 'initialized'):
            return

        self.config = config or CacheConfig.from_env()
        self.metrics = CacheMetrics()
        self.client: Optional[redis.Redis] = None
        self.memory = TTLCache(default_ttl=self.config.default_ttl)
        self.available = False

        if self.config.redis_url:
            self._connect()
        else:
            logger.info("[Cache] REDIS_URL not set, using in-memory cache")

        self.initialized = True

    @classmethod
    def reset(cls):
        """싱글톤 초기화 (테스트용)"""
        with cls._lock:
            if cls._instance is not None:
                cls._instance.close()
            cls._instance = None

    @property
    def backend(self) -> str:
        return "redis" if self.available else "memory"

    def _connect(self):
        """Redis 연결"""
        try:
            self.client = redis.Redis.from_url(
                self.config.redis_url,
                db=self.config.db,
                password=self.config.password,
                decode_responses=True,
                socket_timeout=self.config.socket_timeout,
                socket_connect_timeout=self.config.socket_connect_timeout,
                max_connections=self.config.max_connections,
            )

            # 연결 테스트
            self.client.ping()
            self.available = True
            logger.info(f"[Cache] Redis connected: {self.config.redis_url}")

        except redis.RedisError as e:
            logger.warning(f"[Cache] Redis unavailable, falling back to memory: {e}")
            self.client = None
            self.available = False

    def _make_key(self, prefix: str, data: Any) -> str:
        """캐시 키 생성"""
        if isinstance(data, str):
            hash_input = data
        else:
            hash_input = json.dumps(data, sort_keys=True, default=str)

        hash_str = hashlib.md5(hash_input.encode()).hexdigest()[:16]
        return f"{prefix}:{hash_str}"

    def get(self, key: Any, prefix: str = "cache") -> Optional[Any]:
        """
        캐시 조회

        Args:
            key: 캐시 키 또는 키 데이터
            prefix: 키 접두사

        Returns:
            캐시된 값 또는 None
        """
        full_key = self._make_key(prefix, key)

        if not self.available:
            value = self.memory.get(full_key)
        else:
            try:
                value = CacheSerializer.deserialize(self.client.get(full_key))
            except (redis.RedisError, ValueError) as e:
                self.metrics.errors += 1
                logger.warning(f"[Cache] get error: {e}")
                value = None

        if value is None:
            self.metrics.misses += 1
        else:
            self.metrics.hits += 1
        return value

    def set(self, key: Any, value: Any, prefix: str = "cache", ttl: Optional[int] = None) -> bool:
        """
        캐시 저장

        Args:
            key: 캐시 키 또는 키 데이터
            value: 저장할 값 (JSON 직렬화 가능)
            prefix: 키 접두사
            ttl: TTL (초)

        Returns:
            성공 여부
        """
        full_key = self._make_key(prefix, key)
        ttl = self.config.default_ttl if ttl is None else ttl

        # TTL 0 이하는 캐싱 비활성화
        if ttl <= 0:
            return False

        if not self.available:
            self.memory.set(full_key, value, ttl)
            self.metrics.writes += 1
            return True

        try:
            self.client.setex(full_key, ttl, CacheSerializer.serialize(value))
            self.metrics.writes += 1
            return True

        except (redis.RedisError, TypeError, ValueError) as e:
            self.metrics.errors += 1
            logger.warning(f"[Cache] set error: {e}")
            return False

    def delete(self, key: Any, prefix: str = "cache") -> bool:
        """캐시 삭제"""
        full_key = self._make_key(prefix, key)

        if not self.available:
            removed = self.memory.delete(full_key)
        else:
            try:
                removed = bool(self.client.delete(full_key))
            except redis.RedisError as e:
                self.metrics.errors += 1
                logger.warning(f"[Cache] delete error: {e}")
                return False

        if removed:
            self.metrics.deletes += 1
        return removed

    def get_or_set(
        self,
        key: Any,
        factory: Callable[[], Any],
        prefix: str = "cache",
        ttl: Optional[int] = None
    ) -> Any:
        """캐시에서 가져오거나 없으면 생성하여 저장"""
        value = self.get(key, prefix)

        if value is not None:
            return value

        value = factory()
        self.set(key, value, prefix, ttl)
        return value

    def health_check(self) -> Dict[str, Any]:
        """헬스체크"""
        if not self.available:
            return {
                'status': 'healthy',
                'backend': 'memory',
                'entries': len(self.memory),
                'metrics': self.metrics.to_dict()
            }

        try:
            start = time.time()
            self.client.ping()
            latency = (time.time() - start) * 1000

            return {
                'status': 'healthy',
                'backend': 'redis',
                'latency_ms': round(latency, 2),
                'metrics': self.metrics.to_dict()
            }

        except redis.RedisError as e:
            return {
                'status': 'unhealthy',
                'backend': 'redis',
                'error': str(e),
                'metrics': self.metrics.to_dict()
            }

    def close(self):
        """연결 종료"""
        if self.client:
            self.client.close()
            logger.info("[Cache] Redis connection closed")


# ============================================================
# Helpers
# ============================================================

def widget_cache_key(widget_id: str, params: Dict[str, Any]) -> str:
    """위젯 캐시 키: finance:<widget>:<정렬된 파라미터 JSON>"""
    return f"finance:{widget_id}:{json.dumps(params, sort_keys=True, default=str)}"


def get_cache_client() -> CacheClient:
    """싱글톤 캐시 클라이언트"""
    return CacheClient()
