"""
전역 설정 관리
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """애플리케이션 전역 설정"""

    # ============================================
    # Application Settings
    # ============================================
    APP_NAME: str = "Pulse Widget Platform"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ============================================
    # Server Settings
    # ============================================
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    APP_RELOAD: bool = True

    # ============================================
    # CORS Settings
    # ============================================
    CORS_ORIGINS: str = "http://localhost:3000"

    # ============================================
    # Cache (Redis optional, in-memory fallback)
    # ============================================
    REDIS_URL: Optional[str] = None
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None
    WIDGET_CACHE_TTL: int = 300  # 5분

    # ============================================
    # Rate Limiting
    # ============================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_WINDOW: int = 3600  # 1시간

    # ============================================
    # Post Source
    # ============================================
    POST_SOURCE: str = "synthetic"  # synthetic, file
    POST_DATA_PATH: str = "data/posts"
    SYNTHETIC_HISTORY_DAYS: int = 4

    # ============================================
    # Ticker Directory
    # ============================================
    TICKER_CONFIG_PATH: str = "configs/tickers.yaml"
    ENABLE_TICKER_LOOKUP: bool = False
    TICKER_LOOKUP_TIMEOUT: float = 5.0

    # ============================================
    # Velocity Engine
    # ============================================
    BASELINE_FALLBACK_DIVISOR: int = 72

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"  # 추가 환경변수 허용

    @property
    def cors_origins(self) -> List[str]:
        """CORS 허용 오리진 목록"""
        origins = [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]
        if "http://localhost:3000" not in origins:
            origins.append("http://localhost:3000")
        return origins


# 싱글톤 인스턴스
settings = Settings()
