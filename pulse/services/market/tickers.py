"""
티커 디렉토리 서비스
- 티커 -> 회사명 / 카테고리 정적 매핑 (YAML, 시작 시 1회 로딩)
- 카테고리 피어 조회
- 검색 쿼리 확장 ($TSLA OR #TSLA OR TSLA OR Tesla ...)
- Yahoo Finance 회사명 조회 (선택)
"""

import re
import threading
import logging
from pathlib import Path
from typing import Dict, List, Optional, Any
from types import MappingProxyType

import httpx
import yaml

logger = logging.getLogger(__name__)


YAHOO_SEARCH_URL = "https://query1.finance.yahoo.com/v1/finance/search"

# 정규화된 티커 형식 (BRK.B, BTC-USD 등)
TICKER_PATTERN = re.compile(r"[A-Z0-9.\-]+")

# 회사명 접미사 (간단한 이름 추출용)
COMPANY_SUFFIX_PATTERN = re.compile(
    r"\s+(Inc|Corp|Ltd|LLC|Technologies|Holdings|Group|Co)\b",
    re.IGNORECASE,
)


def normalize_ticker(ticker: str) -> str:
    """티커 정규화 (대문자, $ / # 제거)"""
    if not ticker:
        return ""
    return ticker.upper().replace("$", "").replace("#", "").strip()


def is_valid_ticker(ticker: str) -> bool:
    """정규화된 티커가 허용 문자로만 구성되었는지 여부"""
    return bool(ticker) and TICKER_PATTERN.fullmatch(ticker) is not None


def extract_company_names(quote: Dict[str, Any]) -> List[str]:
    """
    Yahoo Finance 검색 결과에서 회사명 추출

    Args:
        quote: quotes[0] 항목

    Returns:
        회사명 목록 (shortname, longname, 접미사 제거 이름)
    """
    shortname = (quote or {}).get("shortname")
    if not shortname:
        return []

    names = [shortname]

    longname = quote.get("longname")
    if longname and longname != shortname:
        names.append(longname)

    simple_name = COMPANY_SUFFIX_PATTERN.split(shortname)[0].strip()
    if simple_name and simple_name != shortname and len(simple_name) > 2:
        names.append(simple_name)

    return names


class TickerDirectory:
    """
    티커 디렉토리

    정적 매핑은 읽기 전용. 동적 조회 결과만 인프로세스 캐시에 저장.
    """

    def __init__(
        self,
        companies: Dict[str, List[str]],
        categories: Dict[str, List[str]],
        lookup_enabled: bool = False,
        lookup_timeout: float = 5.0,
    ):
        self._companies = MappingProxyType({
            normalize_ticker(t): tuple(names or []) for t, names in (companies or {}).items()
        })
        self._categories = MappingProxyType({
            name: tuple(normalize_ticker(t) for t in tickers or [])
            for name, tickers in (categories or {}).items()
        })

        self.lookup_enabled = lookup_enabled
        self.lookup_timeout = lookup_timeout

        self._dynamic_cache: Dict[str, List[str]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_yaml(cls, path: str, **kwargs) -> "TickerDirectory":
        """
        YAML 파일에서 로드

        Args:
            path: companies / categories 섹션을 가진 YAML 경로
        """
        config_path = Path(path)
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        directory = cls(
            companies=data.get("companies", {}),
            categories=data.get("categories", {}),
            **kwargs,
        )
        logger.info(
            f"[TickerDirectory] Loaded {len(directory._companies)} tickers, "
            f"{len(directory._categories)} categories from {config_path}"
        )
        return directory

    # ============================================================
    # Lookups
    # ============================================================

    @property
    def ticker_count(self) -> int:
        return len(self.all_tickers())

    def list_categories(self) -> List[str]:
        """카테고리 목록"""
        return list(self._categories.keys())

    def tickers_in(self, category: str) -> List[str]:
        """카테고리 소속 티커 (대소문자 무시)"""
        for name, tickers in self._categories.items():
            if name.lower() == (category or "").strip().lower():
                return list(tickers)
        return []

    def all_tickers(self) -> List[str]:
        """카테고리에 속한 모든 티커 (중복 제거, 순서 유지)"""
        seen: Dict[str, None] = {}
        for tickers in self._categories.values():
            for ticker in tickers:
                seen.setdefault(ticker, None)
        return list(seen)

    def get_category(self, ticker: str) -> Optional[str]:
        """티커의 (첫 번째) 카테고리"""
        normalized = normalize_ticker(ticker)
        for name, tickers in self._categories.items():
            if normalized in tickers:
                return name
        return None

    def get_peers(self, ticker: str) -> List[str]:
        """같은 카테고리의 다른 티커"""
        category = self.get_category(ticker)
        if not category:
            return []

        normalized = normalize_ticker(ticker)
        return [t for t in self._categories[category] if t != normalized]

    def get_company_names(self, ticker: str) -> List[str]:
        """정적 매핑의 회사명"""
        return list(self._companies.get(normalize_ticker(ticker), ()))

    def build_expanded_query(self, ticker: Optional[str], company_names: Optional[List[str]] = None) -> str:
        """
        확장 검색 쿼리 생성

        Args:
            ticker: 티커 심볼
            company_names: 회사명 (없으면 정적 매핑 사용)

        Returns:
            '$TSLA OR #TSLA OR TSLA OR Tesla OR #Tesla'
        """
        normalized = normalize_ticker(ticker or "")
        if not normalized:
            return ""

        if company_names is None:
            company_names = self.get_company_names(normalized)

        parts = [f"${normalized}", f"#{normalized}", normalized]
        for name in company_names:
            parts.append(name)
            # 한 단어 이름만 해시태그 추가
            if " " not in name:
                parts.append(f"#{name}")

        return " OR ".join(parts)

    # ============================================================
    # Dynamic Lookup
    # ============================================================

    async def resolve_company_names(self, ticker: str) -> List[str]:
        """
        회사명 조회 (정적 매핑 -> 동적 캐시 -> Yahoo Finance)

        조회 결과가 비어 있어도 캐시하여 반복 호출을 막음.
        """
        normalized = normalize_ticker(ticker)
        if not normalized:
            return []

        names = self.get_company_names(normalized)
        if names:
            return names

        with self._lock:
            if normalized in self._dynamic_cache:
                logger.debug(f"[TickerDirectory] Lookup cache hit for {normalized}")
                return list(self._dynamic_cache[normalized])

        if not self.lookup_enabled:
            return []

        names = await self._fetch_from_yahoo(normalized)

        with self._lock:
            self._dynamic_cache[normalized] = names

        if names:
            logger.info(f"[TickerDirectory] Yahoo Finance returned for {normalized}: {names}")
        else:
            logger.info(f"[TickerDirectory] No company name found for {normalized}")

        return list(names)

    async def _fetch_from_yahoo(self, ticker: str) -> List[str]:
        """Yahoo Finance 검색 API 호출 (API 키 불필요)"""
        params = {"q": ticker, "quotesCount": 1, "newsCount": 0}

        try:
            async with httpx.AsyncClient(timeout=self.lookup_timeout) as client:
                response = await client.get(
                    YAHOO_SEARCH_URL,
                    params=params,
                    headers={"User-Agent": "Mozilla/5.0"},
                )
                if response.status_code != 200:
                    logger.info(f"[TickerDirectory] Yahoo lookup HTTP {response.status_code} for {ticker}")
                    return []
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.info(f"[TickerDirectory] Yahoo lookup failed for {ticker}: {e}")
            return []

        quotes = data.get("quotes") or [] if isinstance(data, dict) else []
        return extract_company_names(quotes[0]) if quotes else []


# ============================================================
# Factory
# ============================================================

_directory: Optional[TickerDirectory] = None
_directory_lock = threading.Lock()


def get_ticker_directory() -> TickerDirectory:
    """싱글톤 티커 디렉토리"""
    global _directory

    if _directory is None:
        with _directory_lock:
            if _directory is None:
                from pulse.core.config import settings
                _directory = TickerDirectory.from_yaml(
                    settings.TICKER_CONFIG_PATH,
                    lookup_enabled=settings.ENABLE_TICKER_LOOKUP,
                    lookup_timeout=settings.TICKER_LOOKUP_TIMEOUT,
                )
    return _directory


def reset_ticker_directory():
    """싱글톤 초기화 (테스트/설정 리로드용)"""
    global _directory
    with _directory_lock:
        _directory = None
