"""
Post Source Base Class
티커별 소셜 포스트를 공급하는 추상 클래스
"""
from abc import ABC, abstractmethod
from typing import List
import logging
import time

from ..domain.models import PostRecord

logger = logging.getLogger(__name__)


class PostSourceError(Exception):
    """포스트 소스에 접근할 수 없거나 데이터를 읽을 수 없음"""

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"[{source}] {message}")


class PostSource(ABC):
    """포스트 소스 베이스 클래스"""

    name: str = "base"

    @abstractmethod
    async def fetch_posts(self, ticker: str) -> List[PostRecord]:
        """티커의 포스트 조회 (여러 날짜 포함 가능)"""
        pass

    async def run(self, ticker: str) -> List[PostRecord]:
        """
        포스트 조회 실행 및 결과 반환

        Args:
            ticker: 정규화된 티커

        Returns:
            PostRecord 리스트

        Raises:
            PostSourceError: 소스 접근 실패
        """
        logger.debug(f"[{self.name}] Fetching posts for {ticker}")
        start = time.time()

        try:
            posts = await self.fetch_posts(ticker)
        except PostSourceError:
            raise
        except Exception as e:
            logger.error(f"[{self.name}] Failed to fetch posts for {ticker}: {e}", exc_info=True)
            raise PostSourceError(self.name, str(e)) from e

        elapsed = (time.time() - start) * 1000
        logger.info(f"[{self.name}] {ticker}: {len(posts)} posts ({elapsed:.1f}ms)")

        return posts
