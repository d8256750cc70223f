"""
Tickers API
티커 디렉토리 조회 엔드포인트
"""

from fastapi import APIRouter, HTTPException
import logging

from pulse.services.market.tickers import get_ticker_directory, is_valid_ticker, normalize_ticker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tickers")


@router.get("/{ticker}")
async def get_ticker_info(ticker: str):
    """
    티커 정보 조회

    Args:
        ticker: 티커 심볼 ($, # 허용)

    Returns:
        정규화 티커, 카테고리, 피어, 회사명, 확장 검색 쿼리
    """
    symbol = normalize_ticker(ticker)
    if not is_valid_ticker(symbol):
        raise HTTPException(status_code=400, detail="Invalid ticker")

    directory = get_ticker_directory()
    company_names = await directory.resolve_company_names(symbol)

    return {
        "ticker": symbol,
        "category": directory.get_category(symbol),
        "peers": directory.get_peers(symbol),
        "company_names": company_names,
        "expanded_query": directory.build_expanded_query(symbol, company_names),
    }
