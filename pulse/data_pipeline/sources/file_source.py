"""
File Post Source
Twitter 내보내기 파일(JSON/CSV)에서 포스트 로드

파일 위치: <data_dir>/<TICKER>.json 또는 <data_dir>/<TICKER>.csv

JSON 형식:
- 객체 리스트
- {"results": [...]} 래퍼

CSV 형식:
- 헤더 행 필수
- 따옴표 필드 내 줄바꿈, 이스케이프된 따옴표("") 지원
- 참여 지표 컬럼(likeCount 등)은 정수 변환 (실패 시 0)
"""
import csv
import io
import json
import logging
from pathlib import Path
from typing import List, Dict, Any, Optional

from .base import PostSource, PostSourceError
from ..domain.models import PostRecord
from pulse.services.market.tickers import is_valid_ticker, normalize_ticker

logger = logging.getLogger(__name__)

# 정수로 변환할 참여 지표 컬럼
COUNT_COLUMNS = (
    "likeCount",
    "retweetCount",
    "replyCount",
    "quoteCount",
    "viewCount",
    "bookmarkCount",
)


def _to_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def parse_csv_rows(content: str) -> List[Dict[str, Any]]:
    """
    CSV 텍스트를 행 딕셔너리 리스트로 변환

    Args:
        content: 헤더 행을 포함한 CSV 텍스트

    Returns:
        행 리스트 (빈 행 제외)
    """
    reader = csv.DictReader(io.StringIO(content, newline=""))
    rows = []

    for row in reader:
        # 값이 모두 비어 있는 행 건너뜀
        if not any((v or "").strip() for v in row.values() if isinstance(v, str)):
            continue

        record: Dict[str, Any] = {
            (k or "").strip(): (v.strip() if isinstance(v, str) else v)
            for k, v in row.items()
            if k
        }
        for column in COUNT_COLUMNS:
            if column in record:
                record[column] = _to_int(record[column])

        rows.append(record)

    return rows


def parse_json_rows(content: str) -> List[Dict[str, Any]]:
    """JSON 텍스트를 행 딕셔너리 리스트로 변환"""
    data = json.loads(content)

    if isinstance(data, dict):
        data = data.get("results", [])

    if not isinstance(data, list):
        raise ValueError(f"Expected a list of posts, got {type(data).__name__}")

    return [row for row in data if isinstance(row, dict)]


class FilePostSource(PostSource):
    """디렉토리 기반 파일 포스트 소스"""

    name = "file"

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)

    def find_file(self, ticker: str) -> Optional[Path]:
        """티커 파일 경로 (JSON 우선, 잘못된 티커는 None)"""
        symbol = normalize_ticker(ticker)
        if not is_valid_ticker(symbol):
            logger.warning(f"[{self.name}] Rejected ticker: {ticker!r}")
            return None

        for suffix in (".json", ".csv"):
            path = self.data_dir / f"{symbol}{suffix}"
            if path.is_file():
                return path
        return None

    async def fetch_posts(self, ticker: str) -> List[PostRecord]:
        path = self.find_file(ticker)
        if path is None:
            logger.debug(f"[{self.name}] No export file for {ticker} in {self.data_dir}")
            return []

        return self.read_file(path)

    def read_file(self, path: Path) -> List[PostRecord]:
        """
        내보내기 파일 1개 로드 (.json 외에는 CSV로 파싱)

        Raises:
            PostSourceError: 파일이 없거나 읽을 수 없음
        """
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8-sig")
            if path.suffix.lower() == ".json":
                rows = parse_json_rows(content)
            else:
                rows = parse_csv_rows(content)
        except (OSError, UnicodeDecodeError, ValueError, csv.Error) as e:
            raise PostSourceError(self.name, f"Cannot read {path.name}: {e}") from e

        return [PostRecord.from_raw(row) for row in rows]
