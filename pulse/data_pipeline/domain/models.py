"""
소셜 포스트 데이터 모델
모든 포스트 소스의 데이터를 추상화하는 공통 레코드
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Union
import logging

logger = logging.getLogger(__name__)


# 원시 데이터에서 타임스탬프를 찾는 키 (우선순위 순)
TIMESTAMP_KEYS = ("timestamp", "createdAtDate", "createdAt", "created_at")

# Twitter 원본 형식 - "Tue Jan 13 11:39:04 +0000 2026"
TWITTER_DATE_FORMAT = "%a %b %d %H:%M:%S %z %Y"

# 이 값보다 큰 epoch 숫자는 밀리초로 간주
EPOCH_MILLIS_THRESHOLD = 1e11


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    타임스탬프를 UTC datetime으로 변환

    지원 형식:
        - datetime (naive는 UTC로 간주)
        - ISO-8601 문자열 ("2025-01-01T12:00:00.000Z", 오프셋 포함)
        - Twitter 문자열 ("Tue Jan 13 11:39:04 +0000 2026")
        - epoch 숫자 (초, 또는 밀리초)

    Returns:
        UTC datetime, 파싱 불가 시 None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value

    elif isinstance(value, (int, float)):
        try:
            seconds = value / 1000 if abs(value) > EPOCH_MILLIS_THRESHOLD else value
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None

        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            try:
                parsed = datetime.strptime(text, TWITTER_DATE_FORMAT)
            except ValueError:
                return None

    else:
        return None

    return to_utc(parsed)


def to_utc(value: datetime) -> Optional[datetime]:
    """naive datetime은 UTC로 간주, 범위를 벗어나면 None"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        return None


@dataclass(frozen=True)
class PostRecord:
    """
    관측된 소셜 멘션 1건

    timestamp는 수집 후 변경되지 않음 (frozen).
    파싱할 수 없는 타임스탬프는 None으로 남고 집계에서 제외됨.
    """
    id: str
    timestamp: Optional[datetime] = None
    text: Optional[str] = None
    author: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def has_timestamp(self) -> bool:
        """유효한 타임스탬프 보유 여부"""
        return self.timestamp is not None

    @classmethod
    def create(
        cls,
        id: str,
        timestamp: Union[datetime, str, int, float, None],
        **extra: Any
    ) -> "PostRecord":
        """임의 형식의 타임스탬프로 레코드 생성"""
        text = extra.pop("text", None)
        author = extra.pop("author", None)
        return cls(
            id=str(id),
            timestamp=parse_timestamp(timestamp),
            text=text,
            author=author,
            extra=extra,
        )

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "PostRecord":
        """
        원시 포스트 데이터(JSON/CSV 행)를 PostRecord로 변환

        Args:
            raw: 원시 데이터 (id, text, authorUsername, createdAtDate, ...)

        Returns:
            PostRecord (타임스탬프 파싱 실패 시 timestamp=None)
        """
        raw_timestamp = None
        for key in TIMESTAMP_KEYS:
            if raw.get(key) not in (None, ""):
                raw_timestamp = raw[key]
                break

        extra = {
            k: v for k, v in raw.items()
            if k not in TIMESTAMP_KEYS and k not in ("id", "text", "author", "authorUsername")
        }

        return cls(
            id=str(raw.get("id", "")),
            timestamp=parse_timestamp(raw_timestamp),
            text=raw.get("text"),
            author=raw.get("authorUsername") or raw.get("author"),
            extra=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환"""
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "text": self.text,
            "author": self.author,
            **self.extra,
        }
