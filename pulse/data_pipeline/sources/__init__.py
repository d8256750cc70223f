"""
Post Sources
티커별 포스트 공급자

Usage:
    from pulse.data_pipeline.sources import get_post_source

    source = get_post_source()
    posts = await source.run("TSLA")
"""
import logging
from typing import Optional

from .base import PostSource, PostSourceError
from .file_source import FilePostSource, parse_csv_rows, parse_json_rows
from .synthetic import SyntheticPostSource

logger = logging.getLogger(__name__)

_source: Optional[PostSource] = None


def get_post_source() -> PostSource:
    """POST_SOURCE 설정에 따른 싱글톤 포스트 소스"""
    global _source

    if _source is None:
        from pulse.core.config import settings

        kind = settings.POST_SOURCE.lower()
        if kind == "file":
            _source = FilePostSource(settings.POST_DATA_PATH)
        elif kind == "synthetic":
            _source = SyntheticPostSource(history_days=settings.SYNTHETIC_HISTORY_DAYS)
        else:
            raise ValueError(f"Unknown POST_SOURCE: {settings.POST_SOURCE}")

        logger.info(f"[PostSource] Using '{_source.name}' source")

    return _source


def set_post_source(source: Optional[PostSource]):
    """포스트 소스 교체 (테스트/주입용, None이면 초기화)"""
    global _source
    _source = source


__all__ = [
    "PostSource",
    "PostSourceError",
    "FilePostSource",
    "SyntheticPostSource",
    "parse_csv_rows",
    "parse_json_rows",
    "get_post_source",
    "set_post_source",
]
