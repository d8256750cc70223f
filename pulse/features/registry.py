"""
Widget Registry
모든 위젯 핸들러 등록 및 관리
"""

from typing import Dict, Type, Optional, List, Tuple
from pulse.models.widget import WidgetHandler, WidgetInfo
import logging

logger = logging.getLogger(__name__)


class WidgetRegistry:
    """
    위젯 레지스트리

    (카테고리, 위젯 ID) -> 핸들러 클래스
    """

    _handlers: Dict[Tuple[str, str], Type[WidgetHandler]] = {}

    @classmethod
    def register(cls, handler_class: Type[WidgetHandler]):
        """
        핸들러 등록

        Args:
            handler_class: widget_id / category가 정의된 핸들러 클래스
        """
        key = (handler_class.category, handler_class.widget_id)
        cls._handlers[key] = handler_class
        logger.debug(f"Registered widget handler: {key[0]}/{key[1]}")

    @classmethod
    def get_handler(cls, category: str, widget_id: str, **kwargs) -> Optional[WidgetHandler]:
        """
        핸들러 인스턴스 반환

        Args:
            category: 위젯 카테고리
            widget_id: 위젯 ID
            **kwargs: 핸들러 생성자 인자 (service 등)

        Returns:
            핸들러 인스턴스 or None
        """
        handler_class = cls._handlers.get((category, widget_id))

        if not handler_class:
            logger.warning(f"Unknown widget: {category}/{widget_id}")
            return None

        return handler_class(**kwargs)

    @classmethod
    def list_widgets(cls, category: Optional[str] = None) -> List[WidgetInfo]:
        """등록된 위젯 카탈로그"""
        return [
            handler_class.info()
            for (cat, _), handler_class in cls._handlers.items()
            if category is None or cat == category
        ]

    @classmethod
    def list_categories(cls) -> List[str]:
        """위젯 카테고리 목록"""
        return sorted({cat for cat, _ in cls._handlers})

    @classmethod
    def has_widget(cls, category: str, widget_id: str) -> bool:
        """위젯 존재 여부"""
        return (category, widget_id) in cls._handlers


# 핸들러 자동 등록
def _auto_register_handlers():
    """핸들러 자동 등록"""
    from pulse.features.finance import FINANCE_HANDLERS

    for handler_class in FINANCE_HANDLERS:
        WidgetRegistry.register(handler_class)


# 모듈 로드 시 자동 등록
_auto_register_handlers()
