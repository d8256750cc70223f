"""
위젯 모델
"""

from pydantic import Field
from typing import Dict, Any, List, Optional
from abc import ABC, abstractmethod
from enum import Enum

from pulse.models.base import BaseModel


class InputType(str, Enum):
    """위젯 입력 타입"""
    TICKER = "ticker"
    TICKERS = "tickers"
    CATEGORY = "category"
    NUMBER = "number"


class WidgetInput(BaseModel):
    """위젯 입력 정의"""
    name: str
    type: InputType
    required: bool = False
    placeholder: Optional[str] = None


class WidgetInfo(BaseModel):
    """위젯 카탈로그 항목"""
    id: str
    name: str
    description: str
    category: str
    inputs: List[WidgetInput] = Field(default_factory=list)


class WidgetParamError(ValueError):
    """필수 파라미터 누락 또는 잘못된 파라미터"""

    def __init__(self, param: str, message: str):
        self.param = param
        self.message = message
        super().__init__(message)


class WidgetHandler(ABC):
    """
    위젯 핸들러 추상 클래스
    모든 위젯 핸들러는 이 클래스를 상속받아야 함
    """

    widget_id: str = ""
    name: str = ""
    description: str = ""
    category: str = "finance"
    inputs: List[WidgetInput] = []

    @property
    def required_params(self) -> List[str]:
        """필수 파라미터 이름"""
        return [i.name for i in self.inputs if i.required]

    @classmethod
    def info(cls) -> WidgetInfo:
        """카탈로그 정보"""
        return WidgetInfo(
            id=cls.widget_id,
            name=cls.name,
            description=cls.description,
            category=cls.category,
            inputs=cls.inputs,
        )

    def validate_params(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        필수 파라미터 검증

        Raises:
            WidgetParamError: 필수 파라미터가 비어 있음
        """
        for name in self.required_params:
            value = params.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise WidgetParamError(name, f"Missing required parameter: {name}")
        return params

    async def run(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """파라미터 검증 후 위젯 데이터 생성"""
        return await self.build(self.validate_params(dict(params)))

    @abstractmethod
    async def build(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        위젯 데이터 생성

        Args:
            params: 쿼리 파라미터

        Returns:
            위젯 데이터 (JSON 직렬화 가능)
        """
        pass
