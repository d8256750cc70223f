"""
Pulse Models
"""

from pulse.models.base import BaseModel
from pulse.models.widget import (
    InputType,
    WidgetInput,
    WidgetInfo,
    WidgetParamError,
    WidgetHandler,
)

__all__ = [
    "BaseModel",
    "InputType",
    "WidgetInput",
    "WidgetInfo",
    "WidgetParamError",
    "WidgetHandler",
]
