"""
设置相关的Pydantic模型
"""
from pydantic import Field, field_validator
from typing import List, Optional
from app.schemas.common import POINTS_MAX, CamelModel


class SettingsUpdate(CamelModel):
    """更新默认初期持点"""
    default_initial_points: Optional[int] = Field(None, le=POINTS_MAX, description="默认初期持点，必须为正数")

    @field_validator("default_initial_points", mode="before")
    @classmethod
    def require_number(cls, value):
        # 只接受JSON数字；25000.0 这类整数值的浮点数按整数处理，1.5 仍被拒绝
        if value is None:
            return value
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("初期持点必须为数字")
        return value


class SettingsResponse(CamelModel):
    """设置响应模型"""
    players: List[str] = Field(default_factory=list, description="玩家名称列表")
    default_initial_points: int = Field(..., description="默认初期持点")


class SuccessResponse(CamelModel):
    success: bool = True
