"""
玩家相关的Pydantic模型
"""
from pydantic import Field, field_serializer
from typing import Optional
from datetime import datetime
from app.schemas.common import CamelModel, format_datetime_utc


class PlayerCreate(CamelModel):
    """创建玩家模型"""
    name: Optional[str] = Field(None, description="玩家名称", max_length=100)


class PlayerDelete(CamelModel):
    """删除玩家模型"""
    id: Optional[str] = Field(None, description="玩家ID")


class PlayerResponse(CamelModel):
    """玩家响应模型"""
    id: str
    name: str
    created_at: datetime

    @field_serializer("created_at")
    def serialize_datetime(self, dt: datetime) -> str:
        return format_datetime_utc(dt)
