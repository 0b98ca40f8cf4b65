"""
对局记录相关的Pydantic模型
"""
import datetime
from pydantic import Field, field_serializer, field_validator, model_validator
from typing import List, Optional
from app.schemas.common import POINTS_MAX, POINTS_MIN, CamelModel, format_datetime_utc
from app.services.stats import calculate_point_balance


class RecordCreate(CamelModel):
    """创建对局记录模型"""
    player_name: str = Field(..., description="玩家名称", max_length=100)
    date: datetime.date = Field(..., description="对局日期，格式：YYYY-MM-DD")
    initial_points: int = Field(..., ge=0, le=POINTS_MAX, description="初期持点")
    final_points: int = Field(..., ge=0, le=POINTS_MAX, description="最终持点")
    add_ons: int = Field(..., ge=0, le=POINTS_MAX, description="追加买入次数")
    point_balance: Optional[int] = Field(
        None, ge=POINTS_MIN, le=POINTS_MAX, description="点数收支，不填则由服务端计算"
    )

    @field_validator("player_name")
    @classmethod
    def strip_player_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("玩家名称不能为空")
        return value

    @model_validator(mode="after")
    def check_computed_balance(self):
        # 服务端计算的收支也必须在INTEGER范围内
        if self.point_balance is None:
            balance = calculate_point_balance(self.initial_points, self.final_points, self.add_ons)
            if not POINTS_MIN <= balance <= POINTS_MAX:
                raise ValueError(f"点数收支超出范围: {balance}")
        return self


class RecordResponse(CamelModel):
    """对局记录响应模型"""
    id: str
    player_name: str
    date: datetime.date
    initial_points: int
    final_points: int
    add_ons: int
    point_balance: int
    created_at: datetime.datetime

    @field_serializer("created_at")
    def serialize_datetime(self, dt: datetime.datetime) -> str:
        return format_datetime_utc(dt)


class BalanceResponse(CamelModel):
    """点数收支计算结果"""
    point_balance: int


class DailySummaryResponse(CamelModel):
    """每日汇总"""
    date: datetime.date
    record_count: int = Field(..., description="记录数")
    total_balance: int = Field(..., description="当日收支合计")
    records: List[RecordResponse] = []
