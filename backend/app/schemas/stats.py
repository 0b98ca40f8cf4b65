"""
玩家统计相关的Pydantic模型
"""
from app.schemas.common import CamelModel


class PlayerStatsResponse(CamelModel):
    """玩家统计响应模型"""
    player_name: str
    total_games: int
    total_balance: int
    # 存储时不取整，展示层自行处理
    average_balance: float
    best_balance: int
    worst_balance: int
