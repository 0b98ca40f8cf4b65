"""
玩家统计模型
"""
from sqlalchemy import Column, Integer, String, Float
from app.db.database import Base


class PlayerStats(Base):
    """玩家统计表，每个玩家一行"""
    __tablename__ = "stats"

    player_name = Column(String(100), primary_key=True, comment="玩家名称")
    total_games = Column(Integer, nullable=False, default=0, comment="总场次")
    total_balance = Column(Integer, nullable=False, default=0, comment="累计收支")
    average_balance = Column(Float, nullable=False, default=0, comment="平均收支")
    best_balance = Column(Integer, nullable=False, default=0, comment="最佳收支")
    worst_balance = Column(Integer, nullable=False, default=0, comment="最差收支")
