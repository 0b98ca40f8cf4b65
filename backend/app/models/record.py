"""
对局记录模型
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Date, DateTime, Index
from app.db.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class Record(Base):
    """对局记录表（只追加，不修改）"""
    __tablename__ = "records"

    id = Column(String(64), primary_key=True, comment="记录ID")
    player_name = Column(String(100), nullable=False, comment="玩家名称")
    date = Column(Date, nullable=False, comment="对局日期")
    initial_points = Column(Integer, nullable=False, comment="初期持点")
    final_points = Column(Integer, nullable=False, comment="最终持点")
    add_ons = Column(Integer, nullable=False, default=0, comment="追加买入次数")
    point_balance = Column(Integer, nullable=False, comment="点数收支")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, comment="创建时间")

    __table_args__ = (
        Index("idx_records_player_name", "player_name"),
        Index("idx_records_date", "date"),
    )
