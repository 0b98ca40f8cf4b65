"""
玩家模型
"""
from sqlalchemy import Column, String, DateTime
from app.db.database import Base
from app.models.record import utcnow


class Player(Base):
    """玩家表"""
    __tablename__ = "players"

    id = Column(String(64), primary_key=True, comment="玩家ID")
    name = Column(String(100), unique=True, nullable=False, comment="玩家名称")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, comment="创建时间")
