"""
设置模型
"""
from sqlalchemy import Column, String
from app.db.database import Base

DEFAULT_INITIAL_POINTS_KEY = "default_initial_points"


class Setting(Base):
    """设置表（键值对）"""
    __tablename__ = "settings"

    key = Column(String(100), primary_key=True, comment="配置键")
    value = Column(String(500), nullable=False, comment="配置值")
