"""
应用配置
"""
import os

# 新记录录入时预填的初期持ち点
DEFAULT_INITIAL_POINTS = 20000


class Config:
    """从环境变量读取的运行配置"""

    def __init__(
        self,
        database_url: str = None,
        storage_backend: str = None,
        default_initial_points: int = None,
        log_level: str = None,
        cors_origins: list = None,
    ):
        self.database_url = database_url or os.getenv("DATABASE_URL", "sqlite:///./database.db")
        # sql=关系型数据库, memory=内存键值存储
        self.storage_backend = (storage_backend or os.getenv("STORAGE_BACKEND", "sql")).lower()
        if default_initial_points is None:
            default_initial_points = int(os.getenv("DEFAULT_INITIAL_POINTS", DEFAULT_INITIAL_POINTS))
        self.default_initial_points = default_initial_points
        self.log_level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
        if cors_origins is None:
            cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
        self.cors_origins = cors_origins

        if self.storage_backend not in ("sql", "memory"):
            raise ValueError(f"不支持的存储类型: {self.storage_backend}")
