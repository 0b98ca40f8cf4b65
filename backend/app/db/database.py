"""
数据库配置和连接
"""
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

# 创建基础模型类
Base = declarative_base()


def build_engine(database_url: str, echo: bool = False):
    """根据连接串创建数据库引擎"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # SQLite需要这个参数
    return create_engine(
        database_url,
        connect_args=connect_args,
        echo=echo  # 设置为True可以看到SQL语句
    )


def build_session_factory(engine):
    """创建会话工厂"""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    """获取数据库会话"""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
