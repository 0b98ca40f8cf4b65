"""
路由公共依赖
"""
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from app.db.database import get_db
from app.services.kv_store import KeyValueStore
from app.services.sql_store import SqlStore
from app.services.store import Store


def get_store(request: Request, db: Session = Depends(get_db)) -> Store:
    """获取存储实例（首次调用前确保数据表存在）"""
    state = request.app.state
    state.provisioner.ensure()
    config = state.config
    if config.storage_backend == "memory":
        return KeyValueStore(state.kv_client, config.default_initial_points)
    return SqlStore(db, config.default_initial_points)
