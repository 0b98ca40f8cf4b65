"""
设置API
"""
from fastapi import APIRouter, Depends
from app.api.deps import get_store
from app.schemas.settings import SettingsResponse, SettingsUpdate, SuccessResponse
from app.services.store import Store

router = APIRouter(prefix="/settings", tags=["设置"])


@router.get("", response_model=SettingsResponse)
def get_settings(store: Store = Depends(get_store)):
    """获取设置（玩家名称列表和默认初期持点）"""
    return store.get_settings()


@router.put("", response_model=SuccessResponse)
def update_settings(settings: SettingsUpdate, store: Store = Depends(get_store)):
    """更新默认初期持点（必须为正数）"""
    store.set_default_initial_stake(settings.default_initial_points)
    return SuccessResponse()
