"""
玩家统计API
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional
from app.api.deps import get_store
from app.core.exceptions import ValidationError
from app.schemas.stats import PlayerStatsResponse
from app.services.store import Store

router = APIRouter(prefix="/stats", tags=["玩家统计"])


@router.get("", response_model=Optional[PlayerStatsResponse])
def get_player_stats(
    player_name: Optional[str] = Query(None, alias="playerName", description="玩家名称"),
    store: Store = Depends(get_store)
):
    """获取玩家统计，没有记录时返回null"""
    if not player_name or not player_name.strip():
        raise ValidationError("请指定玩家名称", field="playerName")
    return store.get_player_stats(player_name.strip())
