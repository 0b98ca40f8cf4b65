"""
玩家管理API
"""
from fastapi import APIRouter, Depends
from typing import List
from app.api.deps import get_store
from app.core.exceptions import ValidationError
from app.schemas.player import PlayerCreate, PlayerDelete, PlayerResponse
from app.schemas.settings import SuccessResponse
from app.services.store import Store

router = APIRouter(prefix="/players", tags=["玩家管理"])


@router.get("", response_model=List[PlayerResponse])
def get_players(store: Store = Depends(get_store)):
    """获取玩家列表"""
    return store.list_players()


@router.get("/{player_id}", response_model=PlayerResponse)
def get_player(player_id: str, store: Store = Depends(get_store)):
    """获取玩家详情"""
    return store.get_player(player_id)


@router.post("", response_model=PlayerResponse)
def create_player(player: PlayerCreate, store: Store = Depends(get_store)):
    """添加玩家"""
    name = (player.name or "").strip()
    if not name:
        raise ValidationError("请输入玩家名称", field="name")
    return store.add_player(name)


@router.delete("", response_model=SuccessResponse)
def delete_player(player: PlayerDelete, store: Store = Depends(get_store)):
    """删除玩家（不删除其对局记录和统计）"""
    if not player.id or not player.id.strip():
        raise ValidationError("请指定玩家ID", field="id")
    store.delete_player(player.id.strip())
    return SuccessResponse()
